"""
Feature catalog: the fixed table of versioned core-language features.

The catalog is built once per process by build_catalog() and passed
explicitly to the runner, classifier and reporter. It is immutable; catalog
order is the stable tie-breaker for findings that share an offset.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterator, Optional, Tuple

from core.errors import CatalogLookupFailure
from scan.fragments import FragmentKind

K = FragmentKind


@dataclass(frozen=True)
class FeatureDescriptor:
    id: str
    min_standard: int
    description: str
    fragment_kinds: FrozenSet[FragmentKind]
    # Features sharing a slot can never claim the same fragment
    slot: Optional[str] = None
    example: str = ""


class Catalog:
    """Immutable, insertion-ordered collection of FeatureDescriptors with unique ids."""

    def __init__(self, descriptors):
        entries: Tuple[FeatureDescriptor, ...] = tuple(descriptors)
        index: Dict[str, int] = {}
        for i, descriptor in enumerate(entries):
            if descriptor.id in index:
                raise ValueError(f"Duplicate feature id in catalog: {descriptor.id}")
            index[descriptor.id] = i
        self._entries = entries
        self._index = index

    def lookup(self, feature_id: str) -> FeatureDescriptor:
        try:
            return self._entries[self._index[feature_id]]
        except KeyError:
            raise CatalogLookupFailure(feature_id) from None

    def all(self) -> Tuple[FeatureDescriptor, ...]:
        return self._entries

    def index(self, feature_id: str) -> int:
        """Position of feature_id in catalog order."""
        try:
            return self._index[feature_id]
        except KeyError:
            raise CatalogLookupFailure(feature_id) from None

    def ids(self) -> Tuple[str, ...]:
        return tuple(d.id for d in self._entries)

    def __contains__(self, feature_id: object) -> bool:
        return feature_id in self._index

    def __iter__(self) -> Iterator[FeatureDescriptor]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self):
        return f"Catalog({len(self._entries)} features)"


def _feature(feature_id, description, kinds, slot=None, example="", min_standard=23):
    return FeatureDescriptor(
        id=feature_id,
        min_standard=min_standard,
        description=description,
        fragment_kinds=frozenset(kinds),
        slot=slot,
        example=example,
    )


FEATURES: Tuple[FeatureDescriptor, ...] = (
    _feature(
        "compile-time-branch-marker",
        "if consteval / if !consteval branch",
        [K.BRANCH],
        example="if consteval { return 0; }",
    ),
    _feature(
        "conditional-explicit",
        "explicit specifier with a boolean condition",
        [K.DECLARATION],
        example="explicit(N > 1) Vec(int n);",
    ),
    _feature(
        "copy-initialized-deduced-parameter",
        "auto(x) / auto{x} decay-copy expression",
        [K.CALL_EXPR],
        example="consume(auto(value));",
    ),
    _feature(
        "static-call-operator",
        "static operator() or static lambda",
        [K.OPERATOR_DEF, K.CAPTURE_LIST],
        slot="operator-static",
        example="static int operator()(int x);",
    ),
    _feature(
        "multi-argument-subscript-operator",
        "operator[] taking more than one index",
        [K.OPERATOR_DEF],
        slot="subscript-arity",
        example="T& operator[](size_t i, size_t j);",
    ),
    _feature(
        "deduced-return-type-as-parameter",
        "explicit object parameter of deduced type (deducing this)",
        [K.DECLARATION, K.CAPTURE_LIST],
        slot="explicit-object-parameter",
        example="auto&& get(this auto&& self);",
    ),
    _feature(
        "incomplete-type-size-query-in-constant-context",
        "sizeof/alignof of an incomplete record in a constant context",
        [K.SIZE_QUERY],
        example="struct S; static_assert(sizeof(S) > 0);",
    ),
    _feature(
        "deduction-guide-for-restricted-constructor",
        "explicit deduction guide naming a class template specialization",
        [K.DECLARATION],
        example="explicit Box(int) -> Box<long>;",
    ),
    _feature(
        "enclosing-instance-value-capture",
        "*this captured by value in a lambda with an explicit object parameter",
        [K.CAPTURE_LIST],
        example="[*this](this auto self) { return self; }",
    ),
    _feature(
        "exception-handling-in-constant-evaluation",
        "try block in a constexpr or consteval function",
        [K.TRY_BLOCK],
        example="constexpr int f() { try { return 1; } catch (...) { return 0; } }",
    ),
    _feature(
        "default-initializer-in-variant-record",
        "default member initializer on a union member",
        [K.UNION_MEMBER],
        example="union U { int a = 0; float b; };",
    ),
    _feature(
        "unconditional-static-assertion-without-message",
        "static_assert(false) without message inside a template",
        [K.STATIC_ASSERT],
        example="template <class T> void f() { static_assert(false); }",
    ),
    _feature(
        "static-subscript-operator",
        "static operator[]",
        [K.OPERATOR_DEF],
        slot="operator-static",
        example="static int operator[](int i);",
    ),
    _feature(
        "zero-argument-subscript-operator",
        "operator[] taking no index",
        [K.OPERATOR_DEF],
        slot="subscript-arity",
        example="T& operator[]();",
    ),
    _feature(
        "explicit-object-parameter",
        "explicit object parameter of a concrete type",
        [K.DECLARATION, K.CAPTURE_LIST],
        slot="explicit-object-parameter",
        example="void f(this S& self);",
    ),
    _feature(
        "size-literal-suffix",
        "z / uz integer literal suffix",
        [K.LITERAL],
        example="auto n = 42uz;",
    ),
    _feature(
        "extended-floating-literal-suffix",
        "f16 / f32 / f64 / f128 / bf16 floating literal suffix",
        [K.LITERAL],
        example="auto x = 1.5f16;",
    ),
    _feature(
        "elifdef-directive",
        "#elifdef / #elifndef preprocessor directive",
        [K.DIRECTIVE],
        example="#elifdef FOO",
    ),
    _feature(
        "warning-directive",
        "#warning preprocessor directive",
        [K.DIRECTIVE],
        example='#warning "deprecated"',
    ),
    _feature(
        "assume-attribute",
        "[[assume(expr)]] attribute",
        [K.ATTRIBUTE],
        example="[[assume(n > 0)]];",
    ),
    _feature(
        "parameterless-lambda-specifiers",
        "lambda specifiers without a parameter list",
        [K.CAPTURE_LIST],
        example="[x] mutable { return ++x; }",
    ),
    _feature(
        "label-at-end-of-compound-statement",
        "label immediately before a closing brace",
        [K.LABEL],
        example="void f() { goto end; end: }",
    ),
)


def build_catalog() -> Catalog:
    """Build the standard feature catalog."""
    return Catalog(FEATURES)
