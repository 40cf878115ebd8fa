"""
Lexical matchers: literal suffixes, preprocessor directives and attributes.
"""

import re

from features.base import NO_MATCH, FeatureMatcher, Outcome
from scan.fragments import FragmentKind, SourceFragment
from scan.groups import is_punct, is_word, split_top_level

_INTEGER_RE = re.compile(r"^(?:0x[0-9a-f']+|0b[01']+|\d[\d']*)(?P<suffix>[a-z]*)$", re.IGNORECASE)

_DECIMAL_FLOAT_RE = re.compile(
    r"^(?:(?:\d[\d']*)?\.[\d']*(?:e[+-]?\d[\d']*)?|\d[\d']*e[+-]?\d[\d']*)(?P<suffix>[a-z][a-z0-9]*)?$",
    re.IGNORECASE,
)
_HEX_FLOAT_RE = re.compile(
    r"^0x[0-9a-f']*\.?[0-9a-f']*p[+-]?\d[\d']*(?P<suffix>[a-z][a-z0-9]*)?$",
    re.IGNORECASE,
)

SIZE_SUFFIXES = {"z", "uz", "zu"}
EXTENDED_FLOAT_SUFFIXES = {"f16", "f32", "f64", "f128", "bf16"}

_DIRECTIVE_RE = re.compile(r"^#\s*(?P<name>[A-Za-z_]\w*)")


class SizeSuffixMatcher(FeatureMatcher):
    feature_id = "size-literal-suffix"
    kinds = frozenset({FragmentKind.LITERAL})

    def examine(self, fragment: SourceFragment) -> Outcome:
        m = _INTEGER_RE.match(fragment.text)
        if m and m.group("suffix").lower() in SIZE_SUFFIXES:
            return self.found(fragment)
        return NO_MATCH


class ExtendedFloatSuffixMatcher(FeatureMatcher):
    feature_id = "extended-floating-literal-suffix"
    kinds = frozenset({FragmentKind.LITERAL})

    def examine(self, fragment: SourceFragment) -> Outcome:
        text = fragment.text
        m = _HEX_FLOAT_RE.match(text) if text[:2].lower() == "0x" else _DECIMAL_FLOAT_RE.match(text)
        if m and (m.group("suffix") or "").lower() in EXTENDED_FLOAT_SUFFIXES:
            return self.found(fragment)
        return NO_MATCH


def _directive_name(fragment: SourceFragment) -> str:
    m = _DIRECTIVE_RE.match(fragment.text)
    return m.group("name") if m else ""


class ElifdefDirectiveMatcher(FeatureMatcher):
    feature_id = "elifdef-directive"
    kinds = frozenset({FragmentKind.DIRECTIVE})

    def examine(self, fragment: SourceFragment) -> Outcome:
        if _directive_name(fragment) in ("elifdef", "elifndef"):
            return self.found(fragment)
        return NO_MATCH


class WarningDirectiveMatcher(FeatureMatcher):
    feature_id = "warning-directive"
    kinds = frozenset({FragmentKind.DIRECTIVE})

    def examine(self, fragment: SourceFragment) -> Outcome:
        if _directive_name(fragment) == "warning":
            return self.found(fragment)
        return NO_MATCH


class AssumeAttributeMatcher(FeatureMatcher):
    feature_id = "assume-attribute"
    kinds = frozenset({FragmentKind.ATTRIBUTE})

    def examine(self, fragment: SourceFragment) -> Outcome:
        inner = list(fragment.tokens[2:-2])
        if inner and is_word(inner[0], "using"):
            # [[using ns: attr, ...]] applies a namespace to every attribute
            return NO_MATCH
        for attribute in split_top_level(inner, ","):
            if len(attribute) >= 2 and is_word(attribute[0], "assume") and is_punct(attribute[1], "("):
                return self.found(fragment, attribute)
        return NO_MATCH
