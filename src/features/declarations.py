"""
Declaration matchers.

- conditional-explicit: explicit(expr) on a constructor or conversion function
- deduction-guide-for-restricted-constructor: explicit deduction guides
- deduced-return-type-as-parameter / explicit-object-parameter: `this` parameters
"""

from typing import FrozenSet, Optional, Sequence, Tuple

from core.utils import get_simple_name
from features.base import NO_MATCH, FeatureMatcher, Outcome
from features.shapes import (
    fragment_pairs,
    function_declarator,
    lambda_declarator,
    object_parameter,
    ObjectParameter,
    skip_template_headers,
    template_header_names,
    top_level_indices,
)
from scan.fragments import FragmentKind, SourceFragment
from scan.groups import is_identifier, is_punct, is_word, joined, template_parameter_names
from scan.lexer import Token, TokenType


def _explicit_specifier(fragment: SourceFragment) -> Optional[Tuple[int, Optional[int]]]:
    """
    Locate a top-level `explicit`.

    Returns (explicit_index, close_index) where close_index is the index of the
    ')' ending its condition, or None when the specifier has no condition.
    """
    tokens = fragment.tokens
    pairs = fragment_pairs(fragment)
    start = skip_template_headers(tokens, pairs)
    for k in top_level_indices(tokens, pairs, start):
        if not is_word(tokens[k], "explicit"):
            continue
        if k + 1 < len(tokens) and is_punct(tokens[k + 1], "(") and (k + 1) in pairs:
            return k, pairs[k + 1]
        return k, None
    return None


def _condition(tokens: Sequence[Token], explicit_index: int, close: int) -> str:
    return joined(tokens[explicit_index + 2 : close])


class ConditionalExplicitMatcher(FeatureMatcher):
    feature_id = "conditional-explicit"
    kinds = frozenset({FragmentKind.DECLARATION})

    def examine(self, fragment: SourceFragment) -> Outcome:
        found = _explicit_specifier(fragment)
        if found is None or found[1] is None:
            return NO_MATCH
        k, close = found
        tokens = fragment.tokens
        spec = tokens[k : close + 1]
        after = tokens[close + 1] if close + 1 < len(tokens) else None
        if after is None:
            return NO_MATCH

        if is_identifier(after) or is_punct(after, "~") or is_punct(after, "::"):
            return self.found(fragment, spec)

        if is_punct(after, "("):
            inner = tokens[k + 2 : close]
            if len(inner) == 1 and is_identifier(inner[0]):
                # explicit (Name)(args): a parenthesized declarator
                return NO_MATCH
            return self.ambiguous(
                fragment,
                "explicit followed by two parenthesized groups",
                candidates=(self.feature_id,),
                tokens=spec,
            )
        return NO_MATCH


class RestrictedDeductionGuideMatcher(FeatureMatcher):
    feature_id = "deduction-guide-for-restricted-constructor"
    kinds = frozenset({FragmentKind.DECLARATION})

    def examine(self, fragment: SourceFragment) -> Outcome:
        found = _explicit_specifier(fragment)
        if found is None:
            return NO_MATCH
        k, close = found
        tokens = fragment.tokens
        n = len(tokens)

        # explicit [ ( cond ) ] Name ( params ) -> Name < ... >
        name_index = k + 1 if close is None else close + 1
        if name_index + 1 >= n or not is_identifier(tokens[name_index]):
            return NO_MATCH
        if not is_punct(tokens[name_index + 1], "("):
            return NO_MATCH
        pairs = fragment_pairs(fragment)
        params_close = pairs.get(name_index + 1)
        if params_close is None or params_close + 1 >= n or not is_punct(tokens[params_close + 1], "->"):
            return NO_MATCH

        target = []
        j = params_close + 2
        while j < n and (is_identifier(tokens[j]) or is_punct(tokens[j], "::")):
            target.append(tokens[j].value)
            j += 1
        if not target or j >= n or not is_punct(tokens[j], "<"):
            return NO_MATCH
        if get_simple_name("".join(target)) != tokens[name_index].value:
            return NO_MATCH

        span = tokens[k:j]
        if close is None:
            reason = "explicit deduction guides are also valid C++17"
        else:
            condition = _condition(tokens, k, close)
            if condition == "false":
                return NO_MATCH
            if condition == "true":
                reason = "explicit(true) deduction guides are also valid C++20"
            else:
                reason = f"deduction guide restriction depends on explicit({condition})"
        # Guides are reported as notes, never as findings
        return self.ambiguous(fragment, reason, candidates=(self.feature_id,), tokens=span)


def _object_parameter(fragment: SourceFragment) -> Tuple[Optional[ObjectParameter], FrozenSet[str]]:
    """The explicit object parameter and the names of the function's own template parameters."""
    if fragment.kind == FragmentKind.CAPTURE_LIST:
        declarator = lambda_declarator(fragment)
        if declarator is None or declarator.params is None:
            return None, frozenset()
        names = template_parameter_names(declarator.template_params)
        return object_parameter(declarator.params), frozenset(names)
    declarator = function_declarator(fragment)
    if declarator is None:
        return None, frozenset()
    names = template_header_names(fragment.tokens, fragment_pairs(fragment))
    return object_parameter(declarator.params), frozenset(names)


def _deduced(param: ObjectParameter, template_params: FrozenSet[str]) -> bool:
    if param.placeholder:
        return True
    return param.base_name is not None and param.base_name in template_params


class DeducedObjectParameterMatcher(FeatureMatcher):
    feature_id = "deduced-return-type-as-parameter"
    kinds = frozenset({FragmentKind.DECLARATION, FragmentKind.CAPTURE_LIST})

    def examine(self, fragment: SourceFragment) -> Outcome:
        param, names = _object_parameter(fragment)
        if param is None or not _deduced(param, names):
            return NO_MATCH
        return self.found(fragment, _declared_part(param))


class ExplicitObjectParameterMatcher(FeatureMatcher):
    feature_id = "explicit-object-parameter"
    kinds = frozenset({FragmentKind.DECLARATION, FragmentKind.CAPTURE_LIST})

    def examine(self, fragment: SourceFragment) -> Outcome:
        param, names = _object_parameter(fragment)
        if param is None or _deduced(param, names):
            return NO_MATCH
        return self.found(fragment, _declared_part(param))


def _declared_part(param: ObjectParameter):
    """The `this ... name` tokens, without a default argument."""
    tokens = []
    for t in param.tokens:
        if t.type == TokenType.PUNCT and t.value == "=":
            break
        tokens.append(t)
    return tokens
