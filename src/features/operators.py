"""
Call and subscript operator matchers.

- static-call-operator: `static` on operator() or on a lambda
- static-subscript-operator: `static` on operator[]
- multi-argument-subscript-operator: operator[] with several indices
- zero-argument-subscript-operator: operator[] with no index
"""

from typing import List

from features.base import NO_MATCH, FeatureMatcher, Outcome
from features.shapes import (
    is_void_list,
    lambda_declarator,
    object_parameter,
    operator_signature,
    OperatorSignature,
)
from scan.fragments import FragmentKind, SourceFragment
from scan.groups import is_punct, is_word, split_top_level
from scan.lexer import Token


def _static_specifier(signature: OperatorSignature):
    return next((t for t in signature.specifiers if is_word(t, "static")), None)


def _index_parameters(signature: OperatorSignature) -> List[List[Token]]:
    """Parameters of operator[] that act as indices (the object parameter is not one)."""
    params = list(signature.params)
    if object_parameter(params) is not None:
        params = params[1:]
    if is_void_list(params):
        return []
    return params


def _is_pack(param: List[Token]) -> bool:
    return any(is_punct(t, "...") for t in param)


def _angle_after_default(param_tokens: List[Token]) -> bool:
    """True when a '<' or '>' follows a default argument's '='."""
    in_default = False
    for t in param_tokens:
        if is_punct(t, "="):
            in_default = True
        elif is_punct(t, ","):
            in_default = False
        elif in_default and (is_punct(t, "<") or is_punct(t, ">")):
            return True
    return False


class StaticCallOperatorMatcher(FeatureMatcher):
    feature_id = "static-call-operator"
    kinds = frozenset({FragmentKind.OPERATOR_DEF, FragmentKind.CAPTURE_LIST})

    def examine(self, fragment: SourceFragment) -> Outcome:
        if fragment.kind == FragmentKind.CAPTURE_LIST:
            declarator = lambda_declarator(fragment)
            if declarator is None:
                return NO_MATCH
            for t in declarator.specifiers:
                if is_punct(t, "->"):
                    break
                if is_word(t, "static"):
                    return self.found(fragment, [t])
            return NO_MATCH

        signature = operator_signature(fragment)
        if signature is None or signature.symbol != "()":
            return NO_MATCH
        static = _static_specifier(signature)
        if static is None:
            return NO_MATCH
        return self.found(fragment, [static, signature.name_tokens[-1]])


class StaticSubscriptOperatorMatcher(FeatureMatcher):
    feature_id = "static-subscript-operator"
    kinds = frozenset({FragmentKind.OPERATOR_DEF})

    def examine(self, fragment: SourceFragment) -> Outcome:
        signature = operator_signature(fragment)
        if signature is None or signature.symbol != "[]":
            return NO_MATCH
        static = _static_specifier(signature)
        if static is None:
            return NO_MATCH
        return self.found(fragment, [static, signature.name_tokens[-1]])


class MultiArgumentSubscriptMatcher(FeatureMatcher):
    feature_id = "multi-argument-subscript-operator"
    kinds = frozenset({FragmentKind.OPERATOR_DEF})

    def examine(self, fragment: SourceFragment) -> Outcome:
        signature = operator_signature(fragment)
        if signature is None or signature.symbol != "[]":
            return NO_MATCH

        params = _index_parameters(signature)
        if any(_is_pack(p) for p in params):
            return self.found(fragment, signature.name_tokens)

        # A '<' or '>' in a default argument may be a comparison or a template
        # argument list; report it only when one reading has fewer than two indices.
        plain = split_top_level(signature.param_tokens, ",", track_angles=False)
        if object_parameter(plain) is not None:
            plain = plain[1:]
        if (
            min(len(plain), len(params)) < 2 <= max(len(plain), len(params))
            and _angle_after_default(signature.param_tokens)
        ):
            return self.ambiguous(
                fragment,
                "default argument with '<' or '>' makes the parameter count undecidable",
                candidates=(self.feature_id,),
                tokens=signature.name_tokens,
            )

        if len(params) >= 2:
            return self.found(fragment, signature.name_tokens)
        return NO_MATCH


class ZeroArgumentSubscriptMatcher(FeatureMatcher):
    feature_id = "zero-argument-subscript-operator"
    kinds = frozenset({FragmentKind.OPERATOR_DEF})

    def examine(self, fragment: SourceFragment) -> Outcome:
        signature = operator_signature(fragment)
        if signature is None or signature.symbol != "[]":
            return NO_MATCH
        if _index_parameters(signature):
            return NO_MATCH
        return self.found(fragment, signature.name_tokens)
