"""
Lambda declarator matchers.
"""

from features.base import NO_MATCH, FeatureMatcher, Outcome
from features.shapes import lambda_declarator, object_parameter
from scan.fragments import FragmentKind, SourceFragment
from scan.groups import is_punct, is_word


class EnclosingInstanceCaptureMatcher(FeatureMatcher):
    """[*this] in a lambda whose first parameter is an explicit object parameter."""

    feature_id = "enclosing-instance-value-capture"
    kinds = frozenset({FragmentKind.CAPTURE_LIST})

    def examine(self, fragment: SourceFragment) -> Outcome:
        declarator = lambda_declarator(fragment)
        if declarator is None or declarator.params is None:
            return NO_MATCH
        if object_parameter(declarator.params) is None:
            return NO_MATCH
        for capture in declarator.captures:
            if len(capture) == 2 and is_punct(capture[0], "*") and is_word(capture[1], "this"):
                return self.found(fragment, capture)
        return NO_MATCH


class ParameterlessSpecifiersMatcher(FeatureMatcher):
    """A lambda with specifiers, a trailing return type or attributes but no ()."""

    feature_id = "parameterless-lambda-specifiers"
    kinds = frozenset({FragmentKind.CAPTURE_LIST})

    def examine(self, fragment: SourceFragment) -> Outcome:
        declarator = lambda_declarator(fragment)
        if declarator is None or declarator.params is not None:
            return NO_MATCH
        specifiers = declarator.specifiers
        if not specifiers or is_word(specifiers[0], "requires"):
            return NO_MATCH
        return self.found(fragment)
