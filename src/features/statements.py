"""
Statement-level matchers: consteval branches, try blocks in constant
evaluation, static_assert(false) and labels closing a compound statement.
"""

from features.base import NO_MATCH, FeatureMatcher, Outcome
from features.shapes import fragment_pairs
from scan.fragments import FragmentKind, SourceFragment
from scan.groups import is_punct, is_word, split_top_level


class ConstevalBranchMatcher(FeatureMatcher):
    feature_id = "compile-time-branch-marker"
    kinds = frozenset({FragmentKind.BRANCH})

    def examine(self, fragment: SourceFragment) -> Outcome:
        if is_word(fragment.tokens[-1], "consteval"):
            return self.found(fragment)
        return NO_MATCH


class ConstantEvaluationTryMatcher(FeatureMatcher):
    feature_id = "exception-handling-in-constant-evaluation"
    kinds = frozenset({FragmentKind.TRY_BLOCK})

    def examine(self, fragment: SourceFragment) -> Outcome:
        if not fragment.context.in_constant_function:
            return NO_MATCH
        return self.found(fragment, fragment.tokens[:1])


class MessagelessFalseAssertionMatcher(FeatureMatcher):
    """static_assert(false) inside a template: only rejected when instantiated."""

    feature_id = "unconditional-static-assertion-without-message"
    kinds = frozenset({FragmentKind.STATIC_ASSERT})

    def examine(self, fragment: SourceFragment) -> Outcome:
        if not fragment.context.in_template:
            return NO_MATCH
        tokens = fragment.tokens
        pairs = fragment_pairs(fragment)
        if len(tokens) < 3 or 1 not in pairs:
            return NO_MATCH
        args = split_top_level(tokens[2 : pairs[1]], ",")
        if len(args) != 1:
            return NO_MATCH
        arg = args[0]
        if len(arg) == 1 and is_word(arg[0], "false"):
            return self.found(fragment)
        return NO_MATCH


class TrailingLabelMatcher(FeatureMatcher):
    feature_id = "label-at-end-of-compound-statement"
    kinds = frozenset({FragmentKind.LABEL})

    def examine(self, fragment: SourceFragment) -> Outcome:
        if is_punct(fragment.next_token, "}"):
            return self.found(fragment)
        return NO_MATCH
