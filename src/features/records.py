"""
Record member matchers.
"""

from features.base import NO_MATCH, FeatureMatcher, Outcome
from features.shapes import fragment_pairs, top_level_indices
from scan.fragments import FragmentKind, SourceFragment
from scan.groups import is_punct


class UnionMemberInitializerMatcher(FeatureMatcher):
    """A union data member with a default member initializer (= x or {x})."""

    feature_id = "default-initializer-in-variant-record"
    kinds = frozenset({FragmentKind.UNION_MEMBER})

    def examine(self, fragment: SourceFragment) -> Outcome:
        tokens = fragment.tokens
        pairs = fragment_pairs(fragment)
        for k in top_level_indices(tokens, pairs):
            if is_punct(tokens[k], "=") or (is_punct(tokens[k], "{") and k > 0):
                return self.found(fragment)
        return NO_MATCH
