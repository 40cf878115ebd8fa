"""
Feature matching for versioned core-language features.

Each catalog feature has one matcher; the runner dispatches scanner
fragments to them and collects matches and ambiguity notes.
"""

from features.base import NO_MATCH, Ambiguous, FeatureMatcher, Match, Unambiguous
from features.catalog import Catalog, FeatureDescriptor, build_catalog
from features.runner import FeatureRunner, MatchSet, default_matchers

__all__ = [
    "NO_MATCH",
    "Ambiguous",
    "FeatureMatcher",
    "Match",
    "Unambiguous",
    "Catalog",
    "FeatureDescriptor",
    "build_catalog",
    "FeatureRunner",
    "MatchSet",
    "default_matchers",
]
