"""
Feature matching runner.

Holds the fixed registry of matchers, dispatches fragments to them by kind
and enforces the slot invariant: features sharing a syntactic slot never
both claim the same fragment.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from core.errors import AmbiguousConstruct
from core.utils import debug
from features.base import Ambiguous, FeatureMatcher, Match, Unambiguous
from features.catalog import Catalog
from features.declarations import (
    ConditionalExplicitMatcher,
    DeducedObjectParameterMatcher,
    ExplicitObjectParameterMatcher,
    RestrictedDeductionGuideMatcher,
)
from features.expressions import DecayCopyMatcher, IncompleteSizeQueryMatcher
from features.lambdas import EnclosingInstanceCaptureMatcher, ParameterlessSpecifiersMatcher
from features.lexical import (
    AssumeAttributeMatcher,
    ElifdefDirectiveMatcher,
    ExtendedFloatSuffixMatcher,
    SizeSuffixMatcher,
    WarningDirectiveMatcher,
)
from features.operators import (
    MultiArgumentSubscriptMatcher,
    StaticCallOperatorMatcher,
    StaticSubscriptOperatorMatcher,
    ZeroArgumentSubscriptMatcher,
)
from features.records import UnionMemberInitializerMatcher
from features.statements import (
    ConstantEvaluationTryMatcher,
    ConstevalBranchMatcher,
    MessagelessFalseAssertionMatcher,
    TrailingLabelMatcher,
)
from scan.fragments import FragmentKind, SourceFragment


def default_matchers() -> List[FeatureMatcher]:
    """One matcher per catalog feature, in catalog order."""
    return [
        ConstevalBranchMatcher(),
        ConditionalExplicitMatcher(),
        DecayCopyMatcher(),
        StaticCallOperatorMatcher(),
        MultiArgumentSubscriptMatcher(),
        DeducedObjectParameterMatcher(),
        IncompleteSizeQueryMatcher(),
        RestrictedDeductionGuideMatcher(),
        EnclosingInstanceCaptureMatcher(),
        ConstantEvaluationTryMatcher(),
        UnionMemberInitializerMatcher(),
        MessagelessFalseAssertionMatcher(),
        StaticSubscriptOperatorMatcher(),
        ZeroArgumentSubscriptMatcher(),
        ExplicitObjectParameterMatcher(),
        SizeSuffixMatcher(),
        ExtendedFloatSuffixMatcher(),
        ElifdefDirectiveMatcher(),
        WarningDirectiveMatcher(),
        AssumeAttributeMatcher(),
        ParameterlessSpecifiersMatcher(),
        TrailingLabelMatcher(),
    ]


@dataclass
class MatchSet:
    """Matches and ambiguity notes collected from one fragment stream."""

    matches: List[Match] = field(default_factory=list)
    notes: List[AmbiguousConstruct] = field(default_factory=list)

    def extend(self, other: "MatchSet") -> None:
        self.matches.extend(other.matches)
        self.notes.extend(other.notes)


class FeatureRunner:
    """Dispatches fragments to matchers."""

    def __init__(
        self,
        catalog: Catalog,
        matchers: Optional[Sequence[FeatureMatcher]] = None,
        disabled: Iterable[str] = (),
    ):
        self.catalog = catalog
        disabled = set(disabled)
        for feature_id in disabled:
            catalog.lookup(feature_id)

        selected: List[FeatureMatcher] = []
        seen = set()
        for matcher in default_matchers() if matchers is None else matchers:
            descriptor = catalog.lookup(matcher.feature_id)
            if descriptor.id in seen:
                raise ValueError(f"Two matchers registered for {descriptor.id}")
            seen.add(descriptor.id)
            if descriptor.id in disabled:
                debug(f"Skipping matcher: {descriptor.id} (disabled)")
                continue
            selected.append(matcher)

        # Catalog order, whatever order the matchers were supplied in
        selected.sort(key=lambda m: catalog.index(m.feature_id))
        self.matchers: Tuple[FeatureMatcher, ...] = tuple(selected)

        self._by_kind: Dict[FragmentKind, List[FeatureMatcher]] = {}
        for matcher in self.matchers:
            kinds = matcher.kinds or catalog.lookup(matcher.feature_id).fragment_kinds
            for kind in kinds:
                self._by_kind.setdefault(kind, []).append(matcher)

    def examine(self, fragment: SourceFragment) -> MatchSet:
        """Run every applicable matcher on one fragment."""
        claims: List[Match] = []
        notes: List[AmbiguousConstruct] = []

        for matcher in self._by_kind.get(fragment.kind, ()):
            outcome = matcher.examine(fragment)
            if isinstance(outcome, Unambiguous):
                claims.append(outcome.match)
            elif isinstance(outcome, Ambiguous):
                notes.append(outcome.to_construct())

        if len(claims) > 1:
            claims, conflicts = self._enforce_slots(fragment, claims)
            notes.extend(conflicts)
        return MatchSet(claims, notes)

    def _enforce_slots(
        self, fragment: SourceFragment, claims: List[Match]
    ) -> Tuple[List[Match], List[AmbiguousConstruct]]:
        by_slot: Dict[str, List[Match]] = {}
        for claim in claims:
            slot = self.catalog.lookup(claim.feature_id).slot
            if slot is not None:
                by_slot.setdefault(slot, []).append(claim)

        withdrawn = set()
        conflicts: List[AmbiguousConstruct] = []
        for slot, rivals in by_slot.items():
            if len(rivals) < 2:
                continue
            ids = tuple(m.feature_id for m in rivals)
            debug(f"FeatureRunner: slot '{slot}' claimed by {', '.join(ids)} at {fragment.location}")
            withdrawn.update(ids)
            conflicts.append(
                AmbiguousConstruct(
                    feature_id=ids[0],
                    line=fragment.line,
                    column=fragment.column,
                    offset=fragment.start_offset,
                    text=fragment.text,
                    reason=f"features sharing slot '{slot}' both claim this construct",
                    candidates=ids,
                )
            )
        return [m for m in claims if m.feature_id not in withdrawn], conflicts

    def run(self, fragments: Iterable[SourceFragment]) -> MatchSet:
        result = MatchSet()
        for fragment in fragments:
            result.extend(self.examine(fragment))
        return result

    def feature_ids(self) -> Tuple[str, ...]:
        return tuple(m.feature_id for m in self.matchers)

