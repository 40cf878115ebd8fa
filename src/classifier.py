"""
Classifier: folds a match set into the minimum required standard.
"""

from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Tuple

from features.base import Match
from features.catalog import Catalog


@dataclass(frozen=True)
class ClassificationResult:
    required_standard: int
    # Ordered by offset, then catalog order
    findings: Tuple[Match, ...] = ()
    by_feature: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))


def finding_order(catalog: Catalog):
    """Sort key placing matches by source offset, then catalog order."""

    def key(match: Match):
        return (match.offset, catalog.index(match.feature_id), match.location.line, match.matched_text)

    return key


def classify(matches: Iterable[Match], catalog: Catalog, floor: int) -> ClassificationResult:
    """
    Compute the minimum standard a set of matches requires.

    The result depends only on the multiset of matches, never on their order.
    With no findings the configured floor is the answer.
    """
    findings = tuple(sorted(matches, key=finding_order(catalog)))
    if not findings:
        return ClassificationResult(required_standard=floor)

    required = max(catalog.lookup(m.feature_id).min_standard for m in findings)
    counts = Counter(m.feature_id for m in findings)
    by_feature = {d.id: counts[d.id] for d in catalog.all() if d.id in counts}
    return ClassificationResult(
        required_standard=required,
        findings=findings,
        by_feature=MappingProxyType(by_feature),
    )
