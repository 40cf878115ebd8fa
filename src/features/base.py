"""
Base class for feature matchers.

A matcher recognises exactly one catalog feature in the fragments the scanner
emits. Matchers are stateless and never see more than one fragment at a time;
everything they need (neighbouring tokens, enclosing scope facts) travels on
the fragment itself.

The matching flow:
1. The runner hands a fragment to every matcher whose `kinds` include its kind
2. examine() returns an Outcome:
   - Unambiguous(match): the feature is definitely present
   - Ambiguous(...): the shape could go either way without semantic analysis
   - NO_MATCH: the feature is not present
3. Ambiguous outcomes become notes; they never raise the required standard
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Sequence, Tuple, Union

from core.errors import AmbiguousConstruct
from scan.fragments import FragmentKind, SourceFragment, SourceLocation
from scan.lexer import Token


@dataclass(frozen=True)
class Match:
    """One feature found at one place."""

    feature_id: str
    location: SourceLocation
    offset: int
    matched_text: str


@dataclass(frozen=True)
class Unambiguous:
    match: Match


@dataclass(frozen=True)
class Ambiguous:
    feature_id: str
    location: SourceLocation
    offset: int
    text: str
    reason: str
    candidates: Tuple[str, ...] = field(default_factory=tuple)

    def to_construct(self) -> AmbiguousConstruct:
        return AmbiguousConstruct(
            feature_id=self.feature_id,
            line=self.location.line,
            column=self.location.column,
            offset=self.offset,
            text=self.text,
            reason=self.reason,
            candidates=self.candidates,
        )


class _NoMatch:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "NO_MATCH"

    def __bool__(self):
        return False


NO_MATCH = _NoMatch()

Outcome = Union[Unambiguous, Ambiguous, _NoMatch]


class FeatureMatcher(ABC):
    """
    Abstract base class for feature matchers.

    Subclasses must set:
    - feature_id: Catalog id of the feature (e.g., "static-call-operator")
    - kinds: Fragment kinds the matcher examines

    and implement examine().
    """

    feature_id: str = "unknown"
    kinds: FrozenSet[FragmentKind] = frozenset()

    @abstractmethod
    def examine(self, fragment: SourceFragment) -> Outcome:
        """Decide whether fragment exhibits the feature."""
        pass

    def match(self, fragment: SourceFragment) -> List[Match]:
        """Zero or one match for fragment; ambiguous shapes yield none."""
        outcome = self.examine(fragment)
        if isinstance(outcome, Unambiguous):
            return [outcome.match]
        return []

    # Outcome builders

    def found(
        self, fragment: SourceFragment, tokens: Optional[Sequence[Token]] = None
    ) -> Unambiguous:
        """Unambiguous match located at tokens (default: the whole fragment)."""
        if not tokens:
            return Unambiguous(
                Match(self.feature_id, fragment.location, fragment.start_offset, fragment.text)
            )
        first, last = tokens[0], tokens[-1]
        text = _slice(fragment, first.offset, last.end)
        location = SourceLocation(fragment.file, first.line, first.column)
        return Unambiguous(Match(self.feature_id, location, first.offset, text))

    def ambiguous(
        self,
        fragment: SourceFragment,
        reason: str,
        candidates: Sequence[str] = (),
        tokens: Optional[Sequence[Token]] = None,
    ) -> Ambiguous:
        if tokens:
            first, last = tokens[0], tokens[-1]
            location = SourceLocation(fragment.file, first.line, first.column)
            return Ambiguous(
                self.feature_id,
                location,
                first.offset,
                _slice(fragment, first.offset, last.end),
                reason,
                tuple(candidates),
            )
        return Ambiguous(
            self.feature_id,
            fragment.location,
            fragment.start_offset,
            fragment.text,
            reason,
            tuple(candidates),
        )

    def __repr__(self):
        return f"{type(self).__name__}({self.feature_id})"


def _slice(fragment: SourceFragment, start: int, end: int) -> str:
    """Text of fragment between two absolute offsets."""
    base = fragment.start_offset
    return fragment.text[start - base : end - base]
