"""
Error kinds raised and recorded while classifying sources.

Per-file problems (unreadable input, unscannable regions, undecidable
constructs) never abort a batch: InputUnreadable is caught by the pipeline and
listed as a failure, ScanPartialFailure and AmbiguousConstruct are plain
records attached to the run. CatalogLookupFailure and RunStateError signal
programming errors and propagate.
"""

from dataclasses import dataclass
from typing import Tuple


class StdgateError(Exception):
    """Base class for all stdgate errors."""

    pass


class InputUnreadable(StdgateError):
    """Raised when a source file is missing or cannot be decoded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read {path}: {reason}")


class CatalogLookupFailure(StdgateError, KeyError):
    """Raised when a feature id is not present in the catalog."""

    def __init__(self, feature_id: str):
        self.feature_id = feature_id
        super().__init__(feature_id)

    def __str__(self) -> str:
        return f"Unknown feature id: {self.feature_id}"


class RunStateError(StdgateError):
    """Raised when a classification run is driven out of order."""

    pass


class RunCancelled(StdgateError):
    """Raised when a run is abandoned at a fragment boundary."""

    pass


@dataclass(frozen=True)
class ScanPartialFailure:
    """A region the scanner could not tokenize; scanning continued past it."""

    line: int
    column: int
    message: str

    def __str__(self) -> str:
        return f"{self.line}:{self.column}: {self.message}"


@dataclass(frozen=True)
class AmbiguousConstruct:
    """A construct a matcher declined to classify without semantic analysis."""

    feature_id: str
    line: int
    column: int
    offset: int
    text: str
    reason: str
    candidates: Tuple[str, ...] = ()
