"""
Classification pipeline.

One ClassificationRun per source: SCANNING -> MATCHING -> REPORTED.

- scan(): drive the scanner, collecting fragments and scan diagnostics
- match(): dispatch every fragment to the feature runner
- report(): classify the matches into a FileResult

classify_batch() runs one ClassificationRun per input on a thread pool. The
catalog and matchers are shared read-only; each run owns its scanner, match
set and result, so files never observe each other.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from classifier import ClassificationResult, classify
from core.config import Config
from core.errors import (
    AmbiguousConstruct,
    InputUnreadable,
    RunCancelled,
    RunStateError,
    ScanPartialFailure,
)
from core.utils import debug
from features.catalog import Catalog, build_catalog
from features.runner import FeatureRunner, MatchSet
from scan.fragments import SourceFragment
from scan.scanner import scan


class RunState(Enum):
    SCANNING = "scanning"
    MATCHING = "matching"
    REPORTED = "reported"
    CANCELLED = "cancelled"


class Outcome(Enum):
    """Overall verdict of a batch, with its process exit code."""

    OK = "ok"
    VIOLATION = "violation"
    FAILURE = "failure"

    @property
    def exit_code(self) -> int:
        return {Outcome.OK: 0, Outcome.VIOLATION: 1, Outcome.FAILURE: 2}[self]


@dataclass(frozen=True)
class SourceInput:
    """A source to classify: an in-memory text buffer or a path on disk."""

    name: str
    text: Optional[str] = None
    path: Optional[str] = None

    @classmethod
    def from_path(cls, path: str) -> "SourceInput":
        return cls(name=path, path=path)

    def read(self, encoding: str = "utf-8") -> str:
        if self.text is not None:
            return self.text
        if self.path is None:
            raise InputUnreadable(self.name, "no text or path given")
        try:
            with open(self.path, encoding=encoding) as f:
                return f.read()
        except (OSError, UnicodeDecodeError, LookupError) as e:
            reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
            raise InputUnreadable(self.path, reason) from e


@dataclass(frozen=True)
class FileResult:
    name: str
    result: ClassificationResult
    notes: Tuple[AmbiguousConstruct, ...] = ()
    diagnostics: Tuple[ScanPartialFailure, ...] = ()

    @property
    def required_standard(self) -> int:
        return self.result.required_standard


@dataclass(frozen=True)
class FileFailure:
    name: str
    kind: str
    message: str

    @classmethod
    def from_error(cls, name: str, err: InputUnreadable) -> "FileFailure":
        return cls(name=name, kind=type(err).__name__, message=err.reason)


@dataclass(frozen=True)
class BatchResult:
    """Per-input results in input order; failures are listed separately."""

    entries: Tuple[Union[FileResult, FileFailure], ...]
    floor_standard: int
    fail_on_unknown: bool = False

    @property
    def files(self) -> Tuple[FileResult, ...]:
        return tuple(e for e in self.entries if isinstance(e, FileResult))

    @property
    def failures(self) -> Tuple[FileFailure, ...]:
        return tuple(e for e in self.entries if isinstance(e, FileFailure))

    @property
    def required_standard(self) -> int:
        return max((f.required_standard for f in self.files), default=self.floor_standard)

    @property
    def finding_count(self) -> int:
        return sum(len(f.result.findings) for f in self.files)

    @property
    def outcome(self) -> Outcome:
        if self.failures or not self.entries:
            return Outcome.FAILURE
        if any(f.required_standard > self.floor_standard for f in self.files):
            return Outcome.VIOLATION
        if self.fail_on_unknown and any(f.notes or f.diagnostics for f in self.files):
            return Outcome.VIOLATION
        return Outcome.OK

    @property
    def exit_code(self) -> int:
        return self.outcome.exit_code


class ClassificationRun:
    """
    Classifies one source text.

    Usage:
        run = ClassificationRun(text, "file.cpp", catalog)
        run.scan()
        run.match()
        file_result = run.report()

    or simply run.execute(). cancel() may be called from another thread; the
    run stops at the next fragment boundary with RunCancelled.
    """

    def __init__(
        self,
        text: str,
        name: str,
        catalog: Catalog,
        config: Optional[Config] = None,
        runner: Optional[FeatureRunner] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.text = text
        self.name = name
        self.catalog = catalog
        self.config = config or Config()
        self.runner = runner or FeatureRunner(catalog, disabled=self.config.disabled_features)
        self._cancel = cancel_event or threading.Event()
        self._state = RunState.SCANNING
        self._fragments: List[SourceFragment] = []
        self._diagnostics: Tuple[ScanPartialFailure, ...] = ()
        self._matches: Optional[MatchSet] = None
        self._result: Optional[FileResult] = None

    @property
    def state(self) -> RunState:
        return self._state

    def cancel(self) -> None:
        self._cancel.set()

    def _expect(self, state: RunState, action: str) -> None:
        if self._state != state:
            raise RunStateError(f"Cannot {action} {self.name}: run is {self._state.value}")

    def _check_cancelled(self) -> None:
        if self._cancel.is_set():
            self._state = RunState.CANCELLED
            self._fragments = []
            self._matches = None
            raise RunCancelled(f"Run cancelled: {self.name}")

    def scan(self) -> Tuple[SourceFragment, ...]:
        self._expect(RunState.SCANNING, "scan")
        scanner = scan(self.text, self.name)
        fragments: List[SourceFragment] = []
        for fragment in scanner:
            self._check_cancelled()
            fragments.append(fragment)
        self._check_cancelled()
        self._fragments = fragments
        self._diagnostics = tuple(scanner.diagnostics)
        self._state = RunState.MATCHING
        debug(f"Run[{self.name}]: {len(fragments)} fragments, {len(self._diagnostics)} diagnostics")
        return tuple(fragments)

    def match(self) -> MatchSet:
        self._expect(RunState.MATCHING, "match")
        if self._matches is not None:
            raise RunStateError(f"Cannot match {self.name}: fragments already matched")
        matches = MatchSet()
        for fragment in self._fragments:
            self._check_cancelled()
            matches.extend(self.runner.examine(fragment))
        self._matches = matches
        debug(f"Run[{self.name}]: {len(matches.matches)} matches, {len(matches.notes)} notes")
        return matches

    def report(self) -> FileResult:
        self._expect(RunState.MATCHING, "report")
        if self._matches is None:
            raise RunStateError(f"Cannot report {self.name}: fragments not matched yet")
        result = classify(self._matches.matches, self.catalog, self.config.floor_standard)
        notes = tuple(sorted(self._matches.notes, key=lambda n: (n.offset, self.catalog.index(n.feature_id))))
        self._result = FileResult(self.name, result, notes, self._diagnostics)
        self._fragments = []
        self._state = RunState.REPORTED
        return self._result

    @property
    def result(self) -> FileResult:
        if self._result is None:
            raise RunStateError(f"No result for {self.name}: run is {self._state.value}")
        return self._result

    def execute(self) -> FileResult:
        self.scan()
        self.match()
        return self.report()


def classify_text(
    text: str,
    name: str = "<input>",
    catalog: Optional[Catalog] = None,
    config: Optional[Config] = None,
) -> FileResult:
    """Classify a single in-memory source text."""
    catalog = catalog or build_catalog()
    return ClassificationRun(text, name, catalog, config).execute()


def _classify_input(
    source: SourceInput,
    catalog: Catalog,
    config: Config,
    runner: FeatureRunner,
    cancel_event: Optional[threading.Event],
) -> Union[FileResult, FileFailure]:
    try:
        text = source.read(config.encoding)
    except InputUnreadable as e:
        debug(f"Batch: {e}")
        return FileFailure.from_error(source.name, e)
    run = ClassificationRun(text, source.name, catalog, config, runner, cancel_event)
    return run.execute()


def classify_batch(
    inputs: Sequence[SourceInput],
    config: Optional[Config] = None,
    catalog: Optional[Catalog] = None,
    cancel_event: Optional[threading.Event] = None,
) -> BatchResult:
    """
    Classify every input, in parallel when config.jobs > 1.

    Results keep input order. An unreadable input becomes a FileFailure and
    the rest of the batch continues.
    """
    config = config or Config()
    catalog = catalog or build_catalog()
    runner = FeatureRunner(catalog, disabled=config.disabled_features)

    if config.jobs <= 1 or len(inputs) <= 1:
        entries = [_classify_input(s, catalog, config, runner, cancel_event) for s in inputs]
    else:
        with ThreadPoolExecutor(max_workers=config.jobs) as executor:
            futures = [
                executor.submit(_classify_input, s, catalog, config, runner, cancel_event) for s in inputs
            ]
            entries = [future.result() for future in futures]

    return BatchResult(
        entries=tuple(entries),
        floor_standard=config.floor_standard,
        fail_on_unknown=config.fail_on_unknown,
    )
