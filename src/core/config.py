"""
Run configuration, read from the environment and overridden by CLI flags.

Environment variables (a .env file is loaded by main.py when present):
    STDGATE_FLOOR            floor standard, e.g. 20 or c++20
    STDGATE_FORMAT           human | machine
    STDGATE_FAIL_ON_UNKNOWN  1/true to treat ambiguity notes and scan diagnostics as violations
    STDGATE_JOBS             number of files classified in parallel
    STDGATE_ENCODING         source text encoding
    STDGATE_DISABLE          comma-separated feature ids to skip
"""

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Mapping, Optional, Tuple

from core.standards import LOWEST_STANDARD, parse_standard

DEFAULT_JOBS = min(os.cpu_count() or 2, 8)

_TRUE_VALUES = {"1", "true", "yes", "on"}


class OutputFormat(Enum):
    """Report output formats."""

    HUMAN = "human"
    MACHINE = "machine"

    @classmethod
    def from_string(cls, s: str) -> "OutputFormat":
        s_lower = s.lower().strip()
        # Short aliases accepted on the command line
        if s_lower == "json":
            return cls.MACHINE
        if s_lower == "text":
            return cls.HUMAN
        for fmt in cls:
            if fmt.value == s_lower:
                return fmt
        raise ValueError(f"Unknown output format: {s}")


@dataclass(frozen=True)
class Config:
    floor_standard: int = LOWEST_STANDARD
    output_format: OutputFormat = OutputFormat.HUMAN
    fail_on_unknown: bool = False
    jobs: int = DEFAULT_JOBS
    encoding: str = "utf-8"
    disabled_features: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Build a config from STDGATE_* variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        config = cls()

        floor = env.get("STDGATE_FLOOR")
        if floor:
            config = replace(config, floor_standard=parse_standard(floor))

        fmt = env.get("STDGATE_FORMAT")
        if fmt:
            config = replace(config, output_format=OutputFormat.from_string(fmt))

        fail_on_unknown = env.get("STDGATE_FAIL_ON_UNKNOWN")
        if fail_on_unknown:
            config = replace(config, fail_on_unknown=fail_on_unknown.strip().lower() in _TRUE_VALUES)

        jobs = env.get("STDGATE_JOBS")
        if jobs:
            try:
                config = replace(config, jobs=max(1, int(jobs)))
            except ValueError:
                raise ValueError(f"STDGATE_JOBS must be an integer, got: {jobs}") from None

        encoding = env.get("STDGATE_ENCODING")
        if encoding:
            config = replace(config, encoding=encoding)

        disabled = env.get("STDGATE_DISABLE")
        if disabled:
            ids = tuple(part.strip() for part in disabled.split(",") if part.strip())
            config = replace(config, disabled_features=ids)

        return config
