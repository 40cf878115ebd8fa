from core.config import Config, OutputFormat
from core.errors import (
    StdgateError,
    InputUnreadable,
    CatalogLookupFailure,
    RunStateError,
    RunCancelled,
    ScanPartialFailure,
    AmbiguousConstruct,
)
from core.standards import KNOWN_STANDARDS, LOWEST_STANDARD, parse_standard, standard_label
from core.utils import debug, info, warn, error

__all__ = [
    "Config",
    "OutputFormat",
    "StdgateError",
    "InputUnreadable",
    "CatalogLookupFailure",
    "RunStateError",
    "RunCancelled",
    "ScanPartialFailure",
    "AmbiguousConstruct",
    "KNOWN_STANDARDS",
    "LOWEST_STANDARD",
    "parse_standard",
    "standard_label",
    "debug",
    "info",
    "warn",
    "error",
]
