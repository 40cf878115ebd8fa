"""
CLI utilities: source collection and input construction.
"""

from cli.helpers import (
    CPP_EXTENSIONS,
    collect_source_files,
    collect_inputs,
)

__all__ = [
    "CPP_EXTENSIONS",
    "collect_source_files",
    "collect_inputs",
]
