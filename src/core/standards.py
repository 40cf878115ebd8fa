"""
Language standard ordinals.
"""

from typing import Tuple

# Ordered from oldest to newest
KNOWN_STANDARDS: Tuple[int, ...] = (20, 23)

LOWEST_STANDARD = KNOWN_STANDARDS[0]

_PREFIXES = ("c++", "cxx", "cpp", "c")


def parse_standard(value: str) -> int:
    """Parse a standard from '23', 'c++23', 'cxx23' or 'C++23'."""
    text = str(value).strip().lower()
    for prefix in _PREFIXES:
        if text.startswith(prefix):
            text = text[len(prefix) :]
            break
    if not text.isdigit() or int(text) not in KNOWN_STANDARDS:
        known = ", ".join(str(s) for s in KNOWN_STANDARDS)
        raise ValueError(f"Unknown standard: {value} (known: {known})")
    return int(text)


def standard_label(standard: int) -> str:
    return f"C++{standard}"
