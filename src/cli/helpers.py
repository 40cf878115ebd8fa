"""
CLI helper functions: source collection and input construction.
"""

import sys
from pathlib import Path
from typing import List, Optional, TextIO

from core.utils import debug, warn
from pipeline import SourceInput

# C++ source and header extensions collected from directories
CPP_EXTENSIONS = {
    ".cpp",
    ".cc",
    ".cxx",
    ".c++",
    ".cppm",
    ".ixx",
    ".h",
    ".hh",
    ".hpp",
    ".hxx",
    ".h++",
    ".ipp",
    ".tpp",
    ".inl",
}

STDIN_NAME = "<stdin>"


def _is_hidden(path: Path, root: Path) -> bool:
    """Check if any path component below root starts with a dot (.git, .cache, ...)."""
    return any(part.startswith(".") for part in path.relative_to(root).parts)


def collect_source_files(input_path: str) -> List[str]:
    """Collect C++ source files from a path (file or directory)."""
    path = Path(input_path)
    if not path.exists():
        return []
    if path.is_file():
        return [str(path)]
    if path.is_dir():
        source_files = []
        for file_path in path.rglob("*"):
            if not file_path.is_file() or _is_hidden(file_path, path):
                continue
            if file_path.suffix.lower() in CPP_EXTENSIONS:
                source_files.append(str(file_path))
        return sorted(source_files)
    return []


def collect_inputs(paths: List[str], stdin: Optional[TextIO] = None) -> List[SourceInput]:
    """
    Turn CLI path arguments into SourceInputs.

    '-' reads stdin. Missing paths are kept so they surface as unreadable
    inputs in the report instead of disappearing silently.
    """
    inputs: List[SourceInput] = []
    for arg in paths:
        if arg == "-":
            stream = stdin if stdin is not None else sys.stdin
            inputs.append(SourceInput(name=STDIN_NAME, text=stream.read()))
            continue
        path = Path(arg)
        if path.is_dir():
            files = collect_source_files(arg)
            if not files:
                warn(f"No C++ source files found in: {arg}")
            debug(f"Collected {len(files)} file(s) from {arg}")
            inputs.extend(SourceInput.from_path(f) for f in files)
        else:
            inputs.append(SourceInput.from_path(arg))
    return inputs
