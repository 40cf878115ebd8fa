import os
import sys
from pathlib import Path

import pytest


# Ensure the project `src` directory is on sys.path so tests can import
# modules like `pipeline`, `scan.scanner`, `features.catalog`, etc.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"

if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

# Reporter colors are fixed at import time
os.environ.setdefault("STDGATE_NO_COLORS", "1")


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep STDGATE_* variables from the developer's shell out of every test."""
    for name in list(os.environ):
        if name.startswith("STDGATE_") and name not in ("STDGATE_NO_COLORS", "STDGATE_DEBUG"):
            monkeypatch.delenv(name, raising=False)
    yield
