"""Pytest fixtures.

This file adjusts sys.path for src-layout imports.
"""

# ruff: noqa: E402

import os
import sys

# Ensure `src` is on sys.path so imports like `from docrepo.core...` resolve during tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if os.path.isdir(SRC):
    sys.path.insert(0, SRC)
sys.path.insert(0, ROOT)

import pytest
from rich.traceback import install

from docrepo.core.pagination.config import PaginationConfig
from docrepo.core.pagination.engine import PaginationEngine
from tests.mocks.memory_store import MemoryStore
from tests.utils import make_items

# Enable readable tracebacks in development / test environments.
# Can be disabled with PYTEST_RICH=0
if os.getenv("PYTEST_RICH", "1") == "1":
    install(
        show_locals=True,  # show local variables for each frame
        width=None,  # use terminal width
        word_wrap=True,  # wrap long lines
        extra_lines=1,  # some context around lines
        suppress=["/usr/lib/python3", "site-packages"],  # hide "noisy" third-party frames
    )


@pytest.fixture
def store():
    """Empty in-memory collection."""
    return MemoryStore("items")


@pytest.fixture
def seeded_store():
    """Collection with 25 items; ``score`` repeats every 5 items."""
    return MemoryStore("items", make_items(25))


@pytest.fixture
def engine(seeded_store):
    """Engine over the seeded collection with default settings."""
    return PaginationEngine(seeded_store, PaginationConfig())
