"""Shared pytest fixtures for the VerseTrack test-suite."""

import logging
from collections.abc import Iterator
from datetime import date

import pytest

from versetrack.ledger import BookLedger
from versetrack.store import ProgressStore
from versetrack.structure import BookOutline, Testament, Versification

TODAY = date(2024, 1, 16)


def small_versification() -> Versification:
    """Build a tiny three-book structure with easy-to-reason-about chapter sizes."""
    return Versification(
        [
            BookOutline("Genesis", (20, 15, 10), Testament.OLD),
            BookOutline("Exodus", (5, 5), Testament.OLD),
            BookOutline("John", (12, 8), Testament.NEW),
        ]
    )


@pytest.fixture
def versification() -> Versification:
    """Provide the small test structure."""
    return small_versification()


@pytest.fixture
def genesis(versification: Versification) -> BookOutline:
    """Provide the outline of Genesis (chapters of 20, 15 and 10 verses)."""
    return versification.outline("Genesis")


@pytest.fixture
def ledger(genesis: BookOutline) -> BookLedger:
    """Provide an empty Genesis ledger."""
    return BookLedger(genesis)


@pytest.fixture
def store(versification: Versification) -> ProgressStore:
    """Provide an empty store whose clock is frozen at TODAY."""
    return ProgressStore(versification, clock=lambda: TODAY)


@pytest.fixture
def clean_root_logger() -> Iterator[logging.Logger]:
    """Restore the root logger handlers and level after a test that calls setup_logging()."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
