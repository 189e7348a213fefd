"""
Loading and saving of the reading progress file.

The file is a YAML mapping from book name to a mapping from range to record:

    Genesis:
      1:1-1:10:
        read_count: 2
        last_read: 2024-01-16

A book whose entries are invalid (unknown name, a range key not written as
'c:v-c:v', out of bounds or overlapping ranges, a record of the wrong type,
a future date) is quarantined rather than repaired; the rest of the file
still loads.
"""

import logging
import os
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from ruamel.yaml import YAML

from versetrack.errors import InvalidRangeError, MalformedPersistedStateError, PersistenceError
from versetrack.ledger import BookLedger
from versetrack.store import Clock, ProgressStore
from versetrack.structure import Versification
from versetrack.types import ReadingRecord, VerseRange

logger = logging.getLogger(__name__)


class PersistedRecord(BaseModel):
    """Defines the expected structure of one persisted record."""

    model_config = ConfigDict(extra="forbid", strict=True)

    read_count: int = Field(ge=1)
    last_read: date

    @field_validator("last_read", mode="before")
    @classmethod
    def _truncate_timestamp(cls, value: Any) -> Any:  # noqa: ANN401
        """Accept ISO strings and full timestamps (older files stored them), keeping only the date."""
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str):
            return date.fromisoformat(value.split("T", 1)[0])
        return value


def _parse_range_key(book: str, key: Any) -> VerseRange:  # noqa: ANN401
    """
    Parse a range key, which must be written exactly as 'c:v-c:v'.

    Raises:
        MalformedPersistedStateError: If the key is not a canonical range

    """
    try:
        verse_range = VerseRange.parse(key) if isinstance(key, str) else None
    except InvalidRangeError as e:
        raise MalformedPersistedStateError(book, str(e)) from e
    if verse_range is None or str(verse_range) != key:
        raise MalformedPersistedStateError(book, f"range key {key!r} is not written as 'c:v-c:v'")
    return verse_range


def _ledger_from_entries(versification: Versification, book: str, entries: Any, today: date) -> BookLedger:  # noqa: ANN401
    """
    Build the ledger of one book from its persisted entries.

    Nothing is coerced or repaired: the entries load exactly as written or
    the whole book is rejected.

    Raises:
        MalformedPersistedStateError: If anything about the entries is invalid

    """
    if book not in versification:
        raise MalformedPersistedStateError(book, "unknown book")
    if entries is None:
        entries = {}
    if not isinstance(entries, dict):
        raise MalformedPersistedStateError(book, "entries must be a mapping of ranges to records")

    records: list[ReadingRecord] = []
    for key, value in entries.items():
        verse_range = _parse_range_key(book, key)
        try:
            persisted = PersistedRecord.model_validate(value)
        except ValidationError as e:
            raise MalformedPersistedStateError(book, f"invalid record for {key}: {e}") from e
        if persisted.last_read > today:
            raise MalformedPersistedStateError(book, f"last_read {persisted.last_read.isoformat()} of {key} is in the future")
        records.append(ReadingRecord(verse_range, persisted.read_count, persisted.last_read))

    return BookLedger.from_records(versification.outline(book), records)


def load_progress(path: str | Path, versification: Versification | None = None, clock: Clock = date.today) -> ProgressStore:
    """
    Load the progress file into a new store.

    A missing or empty file yields an empty store. Books with invalid data
    are quarantined in the returned store and logged as warnings.

    Args:
        path: The progress file
        versification: Canonical book list (defaults to the bundled one)
        clock: Clock handed to the store

    Raises:
        MalformedPersistedStateError: If the file as a whole is unreadable

    """
    store = ProgressStore(versification, clock)
    progress_path = Path(path)
    if not progress_path.is_file():
        logger.info("No progress file at %s, starting with an empty store", progress_path)
        return store

    try:
        with progress_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise MalformedPersistedStateError(None, f"invalid YAML: {e}") from e
    except OSError as e:
        raise MalformedPersistedStateError(None, f"cannot read {progress_path}: {e}") from e

    if data is None:
        return store
    if not isinstance(data, dict):
        raise MalformedPersistedStateError(None, "the top level must be a mapping of book names")

    today = store.clock()
    for book, entries in data.items():
        try:
            ledger = _ledger_from_entries(store.versification, str(book), entries, today)
        except MalformedPersistedStateError as error:
            logger.warning("Book '%s' is blocked until the progress file is fixed: %s", book, error.reason)
            store.quarantine(str(book), error, entries)
            continue
        store.attach(ledger)

    logger.info("Loaded progress for %d book(s) from %s", sum(1 for _ in store.all()), progress_path)
    return store


def dump_progress(store: ProgressStore) -> dict[str, Any]:
    """Convert a store into the plain mapping that is written to disk."""
    document: dict[str, Any] = {}
    for book, ledger in store.all():
        document[book] = {str(record.range): {"read_count": record.read_count, "last_read": record.last_read} for record in ledger}
    document.update(store.quarantined_data())
    return document


def save_progress(store: ProgressStore, path: str | Path) -> None:
    """
    Write the store to the progress file.

    The file is written to a temporary sibling first and then swapped in, so
    either the whole new content lands or the old file is left untouched.

    Raises:
        PersistenceError: If the file could not be written

    """
    progress_path = Path(path)
    temp_path = progress_path.with_name(progress_path.name + ".tmp")

    yaml_handler = YAML()
    yaml_handler.default_flow_style = False
    # Shared date objects must not turn into anchors and aliases.
    yaml_handler.representer.ignore_aliases = lambda *_: True

    try:
        progress_path.parent.mkdir(parents=True, exist_ok=True)
        with temp_path.open("w", encoding="utf-8") as f:
            yaml_handler.dump(dump_progress(store), f)
        os.replace(temp_path, progress_path)
    except OSError as e:
        temp_path.unlink(missing_ok=True)
        msg = f"Failed to save progress to {progress_path}: {e}"
        raise PersistenceError(msg) from e

    logger.debug("Saved progress to %s", progress_path)
