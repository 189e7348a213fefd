"""
Read-only aggregation queries over ledgers and stores.

These feed the dashboard/status views:
- chapter_rollup() / book_rollup() / testament_rollup(): how many times a chapter, book or testament has been read in full
- PassageListing: the records of every chapter that has been read at least partially
- recent_reads(): which chapters were read on which recent dates
"""

from __future__ import annotations

import itertools
from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from versetrack.types import ReadingRecord, VerseRange

if TYPE_CHECKING:
    from versetrack.ledger import BookLedger
    from versetrack.store import ProgressStore
    from versetrack.structure import Testament


@dataclass(frozen=True)
class Rollup:
    """
    Aggregated reading statistics over a chapter, a book or a testament.

    Attributes:
        count: Times the whole scope has been read, i.e. the minimum read count
            over all of its verses (unread verses count as 0)
        last_read: Most recent date among the records achieving that minimum,
            None when count is 0
        covered: True when every verse of the scope has been read at least once
        latest_read: Most recent date of any record touching the scope
        verses_read_more: Number of verses read more often than `count`
        total_verses: Number of verses in the scope

    """

    count: int
    last_read: date | None
    covered: bool
    latest_read: date | None = None
    verses_read_more: int = 0
    total_verses: int = 0


@dataclass(frozen=True)
class ChapterPassages:
    """The records of one chapter, clipped to the chapter and ordered by start, with its unread ranges."""

    book: str
    chapter: int
    records: tuple[ReadingRecord, ...]
    gaps: tuple[VerseRange, ...] = ()


def _clipped_pieces(ledger: BookLedger, scope: VerseRange) -> list[tuple[ReadingRecord, int]]:
    """Return (record, number of its verses inside the scope) for every record touching the scope."""
    pieces: list[tuple[ReadingRecord, int]] = []
    for record in ledger.overlapping(scope):
        clipped = record.range.intersection(scope)
        if clipped is not None:
            pieces.append((record, ledger.outline.span_length(clipped)))
    return pieces


def _summarize(pieces: list[tuple[ReadingRecord, int]], total: int) -> Rollup:
    """Compute the minimum-count floor and related statistics over clipped pieces."""
    covered_verses = sum(length for _, length in pieces)
    latest = max((record.last_read for record, _ in pieces), default=None)

    # Any unread verse pulls the floor down to 0.
    if covered_verses < total:
        return Rollup(
            count=0,
            last_read=None,
            covered=False,
            latest_read=latest,
            verses_read_more=covered_verses,
            total_verses=total,
        )

    floor = min(record.read_count for record, _ in pieces)
    floor_date = max(record.last_read for record, _ in pieces if record.read_count == floor)
    more = sum(length for record, length in pieces if record.read_count > floor)
    return Rollup(
        count=floor,
        last_read=floor_date,
        covered=True,
        latest_read=latest,
        verses_read_more=more,
        total_verses=total,
    )


def _rollup(ledger: BookLedger, scope: VerseRange) -> Rollup:
    return _summarize(_clipped_pieces(ledger, scope), ledger.outline.span_length(scope))


def chapter_rollup(ledger: BookLedger, chapter: int) -> Rollup:
    """
    Return how many times a chapter has been read in full.

    Raises:
        OutOfBoundsError: If the chapter does not exist

    """
    return _rollup(ledger, ledger.outline.chapter_range(chapter))


def book_rollup(ledger: BookLedger) -> Rollup:
    """Return how many times the whole book has been read in full."""
    return _rollup(ledger, ledger.outline.whole_book())


def testament_rollup(store: ProgressStore, testament: Testament) -> Rollup:
    """
    Return how many times a whole testament has been read in full.

    Every verse of every book of the testament counts, so a single unread
    book keeps the count at 0.

    Raises:
        MalformedPersistedStateError: If one of its books is quarantined

    """
    pieces: list[tuple[ReadingRecord, int]] = []
    total = 0
    for book in store.versification.books_in(testament):
        ledger = store.view(book)
        pieces.extend(_clipped_pieces(ledger, ledger.outline.whole_book()))
        total += ledger.outline.total_verses
    return _summarize(pieces, total)


def _clip_by_chapter(ledger: BookLedger) -> Iterator[tuple[int, ReadingRecord]]:
    """Yield (chapter, record clipped to that chapter) pairs in ledger order."""
    outline = ledger.outline
    for record in ledger:
        for chapter in range(record.range.start.chapter, record.range.end.chapter + 1):
            clipped = record.range.clamp_to_chapter(chapter, outline)
            if clipped is not None:
                yield chapter, record.with_range(clipped)


def iter_chapter_passages(ledger: BookLedger) -> Iterator[ChapterPassages]:
    """Lazily yield one ChapterPassages per chapter of the ledger that has records."""
    for chapter, group in itertools.groupby(_clip_by_chapter(ledger), key=lambda pair: pair[0]):
        records = tuple(record for _, record in group)
        yield ChapterPassages(ledger.book, chapter, records, tuple(ledger.gaps(chapter)))


class PassageListing:
    """
    A lazy, finite and restartable listing of read passages.

    Chapters are ordered by canonical book order, then chapter number. Every
    iteration walks the store afresh, so the listing always reflects the
    current state.
    """

    def __init__(self, store: ProgressStore, books: Iterable[str] | None = None) -> None:
        """
        Create a listing over a store.

        Args:
            store: The store to list
            books: Restrict the listing to these canonical book names

        """
        self._store = store
        self._books = frozenset(books) if books is not None else None

    def __iter__(self) -> Iterator[ChapterPassages]:
        """Start a new pass over the store."""
        for book, ledger in self._store.all():
            if self._books is not None and book not in self._books:
                continue
            yield from iter_chapter_passages(ledger)


def recent_reads(store: ProgressStore, since: date) -> list[tuple[date, list[tuple[str, int]]]]:
    """
    Group the chapters read on or after `since` by their last-read date.

    Returns:
        (date, [(book, chapter), ...]) pairs, newest date first; within a
        date, chapters are in canonical order

    """
    by_date: defaultdict[date, list[tuple[str, int]]] = defaultdict(list)
    for passages in PassageListing(store):
        for record in passages.records:
            if record.last_read < since:
                continue
            entry = (passages.book, passages.chapter)
            if entry not in by_date[record.last_read]:
                by_date[record.last_read].append(entry)
    return sorted(by_date.items(), key=lambda item: item[0], reverse=True)

