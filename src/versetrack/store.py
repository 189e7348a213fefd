"""The progress store: one BookLedger per canonical book."""

import logging
from collections.abc import Callable, Iterable, Iterator
from datetime import date
from typing import Any

from versetrack.errors import MalformedPersistedStateError, UnknownBookError
from versetrack.ledger import BookLedger
from versetrack.queries import PassageListing, Rollup, book_rollup, chapter_rollup, recent_reads, testament_rollup
from versetrack.structure import Testament, Versification
from versetrack.types import ReadingRecord, VerseRange

logger = logging.getLogger(__name__)

Clock = Callable[[], date]


class ProgressStore:
    """
    Top-level aggregate mapping book names to their ledgers.

    Ledgers are created lazily on first use. Books whose persisted data could
    not be loaded are quarantined: they keep their raw data (so it is written
    back untouched) and refuse every mutation until the file is fixed.
    """

    def __init__(self, versification: Versification | None = None, clock: Clock = date.today) -> None:
        """
        Create an empty store.

        Args:
            versification: Canonical book list and bounds (defaults to the bundled KJV structure)
            clock: Returns the current date

        """
        self.versification = versification or Versification.default()
        self.clock = clock
        self._ledgers: dict[str, BookLedger] = {}
        self._quarantine: dict[str, tuple[MalformedPersistedStateError, Any]] = {}

    def __eq__(self, other: object) -> bool:
        """Stores are equal when their non-empty ledgers are equal."""
        if not isinstance(other, ProgressStore):
            return NotImplemented
        return dict(self.all()) == dict(other.all())

    __hash__ = None  # type: ignore[assignment]

    def _check_quarantine(self, book: str) -> None:
        if book in self._quarantine:
            raise self._quarantine[book][0]

    def ledger(self, book: str) -> BookLedger:
        """
        Return the ledger of a book, creating an empty one if needed.

        Raises:
            UnknownBookError: If the book is not in the canonical list
            MalformedPersistedStateError: If the book is quarantined

        """
        self._check_quarantine(book)
        if book not in self._ledgers:
            self._ledgers[book] = BookLedger(self.versification.outline(book))
        return self._ledgers[book]

    def get(self, book: str) -> BookLedger | None:
        """Return the ledger of a book without creating it."""
        return self._ledgers.get(book)

    def attach(self, ledger: BookLedger) -> None:
        """
        Install a fully built ledger, replacing any existing one.

        Raises:
            UnknownBookError: If the ledger's book is not in the canonical list

        """
        if ledger.book not in self.versification:
            raise UnknownBookError(ledger.book)
        self._quarantine.pop(ledger.book, None)
        self._ledgers[ledger.book] = ledger

    def quarantine(self, book: str, error: MalformedPersistedStateError, raw: Any) -> None:  # noqa: ANN401
        """Block a book whose persisted data is malformed, keeping its raw data."""
        self._ledgers.pop(book, None)
        self._quarantine[book] = (error, raw)

    @property
    def quarantined(self) -> dict[str, MalformedPersistedStateError]:
        """Return the quarantined books and why they were blocked."""
        return {book: error for book, (error, _) in self._quarantine.items()}

    def quarantined_data(self) -> dict[str, Any]:
        """Return the untouched raw data of the quarantined books."""
        return {book: raw for book, (_, raw) in self._quarantine.items()}

    def all(self) -> Iterator[tuple[str, BookLedger]]:
        """Iterate over (book, ledger) pairs in canonical order, skipping empty ledgers."""
        for book in sorted(self._ledgers, key=self.versification.position):
            ledger = self._ledgers[book]
            if len(ledger):
                yield book, ledger

    # --- Mutations -------------------------------------------------------

    def record(self, book: str, target: VerseRange, today: date | None = None) -> list[ReadingRecord]:
        """
        Record one more reading of a range of a book.

        Args:
            book: Canonical book name
            target: The range that was read
            today: Reading date (defaults to the clock)

        Returns:
            The affected records

        """
        ledger = self.ledger(book)
        affected = ledger.record(target, today or self.clock())
        logger.info("Recorded reading of %s %s", book, target)
        return affected

    def manual_set(
        self,
        book: str,
        target: VerseRange,
        count: int,
        last_read: date | None = None,
        today: date | None = None,
    ) -> list[ReadingRecord]:
        """
        Overwrite the reading history of a range of a book.

        Args:
            book: Canonical book name
            target: The range to overwrite
            count: The new read count
            last_read: The new last-read date (defaults to today)
            today: The current date (defaults to the clock)

        Returns:
            The affected records

        """
        current = today or self.clock()
        ledger = self.ledger(book)
        affected = ledger.manual_set(target, count, last_read or current, current)
        logger.info("Set %s %s to %dx", book, target, count)
        return affected

    # --- Queries ---------------------------------------------------------

    def view(self, book: str) -> BookLedger:
        """
        Return the ledger of a book for reading, without storing a new one.

        Raises:
            UnknownBookError: If the book is not in the canonical list
            MalformedPersistedStateError: If the book is quarantined

        """
        self._check_quarantine(book)
        return self._ledgers.get(book) or BookLedger(self.versification.outline(book))

    def chapter_rollup(self, book: str, chapter: int) -> Rollup:
        """Return the rollup of one chapter of a book."""
        return chapter_rollup(self.view(book), chapter)

    def book_rollup(self, book: str) -> Rollup:
        """Return the rollup of a whole book."""
        return book_rollup(self.view(book))

    def testament_rollup(self, testament: Testament) -> Rollup:
        """Return the rollup of every book of a testament."""
        return testament_rollup(self, testament)

    def passages(self, books: Iterable[str] | None = None) -> PassageListing:
        """Return a restartable listing of the read passages."""
        return PassageListing(self, books)

    def recent_reads(self, since: date) -> list[tuple[date, list[tuple[str, int]]]]:
        """Return the chapters read since a date, grouped by date."""
        return recent_reads(self, since)
