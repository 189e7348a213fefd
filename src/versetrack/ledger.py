"""
Per-book reading ledger.

A BookLedger keeps the reading records of one book as a list of disjoint verse
ranges sorted by start. Two mutations update it:

- record(): incremental reading. Overlapped fragments get their count
  incremented, unread fragments start at 1, everything is stamped today.
- manual_set(): authoritative overwrite. Overlapped fragments are discarded
  and a single record for the whole target range replaces them.

Both split every overlapping record into the part hit by the target range and
the untouched remainders, then run one coalescing pass that merges adjacent
records carrying the same count and date.

Usage example:
    >>> ledger = BookLedger(outline)
    >>> ledger.record(VerseRange.of(1, 1, 1, 10), date(2024, 1, 15))
    >>> ledger.record(VerseRange.of(1, 5, 1, 15), date(2024, 1, 16))
    >>> [str(r) for r in ledger]
    ['1:1-1:4 x1 @ 2024-01-15', '1:5-1:10 x2 @ 2024-01-16', '1:11-1:15 x1 @ 2024-01-16']
"""

import logging
from collections.abc import Callable, Iterable, Iterator
from datetime import date

from versetrack.errors import InvalidCountError, InvalidDateError, MalformedPersistedStateError, OutOfBoundsError
from versetrack.structure import BookOutline
from versetrack.types import ReadingRecord, VerseLocus, VerseRange

logger = logging.getLogger(__name__)

# Maps (existing record, hit sub-range) to the record replacing the hit, or None to drop it.
HitTransform = Callable[[ReadingRecord, VerseRange], ReadingRecord | None]


def _start_key(record: ReadingRecord) -> VerseLocus:
    return record.range.start


def coalesce_records(records: Iterable[ReadingRecord], outline: BookOutline) -> list[ReadingRecord]:
    """
    Merge adjacent records that carry the same read count and date.

    Algorithm: sort by range start, then linearly scan and extend the last
    kept record whenever the next one starts right after it with the same
    reading. Records must already be disjoint.

    Args:
        records: Disjoint records, in any order
        outline: Supplies the successor function used for adjacency

    Returns:
        Sorted, coalesced records

    """
    ordered = sorted(records, key=_start_key)
    if not ordered:
        return []

    merged: list[ReadingRecord] = [ordered[0]]
    for current in ordered[1:]:
        last = merged[-1]
        if last.same_reading(current) and last.range.is_adjacent_to(current.range, outline):
            merged[-1] = last.with_range(VerseRange(last.range.start, current.range.end))
        else:
            merged.append(current)
    return merged


class BookLedger:
    """
    The non-overlapping set of reading records of one book.

    Attributes:
        outline: Chapter/verse bounds of the book, also used to step between verses

    """

    def __init__(self, outline: BookOutline, records: Iterable[ReadingRecord] = ()) -> None:
        """
        Create a ledger from records that are already known to be disjoint.

        Use from_records() for untrusted input.
        """
        self.outline = outline
        self._records: list[ReadingRecord] = sorted(records, key=_start_key)

    @classmethod
    def from_records(cls, outline: BookOutline, records: Iterable[ReadingRecord]) -> "BookLedger":
        """
        Build a ledger from untrusted (e.g. persisted) records.

        Records are neither repaired nor coalesced: the ledger holds exactly
        what was given, or nothing at all.

        Raises:
            MalformedPersistedStateError: If a record is out of bounds or two records overlap

        """
        ordered = sorted(records, key=_start_key)
        for record in ordered:
            try:
                outline.validate(record.range)
            except OutOfBoundsError as e:
                raise MalformedPersistedStateError(outline.name, str(e)) from e

        for previous, current in zip(ordered, ordered[1:]):
            if previous.range.overlaps(current.range):
                reason = f"ranges {previous.range} and {current.range} overlap"
                raise MalformedPersistedStateError(outline.name, reason)

        return cls(outline, ordered)

    @property
    def book(self) -> str:
        """Return the canonical name of the book."""
        return self.outline.name

    @property
    def records(self) -> list[ReadingRecord]:
        """Return a copy of the records, sorted by range start."""
        return list(self._records)

    def __iter__(self) -> Iterator[ReadingRecord]:
        """Iterate over the records in order."""
        return iter(list(self._records))

    def __len__(self) -> int:
        """Return the number of records."""
        return len(self._records)

    def __eq__(self, other: object) -> bool:
        """Ledgers are equal when they belong to the same book and hold the same records."""
        if not isinstance(other, BookLedger):
            return NotImplemented
        return self.book == other.book and self._records == other._records

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Return a debugging representation."""
        return f"BookLedger({self.book!r}, {[str(r) for r in self._records]})"

    # --- Queries ---------------------------------------------------------

    def overlapping(self, target: VerseRange) -> list[ReadingRecord]:
        """Return the records sharing at least one verse with the target, in order."""
        hits: list[ReadingRecord] = []
        for record in self._records:
            if record.range.start > target.end:
                break
            if record.range.overlaps(target):
                hits.append(record)
        return hits

    def uncovered(self, target: VerseRange) -> list[VerseRange]:
        """
        Return the sub-ranges of the target not covered by any record.

        This is the target minus the union of all record ranges.
        """
        gaps: list[VerseRange] = []
        cursor: VerseLocus | None = target.start

        for record in self.overlapping(target):
            if record.range.start > cursor:
                before = self.outline.predecessor(record.range.start)
                if before is not None:
                    gaps.append(VerseRange(cursor, before))
            if record.range.end >= target.end:
                cursor = None
                break
            cursor = self.outline.successor(record.range.end)
            if cursor is None:
                break

        if cursor is not None and cursor <= target.end:
            gaps.append(VerseRange(cursor, target.end))
        return gaps

    def gaps(self, chapter: int) -> list[VerseRange]:
        """Return the unread verse ranges of a chapter."""
        return self.uncovered(self.outline.chapter_range(chapter))

    # --- Mutations -------------------------------------------------------

    def record(self, target: VerseRange, today: date) -> list[ReadingRecord]:
        """
        Record one more reading of the target range.

        Every verse of the target ends up covered by exactly one record whose
        count is one higher than before (1 if it was unread) and whose date is
        today. Verses outside the target keep their records unchanged.

        Returns:
            The records of the updated ledger that intersect the target

        Raises:
            OutOfBoundsError: If the range does not exist in the book

        """
        self.outline.validate(target)

        def increment(existing: ReadingRecord, hit: VerseRange) -> ReadingRecord:
            return ReadingRecord(hit, existing.read_count + 1, today)

        fresh = [ReadingRecord(gap, 1, today) for gap in self.uncovered(target)]
        kept, replaced = self._split_overlapping(target, increment)
        self._records = kept + replaced + fresh
        self.coalesce()

        logger.debug("Recorded %s %s on %s (%d new fragment(s))", self.book, target, today, len(fresh))
        return self.overlapping(target)

    def manual_set(self, target: VerseRange, count: int, last_read: date, today: date) -> list[ReadingRecord]:
        """
        Overwrite the reading history of the target range.

        Any history inside the target is discarded, whatever its granularity,
        and replaced by a single record {target, count, last_read}. History
        outside the target is kept.

        Args:
            target: The range to overwrite
            count: The new read count (>= 1)
            last_read: The new last-read date, not after today
            today: The current date, upper bound for last_read

        Returns:
            The records of the updated ledger that intersect the target

        Raises:
            InvalidCountError: If count < 1
            InvalidDateError: If last_read lies after today
            OutOfBoundsError: If the range does not exist in the book

        """
        if count < 1:
            msg = f"Invalid read count {count}: must be at least 1"
            raise InvalidCountError(msg)
        if last_read > today:
            msg = f"Invalid date {last_read.isoformat()}: cannot be in the future (today is {today.isoformat()})"
            raise InvalidDateError(msg)
        self.outline.validate(target)

        def discard(_existing: ReadingRecord, _hit: VerseRange) -> None:
            return None

        kept, _ = self._split_overlapping(target, discard)
        self._records = [*kept, ReadingRecord(target, count, last_read)]
        self.coalesce()

        logger.debug("Set %s %s to %dx on %s", self.book, target, count, last_read)
        return self.overlapping(target)

    def coalesce(self) -> None:
        """Merge adjacent records with identical count and date, and re-sort."""
        self._records = coalesce_records(self._records, self.outline)

    def _split_overlapping(self, target: VerseRange, transform_hit: HitTransform) -> tuple[list[ReadingRecord], list[ReadingRecord]]:
        """
        Split every record overlapping the target into its hit and its remainders.

        Remainders keep the original count and date. Each hit is passed to
        transform_hit, whose result (if not None) replaces it.

        Returns:
            A tuple of (kept records, replacement records)

        """
        kept: list[ReadingRecord] = []
        replaced: list[ReadingRecord] = []

        for index, record in enumerate(self._records):
            if record.range.start > target.end:
                kept.extend(self._records[index:])
                break

            hit = record.range.intersection(target)
            if hit is None:
                kept.append(record)
                continue

            kept.extend(record.with_range(piece) for piece in record.range.difference(target, self.outline))
            replacement = transform_hit(record, hit)
            if replacement is not None:
                replaced.append(replacement)

        return kept, replaced
