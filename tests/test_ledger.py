"""Tests for the per-book reading ledger."""

import random
import unittest
from datetime import date, timedelta

import pytest

from versetrack.errors import InvalidCountError, InvalidDateError, MalformedPersistedStateError, OutOfBoundsError
from versetrack.ledger import BookLedger, coalesce_records
from versetrack.structure import BookOutline
from versetrack.types import ReadingRecord, VerseLocus, VerseRange

JAN_15 = date(2024, 1, 15)
JAN_16 = date(2024, 1, 16)
DEC_01 = date(2023, 12, 1)


def _all_loci(outline: BookOutline) -> list[VerseLocus]:
    return [VerseLocus(chapter, verse) for chapter in range(1, outline.chapter_count + 1) for verse in range(1, outline.verse_count(chapter) + 1)]


def _count_at(ledger: BookLedger, locus: VerseLocus) -> int:
    return next((record.read_count for record in ledger.records if locus in record.range), 0)


def _assert_disjoint_and_sorted(ledger: BookLedger) -> None:
    records = ledger.records
    for previous, current in zip(records, records[1:]):
        assert previous.range.end < current.range.start


class TestGenesisScenarios(unittest.TestCase):
    """The reference scenarios on Genesis chapter 1."""

    def setUp(self) -> None:
        """Set up an empty Genesis ledger."""
        self.ledger = BookLedger(BookOutline("Genesis", (20, 15, 10)))

    def test_first_reading_creates_one_record(self) -> None:
        """1. First Reading: A single record with count 1."""
        affected = self.ledger.record(VerseRange.of(1, 1, 1, 10), JAN_15)

        expected = [ReadingRecord(VerseRange.of(1, 1, 1, 10), 1, JAN_15)]
        assert self.ledger.records == expected
        assert affected == expected

    def test_overlapping_reading_splits_into_three(self) -> None:
        """2. Overlap: Old remainder, incremented overlap, fresh tail."""
        self.ledger.record(VerseRange.of(1, 1, 1, 10), JAN_15)
        affected = self.ledger.record(VerseRange.of(1, 5, 1, 15), JAN_16)

        assert self.ledger.records == [
            ReadingRecord(VerseRange.of(1, 1, 1, 4), 1, JAN_15),
            ReadingRecord(VerseRange.of(1, 5, 1, 10), 2, JAN_16),
            ReadingRecord(VerseRange.of(1, 11, 1, 15), 1, JAN_16),
        ]
        assert affected == self.ledger.records[1:]

    def test_manual_set_discards_prior_fragments(self) -> None:
        """3. Manual Set: One record replaces every fragment inside the target."""
        self.ledger.record(VerseRange.of(1, 1, 1, 10), JAN_15)
        self.ledger.record(VerseRange.of(1, 5, 1, 15), JAN_16)

        affected = self.ledger.manual_set(VerseRange.of(1, 1, 1, 15), 5, DEC_01, JAN_16)

        expected = [ReadingRecord(VerseRange.of(1, 1, 1, 15), 5, DEC_01)]
        assert self.ledger.records == expected
        assert affected == expected


class TestRecord(unittest.TestCase):
    """Test suite for incremental readings."""

    def setUp(self) -> None:
        """Set up an empty Genesis ledger."""
        self.outline = BookOutline("Genesis", (20, 15, 10))
        self.ledger = BookLedger(self.outline)

    def test_same_day_adjacent_readings_coalesce(self) -> None:
        """1. Coalescing: Adjacent readings on the same day become one record."""
        self.ledger.record(VerseRange.of(1, 1, 1, 5), JAN_15)
        self.ledger.record(VerseRange.of(1, 6, 1, 10), JAN_15)
        assert self.ledger.records == [ReadingRecord(VerseRange.of(1, 1, 1, 10), 1, JAN_15)]

    def test_coalescing_across_chapter_boundary(self) -> None:
        """2. Chapter Boundary: 1:20 and 2:1 are adjacent and merge."""
        self.ledger.record(self.outline.chapter_range(1), JAN_15)
        self.ledger.record(self.outline.chapter_range(2), JAN_15)
        assert self.ledger.records == [ReadingRecord(VerseRange.of(1, 1, 2, 15), 1, JAN_15)]

    def test_different_dates_do_not_coalesce(self) -> None:
        """3. No Merge: Adjacent records with different dates stay apart."""
        self.ledger.record(VerseRange.of(1, 1, 1, 5), JAN_15)
        self.ledger.record(VerseRange.of(1, 6, 1, 10), JAN_16)
        assert len(self.ledger) == 2

    def test_gap_filling(self) -> None:
        """4. Gaps: Reading across holes increments covered parts and fills the holes."""
        self.ledger.record(VerseRange.of(1, 3, 1, 4), JAN_15)
        self.ledger.record(VerseRange.of(1, 8, 1, 9), JAN_15)
        self.ledger.record(VerseRange.of(1, 1, 1, 10), JAN_16)

        assert self.ledger.records == [
            ReadingRecord(VerseRange.of(1, 1, 1, 2), 1, JAN_16),
            ReadingRecord(VerseRange.of(1, 3, 1, 4), 2, JAN_16),
            ReadingRecord(VerseRange.of(1, 5, 1, 7), 1, JAN_16),
            ReadingRecord(VerseRange.of(1, 8, 1, 9), 2, JAN_16),
            ReadingRecord(VerseRange.of(1, 10, 1, 10), 1, JAN_16),
        ]

    def test_interior_reading_splits_record(self) -> None:
        """5. Interior Split: Reading inside a record leaves two remainders."""
        self.ledger.record(self.outline.chapter_range(1), JAN_15)
        self.ledger.record(VerseRange.of(1, 5, 1, 6), JAN_16)

        assert self.ledger.records == [
            ReadingRecord(VerseRange.of(1, 1, 1, 4), 1, JAN_15),
            ReadingRecord(VerseRange.of(1, 5, 1, 6), 2, JAN_16),
            ReadingRecord(VerseRange.of(1, 7, 1, 20), 1, JAN_15),
        ]

    def test_out_of_bounds_leaves_ledger_unchanged(self) -> None:
        """6. Bounds: An out-of-bounds range raises and changes nothing."""
        self.ledger.record(VerseRange.of(1, 1, 1, 5), JAN_15)
        with pytest.raises(OutOfBoundsError):
            self.ledger.record(VerseRange.of(1, 1, 1, 25), JAN_16)
        assert self.ledger.records == [ReadingRecord(VerseRange.of(1, 1, 1, 5), 1, JAN_15)]

    def test_uncovered_and_gaps(self) -> None:
        """7. Uncovered: The unread parts of a range and of a chapter."""
        self.ledger.record(VerseRange.of(1, 3, 1, 4), JAN_15)
        self.ledger.record(VerseRange.of(1, 10, 2, 2), JAN_15)

        assert self.ledger.uncovered(VerseRange.of(1, 1, 2, 5)) == [
            VerseRange.of(1, 1, 1, 2),
            VerseRange.of(1, 5, 1, 9),
            VerseRange.of(2, 3, 2, 5),
        ]
        assert self.ledger.gaps(2) == [VerseRange.of(2, 3, 2, 15)]
        assert self.ledger.gaps(3) == [VerseRange.of(3, 1, 3, 10)]

    def test_point_counts(self) -> None:
        """8. Point Counts: Count of a single verse, 0 when unread."""
        self.ledger.record(VerseRange.of(1, 1, 1, 10), JAN_15)
        self.ledger.record(VerseRange.of(1, 5, 1, 15), JAN_16)
        assert _count_at(self.ledger, VerseLocus(1, 1)) == 1
        assert _count_at(self.ledger, VerseLocus(1, 7)) == 2
        assert _count_at(self.ledger, VerseLocus(1, 16)) == 0


class TestManualSet(unittest.TestCase):
    """Test suite for authoritative overwrites."""

    def setUp(self) -> None:
        """Set up a Genesis ledger with some history."""
        self.outline = BookOutline("Genesis", (20, 15, 10))
        self.ledger = BookLedger(self.outline)
        self.ledger.record(VerseRange.of(1, 1, 1, 10), JAN_15)
        self.ledger.record(VerseRange.of(1, 5, 1, 15), JAN_16)

    def test_history_outside_target_is_kept(self) -> None:
        """1. Outside: Only the target is overwritten."""
        self.ledger.manual_set(VerseRange.of(1, 3, 1, 12), 4, DEC_01, JAN_16)

        assert self.ledger.records == [
            ReadingRecord(VerseRange.of(1, 1, 1, 2), 1, JAN_15),
            ReadingRecord(VerseRange.of(1, 3, 1, 12), 4, DEC_01),
            ReadingRecord(VerseRange.of(1, 13, 1, 15), 1, JAN_16),
        ]

    def test_invalid_count(self) -> None:
        """2. Count: Counts below 1 are rejected before anything changes."""
        before = self.ledger.records
        with pytest.raises(InvalidCountError):
            self.ledger.manual_set(VerseRange.of(1, 1, 1, 5), 0, DEC_01, JAN_16)
        assert self.ledger.records == before

    def test_future_date(self) -> None:
        """3. Date: A last-read date after today is rejected."""
        with pytest.raises(InvalidDateError):
            self.ledger.manual_set(VerseRange.of(1, 1, 1, 5), 1, JAN_16 + timedelta(days=1), JAN_16)

    def test_out_of_bounds(self) -> None:
        """4. Bounds: An out-of-bounds target is rejected."""
        with pytest.raises(OutOfBoundsError):
            self.ledger.manual_set(VerseRange.of(4, 1, 4, 2), 1, DEC_01, JAN_16)

    def test_merges_with_matching_neighbour(self) -> None:
        """5. Coalescing: The new record merges with an adjacent identical one."""
        self.ledger.manual_set(VerseRange.of(1, 16, 1, 20), 1, JAN_16, JAN_16)
        assert self.ledger.records[-1] == ReadingRecord(VerseRange.of(1, 11, 1, 20), 1, JAN_16)


class TestLedgerInvariants(unittest.TestCase):
    """Property-style checks over a random sequence of operations."""

    def test_random_operations_keep_invariants(self) -> None:
        """1. Invariants: Disjoint, monotonic counts for record(), exact overwrite for manual_set()."""
        rng = random.Random(1234)
        outline = BookOutline("Genesis", (20, 15, 10))
        ledger = BookLedger(outline)
        loci = _all_loci(outline)
        day = date(2024, 1, 1)

        for _ in range(200):
            first, last = sorted(rng.sample(range(len(loci)), 2))
            target = VerseRange(loci[first], loci[last])
            before = {locus: _count_at(ledger, locus) for locus in loci}
            day += timedelta(days=rng.randint(0, 1))

            if rng.random() < 0.8:
                ledger.record(target, day)
                for locus in loci:
                    expected = before[locus] + 1 if locus in target else before[locus]
                    assert _count_at(ledger, locus) == expected
            else:
                count = rng.randint(1, 5)
                ledger.manual_set(target, count, day, day)
                assert ledger.overlapping(target)[0].range.covers(target)
                for locus in loci:
                    expected = count if locus in target else before[locus]
                    assert _count_at(ledger, locus) == expected

            _assert_disjoint_and_sorted(ledger)
            # Coalescing is already complete after every mutation.
            assert coalesce_records(ledger.records, outline) == ledger.records


class TestFromRecords(unittest.TestCase):
    """Test suite for building ledgers from untrusted records."""

    def setUp(self) -> None:
        """Set up the Genesis outline."""
        self.outline = BookOutline("Genesis", (20, 15, 10))

    def test_valid_records_are_kept_as_is(self) -> None:
        """1. Valid: Records are sorted but not coalesced."""
        records = [
            ReadingRecord(VerseRange.of(1, 6, 1, 10), 1, JAN_15),
            ReadingRecord(VerseRange.of(1, 1, 1, 5), 1, JAN_15),
        ]
        ledger = BookLedger.from_records(self.outline, records)
        assert ledger.records == [records[1], records[0]]

    def test_overlap_is_rejected(self) -> None:
        """2. Overlap: Overlapping records raise MalformedPersistedStateError."""
        records = [
            ReadingRecord(VerseRange.of(1, 1, 1, 10), 1, JAN_15),
            ReadingRecord(VerseRange.of(1, 10, 1, 12), 1, JAN_15),
        ]
        with pytest.raises(MalformedPersistedStateError, match="overlap") as exc_info:
            BookLedger.from_records(self.outline, records)
        assert exc_info.value.book == "Genesis"

    def test_out_of_bounds_is_rejected(self) -> None:
        """3. Bounds: Records outside the book raise MalformedPersistedStateError."""
        with pytest.raises(MalformedPersistedStateError, match="out of bounds"):
            BookLedger.from_records(self.outline, [ReadingRecord(VerseRange.of(5, 1, 5, 2), 1, JAN_15)])

    def test_equality(self) -> None:
        """4. Equality: Ledgers of the same book with the same records are equal."""
        a = BookLedger(self.outline)
        b = BookLedger(self.outline)
        a.record(VerseRange.of(1, 1, 1, 3), JAN_15)
        b.record(VerseRange.of(1, 1, 1, 3), JAN_15)
        assert a == b
        b.record(VerseRange.of(1, 1, 1, 3), JAN_15)
        assert a != b
