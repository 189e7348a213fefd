"""
Value types for verse positions, verse ranges and reading records.

Main components:
- VerseLocus: A (chapter, verse) point inside a book, totally ordered
- VerseRange: An inclusive [start, end] interval of loci, possibly spanning chapters
- ReadingRecord: A range together with how often and when it was last read

Operations that need to step from one verse to the next (set difference,
adjacency) take a BookOutline, since only the document structure knows where
a chapter ends.

Usage example:
    >>> r = VerseRange(VerseLocus(1, 1), VerseLocus(1, 15))
    >>> hole = VerseRange(VerseLocus(1, 5), VerseLocus(1, 10))
    >>> [str(piece) for piece in r.difference(hole, outline)]
    ['1:1-1:4', '1:11-1:15']
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import date
from typing import TYPE_CHECKING

from versetrack.errors import InvalidCountError, InvalidRangeError

if TYPE_CHECKING:
    from versetrack.structure import BookOutline

_LOCUS_PATTERN = re.compile(r"^\s*(\d+)\s*:\s*(\d+)\s*$")


@dataclass(frozen=True, order=True)
class VerseLocus:
    """A single verse position, ordered by chapter first and verse second."""

    chapter: int
    verse: int

    def __post_init__(self) -> None:
        """Reject chapter or verse numbers below 1."""
        if self.chapter < 1 or self.verse < 1:
            msg = f"Invalid locus {self.chapter}:{self.verse}: chapter and verse must be >= 1"
            raise InvalidRangeError(msg)

    def __str__(self) -> str:
        """Return the locus in 'chapter:verse' notation."""
        return f"{self.chapter}:{self.verse}"

    @classmethod
    def parse(cls, text: str) -> VerseLocus:
        """Parse a locus written as 'chapter:verse'."""
        match = _LOCUS_PATTERN.match(text)
        if not match:
            msg = f"Invalid locus '{text}'. Expected 'chapter:verse'."
            raise InvalidRangeError(msg)
        return cls(int(match.group(1)), int(match.group(2)))


@dataclass(frozen=True, order=True)
class VerseRange:
    """
    An inclusive interval of loci.

    Attributes:
        start: First locus of the range (inclusive)
        end: Last locus of the range (inclusive), never before start

    """

    start: VerseLocus
    end: VerseLocus

    def __post_init__(self) -> None:
        """Reject ranges whose start lies after their end."""
        if self.start > self.end:
            msg = f"Invalid range: start ({self.start}) cannot be after end ({self.end})"
            raise InvalidRangeError(msg)

    def __str__(self) -> str:
        """Return the range in 'c:v-c:v' notation."""
        return f"{self.start}-{self.end}"

    def __contains__(self, locus: object) -> bool:
        """Support `locus in verse_range`."""
        return isinstance(locus, VerseLocus) and self.contains(locus)

    @classmethod
    def parse(cls, text: str) -> VerseRange:
        """
        Parse a range written as 'c:v-c:v' (or a single 'c:v').

        Raises:
            InvalidRangeError: If the text is not a well-formed range

        """
        start_text, sep, end_text = text.partition("-")
        start = VerseLocus.parse(start_text)
        end = VerseLocus.parse(end_text) if sep else start
        return cls(start, end)

    @classmethod
    def of(cls, start_chapter: int, start_verse: int, end_chapter: int, end_verse: int) -> VerseRange:
        """Build a range from four plain integers."""
        return cls(VerseLocus(start_chapter, start_verse), VerseLocus(end_chapter, end_verse))

    def contains(self, locus: VerseLocus) -> bool:
        """Check whether the locus lies inside this range."""
        return self.start <= locus <= self.end

    def covers(self, other: VerseRange) -> bool:
        """Check whether the other range lies entirely inside this range."""
        return self.start <= other.start and other.end <= self.end

    def overlaps(self, other: VerseRange) -> bool:
        """Check whether the two closed intervals share at least one locus."""
        return self.start <= other.end and other.start <= self.end

    def intersection(self, other: VerseRange) -> VerseRange | None:
        """Return the shared sub-range, or None if the ranges are disjoint."""
        if not self.overlaps(other):
            return None
        return VerseRange(max(self.start, other.start), min(self.end, other.end))

    def difference(self, other: VerseRange, outline: BookOutline) -> list[VerseRange]:
        """
        Subtract the other range from this one.

        Returns 0, 1 or 2 ranges: the left remainder (if any) followed by the
        right remainder (if any). Subtracting an interior range splits this
        range in two.

        Args:
            other: The range to remove
            outline: Supplies the verse before/after a boundary

        """
        if not self.overlaps(other):
            return [self]

        pieces: list[VerseRange] = []
        if self.start < other.start:
            before = outline.predecessor(other.start)
            if before is not None:
                pieces.append(VerseRange(self.start, before))
        if other.end < self.end:
            after = outline.successor(other.end)
            if after is not None:
                pieces.append(VerseRange(after, self.end))
        return pieces

    def is_adjacent_to(self, other: VerseRange, outline: BookOutline) -> bool:
        """Check whether the other range starts right after this one ends."""
        return outline.successor(self.end) == other.start

    def clamp_to_chapter(self, chapter: int, outline: BookOutline) -> VerseRange | None:
        """
        Return the part of this range inside one chapter, or None if they do not meet.

        Raises:
            OutOfBoundsError: If the chapter does not exist

        """
        return self.intersection(outline.chapter_range(chapter))


@dataclass(frozen=True)
class ReadingRecord:
    """
    States that an exact range has been read `read_count` times, last on `last_read`.

    Records have no identity of their own: two records with the same range,
    count and date are equal.
    """

    range: VerseRange
    read_count: int
    last_read: date

    def __post_init__(self) -> None:
        """Validate the read count."""
        if self.read_count < 1:
            msg = f"Invalid read count {self.read_count}: must be at least 1"
            raise InvalidCountError(msg)

    def __str__(self) -> str:
        """Return a compact description used in logs."""
        return f"{self.range} x{self.read_count} @ {self.last_read.isoformat()}"

    def with_range(self, new_range: VerseRange) -> ReadingRecord:
        """Return a copy of this record covering a different range."""
        return replace(self, range=new_range)

    def same_reading(self, other: ReadingRecord) -> bool:
        """Check whether both records carry the same count and date."""
        return self.read_count == other.read_count and self.last_read == other.last_read
