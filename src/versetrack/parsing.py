"""Parsing of chapter and verse selections typed on the command line."""

from versetrack.errors import InvalidRangeError, OutOfBoundsError
from versetrack.structure import BookOutline
from versetrack.types import VerseLocus, VerseRange


def _parse_number(text: str, what: str) -> int:
    value = text.strip()
    if not value.isdigit():
        msg = f"Invalid {what} number: '{text}'"
        raise InvalidRangeError(msg)
    return int(value)


def _parse_span(text: str, what: str) -> tuple[int, int]:
    """Parse 'n' or 'a-b' into an inclusive (first, last) pair."""
    first_text, sep, last_text = text.partition("-")
    first = _parse_number(first_text, what)
    last = _parse_number(last_text, what) if sep else first
    if first > last:
        msg = f"Invalid {what} range: {first}-{last}"
        raise InvalidRangeError(msg)
    return first, last


def parse_verse_spans(text: str, max_verse: int) -> list[tuple[int, int]]:
    """
    Parse a verse selection such as '1-5,7' into inclusive (first, last) pairs.

    An empty selection means the whole chapter.

    Raises:
        InvalidRangeError: If the selection is malformed
        OutOfBoundsError: If a verse exceeds max_verse or is 0

    """
    if not text.strip():
        return [(1, max_verse)]

    spans = []
    for part in text.split(","):
        first, last = _parse_span(part, "verse")
        if first < 1 or last > max_verse:
            msg = f"Invalid verse range: {part.strip()} (max: {max_verse})"
            raise OutOfBoundsError(msg)
        spans.append((first, last))
    return spans


def parse_chapter_span(text: str, chapter_count: int) -> tuple[int, int]:
    """
    Parse a chapter selection such as '3' or '3-5'.

    Raises:
        InvalidRangeError: If the selection is malformed
        OutOfBoundsError: If a chapter does not exist

    """
    first, last = _parse_span(text, "chapter")
    for chapter in (first, last):
        if chapter < 1 or chapter > chapter_count:
            msg = f"Chapter {chapter} doesn't exist (max: {chapter_count})"
            raise OutOfBoundsError(msg)
    return first, last


def build_targets(outline: BookOutline, chapters: str | None, verses: str | None) -> list[VerseRange]:
    """
    Turn a chapter and verse selection into the ranges to apply.

    - no chapters: the whole book
    - a chapter span ('3-5'): one range over those whole chapters
    - a single chapter with verses ('3', '1-5,7'): one range per verse span

    Raises:
        InvalidRangeError: If the selection is malformed or out of bounds

    """
    if not chapters or not chapters.strip():
        if verses and verses.strip():
            msg = "Verses can only be given together with a chapter"
            raise InvalidRangeError(msg)
        return [outline.whole_book()]

    first, last = parse_chapter_span(chapters, outline.chapter_count)
    if first != last:
        if verses and verses.strip():
            msg = "Verses can only be given for a single chapter"
            raise InvalidRangeError(msg)
        return [outline.chapters_range(first, last)]

    spans = parse_verse_spans(verses or "", outline.verse_count(first))
    return [VerseRange(VerseLocus(first, start), VerseLocus(first, end)) for start, end in spans]
