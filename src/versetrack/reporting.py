"""Text formatting for the command-line reports."""

from collections.abc import Iterable
from datetime import date

from .queries import ChapterPassages, Rollup
from .types import VerseRange


def format_read_count(rollup: Rollup) -> str:
    """
    Format a rollup as '0%', '2x', '2x + 3/20 verses' or '2x + 15%'.

    Unread scopes show the share of verses read so far. Partially re-read
    scopes show the extra verses as a fraction, or as a percentage for
    scopes of 100 verses or more.
    """
    total = rollup.total_verses
    if rollup.count == 0:
        if not total or not rollup.verses_read_more:
            return "0%"
        return f"{rollup.verses_read_more * 100 // total}%"

    if rollup.verses_read_more == 0 or rollup.verses_read_more == total:
        return f"{rollup.count}x"

    if total >= 100:
        percentage = round(rollup.verses_read_more / total * 100)
        if percentage >= 100:
            return f"{rollup.count}x"
        return f"{rollup.count}x + {percentage}%"
    return f"{rollup.count}x + {rollup.verses_read_more}/{total} verses"


def format_last_read(last_read: date | None, today: date) -> str:
    """Describe a date relative to today (e.g. 'yesterday', '3 weeks ago')."""
    if last_read is None:
        return "never"

    days_ago = (today - last_read).days
    if days_ago == 0:
        result = "today"
    elif days_ago == 1:
        result = "yesterday"
    elif 2 <= days_ago <= 7:
        result = f"{days_ago} days ago"
    elif 8 <= days_ago <= 14:
        result = "last week"
    elif 15 <= days_ago <= 30:
        result = f"{days_ago // 7} weeks ago"
    elif 31 <= days_ago <= 60:
        months = days_ago // 30
        result = "1 month ago" if months == 1 else f"{months} months ago"
    else:
        result = last_read.isoformat()
    return result


def consolidate_chapters(entries: Iterable[tuple[str, int]]) -> str:
    """
    Join (book, chapter) entries, collapsing consecutive chapters.

    Example: Psalms 23, Psalms 24, Psalms 25, John 3 -> 'Psalms 23-25, John 3'.
    Books keep the order of their first appearance.
    """
    chapters_by_book: dict[str, set[int]] = {}
    for book, chapter in entries:
        chapters_by_book.setdefault(book, set()).add(chapter)

    parts: list[str] = []
    for book, chapters in chapters_by_book.items():
        ordered = sorted(chapters)
        run_start = run_end = ordered[0]
        for chapter in ordered[1:]:
            if chapter == run_end + 1:
                run_end = chapter
                continue
            parts.append(_format_run(book, run_start, run_end))
            run_start = run_end = chapter
        parts.append(_format_run(book, run_start, run_end))
    return ", ".join(parts)


def _format_run(book: str, first: int, last: int) -> str:
    return f"{book} {first}" if first == last else f"{book} {first}-{last}"


def _format_verses(verse_range: VerseRange) -> str:
    start, end = verse_range.start, verse_range.end
    return f"v{start.verse}" if start == end else f"v{start.verse}-{end.verse}"


def format_passages(passages: ChapterPassages, today: date) -> list[str]:
    """
    Render one chapter of the passage listing as indented lines.

    Read records and unread ranges are interleaved in verse order, e.g.
    '  v1-4: 1x, today' followed by '  v5-20: unread'.
    """
    entries: list[tuple[VerseRange, str]] = [
        (record.range, f"{record.read_count}x, {format_last_read(record.last_read, today)}") for record in passages.records
    ]
    entries.extend((gap, "unread") for gap in passages.gaps)
    entries.sort(key=lambda entry: entry[0].start)

    lines = [f"{passages.book} {passages.chapter}"]
    lines.extend(f"  {_format_verses(verse_range)}: {text}" for verse_range, text in entries)
    return lines
