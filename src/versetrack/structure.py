"""
Document structure: the canonical book list and per-book chapter/verse bounds.

The bundled structure (data/kjv.yaml) follows the King James Version. A custom
structure file with the same shape can be supplied through the configuration.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, PositiveInt, ValidationError

from versetrack.errors import OutOfBoundsError, UnknownBookError
from versetrack.types import VerseLocus, VerseRange

logger = logging.getLogger(__name__)

DEFAULT_STRUCTURE_RESOURCE = "kjv.yaml"


class Testament(str, Enum):
    """The two top-level groups of the canonical book list."""

    OLD = "old_testament"
    NEW = "new_testament"

    @property
    def label(self) -> str:
        """Return the display name, e.g. 'Old Testament'."""
        return self.value.replace("_", " ").title()


@dataclass(frozen=True)
class BookOutline:
    """
    Chapter and verse bounds of one book.

    Attributes:
        name: Canonical book name
        verse_counts: Number of verses of each chapter, chapter 1 first
        testament: The testament the book belongs to

    """

    name: str
    verse_counts: tuple[int, ...]
    testament: Testament = Testament.OLD

    @property
    def chapter_count(self) -> int:
        """Return the number of chapters of the book."""
        return len(self.verse_counts)

    @property
    def total_verses(self) -> int:
        """Return the number of verses of the whole book."""
        return sum(self.verse_counts)

    def has_chapter(self, chapter: int) -> bool:
        """Check whether the chapter exists in this book."""
        return 1 <= chapter <= self.chapter_count

    def verse_count(self, chapter: int) -> int:
        """
        Return the number of verses of a chapter.

        Raises:
            OutOfBoundsError: If the chapter does not exist

        """
        if not self.has_chapter(chapter):
            msg = f"Chapter {chapter} doesn't exist in {self.name} (max: {self.chapter_count})"
            raise OutOfBoundsError(msg)
        return self.verse_counts[chapter - 1]

    def contains(self, locus: VerseLocus) -> bool:
        """Check whether the locus exists in this book."""
        return self.has_chapter(locus.chapter) and locus.verse <= self.verse_counts[locus.chapter - 1]

    def validate(self, verse_range: VerseRange) -> None:
        """
        Ensure both ends of a range exist in this book.

        Raises:
            OutOfBoundsError: If either end lies outside the book

        """
        for locus in (verse_range.start, verse_range.end):
            if not self.contains(locus):
                msg = f"{self.name} {locus} is out of bounds"
                if self.has_chapter(locus.chapter):
                    msg += f" (chapter {locus.chapter} has {self.verse_counts[locus.chapter - 1]} verses)"
                else:
                    msg += f" (max chapter: {self.chapter_count})"
                raise OutOfBoundsError(msg)

    def first(self) -> VerseLocus:
        """Return the first verse of the book."""
        return VerseLocus(1, 1)

    def last(self) -> VerseLocus:
        """Return the last verse of the book."""
        return VerseLocus(self.chapter_count, self.verse_counts[-1])

    def successor(self, locus: VerseLocus) -> VerseLocus | None:
        """Return the verse right after the locus, crossing chapter boundaries; None at the end of the book."""
        if locus.verse < self.verse_count(locus.chapter):
            return VerseLocus(locus.chapter, locus.verse + 1)
        if locus.chapter < self.chapter_count:
            return VerseLocus(locus.chapter + 1, 1)
        return None

    def predecessor(self, locus: VerseLocus) -> VerseLocus | None:
        """Return the verse right before the locus, crossing chapter boundaries; None at the start of the book."""
        if locus.verse > 1:
            return VerseLocus(locus.chapter, locus.verse - 1)
        if locus.chapter > 1:
            return VerseLocus(locus.chapter - 1, self.verse_count(locus.chapter - 1))
        return None

    def chapter_range(self, chapter: int) -> VerseRange:
        """
        Return the range covering a whole chapter.

        Raises:
            OutOfBoundsError: If the chapter does not exist

        """
        last_verse = self.verse_count(chapter)
        return VerseRange(VerseLocus(chapter, 1), VerseLocus(chapter, last_verse))

    def chapters_range(self, first_chapter: int, last_chapter: int) -> VerseRange:
        """Return the range covering consecutive whole chapters."""
        return VerseRange(self.chapter_range(first_chapter).start, self.chapter_range(last_chapter).end)

    def whole_book(self) -> VerseRange:
        """Return the range covering the whole book."""
        return VerseRange(self.first(), self.last())

    def span_length(self, verse_range: VerseRange) -> int:
        """Count the verses inside a range of this book."""
        start, end = verse_range.start, verse_range.end
        if start.chapter == end.chapter:
            return end.verse - start.verse + 1
        total = self.verse_count(start.chapter) - start.verse + 1
        total += sum(self.verse_counts[start.chapter : end.chapter - 1])
        return total + end.verse


class StructureFile(BaseModel):
    """Defines the expected YAML layout of a structure file."""

    model_config = ConfigDict(extra="forbid")

    old_testament: dict[str, list[PositiveInt]]
    new_testament: dict[str, list[PositiveInt]]


class Versification:
    """The canonical, ordered list of books together with their outlines."""

    def __init__(self, outlines: list[BookOutline]) -> None:
        """Index the outlines by name, keeping their canonical order."""
        self._outlines: dict[str, BookOutline] = {}
        for outline in outlines:
            if outline.name in self._outlines:
                msg = f"Duplicate book in structure: '{outline.name}'"
                raise ValueError(msg)
            if not outline.verse_counts:
                msg = f"Book '{outline.name}' has no chapters"
                raise ValueError(msg)
            self._outlines[outline.name] = outline
        self._order = {name: index for index, name in enumerate(self._outlines)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Versification:
        """
        Build a Versification from a parsed structure file.

        Raises:
            ValueError: If the data does not match the expected layout

        """
        try:
            parsed = StructureFile.model_validate(data)
        except ValidationError as e:
            msg = f"Invalid structure definition: {e}"
            raise ValueError(msg) from e

        outlines = [BookOutline(name, tuple(counts), Testament.OLD) for name, counts in parsed.old_testament.items()]
        outlines += [BookOutline(name, tuple(counts), Testament.NEW) for name, counts in parsed.new_testament.items()]
        return cls(outlines)

    @classmethod
    def load(cls, path: str | Path) -> Versification:
        """
        Load a structure file from disk.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not a valid structure definition

        """
        structure_path = Path(path)
        if not structure_path.is_file():
            msg = f"Structure file not found at: {structure_path}"
            raise FileNotFoundError(msg)
        with structure_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
        logger.debug("Loaded document structure from %s", structure_path)
        return cls.from_dict(data if isinstance(data, dict) else {})

    @classmethod
    def default(cls) -> Versification:
        """Return the bundled King James Version structure."""
        return _load_default()

    @property
    def books(self) -> list[str]:
        """Return the canonical book names in order."""
        return list(self._outlines)

    def books_in(self, testament: Testament) -> list[str]:
        """Return the canonical book names of one testament."""
        return [name for name, outline in self._outlines.items() if outline.testament == testament]

    def __contains__(self, book: object) -> bool:
        """Support `book in versification`."""
        return book in self._outlines

    def __iter__(self) -> Iterator[BookOutline]:
        """Iterate over the outlines in canonical order."""
        return iter(self._outlines.values())

    def __len__(self) -> int:
        """Return the number of books."""
        return len(self._outlines)

    def outline(self, book: str) -> BookOutline:
        """
        Return the outline of a book by its canonical name.

        Raises:
            UnknownBookError: If the name is not in the canonical list

        """
        try:
            return self._outlines[book]
        except KeyError:
            raise UnknownBookError(book) from None

    def position(self, book: str) -> int:
        """Return the canonical position of a book, used as a sort key."""
        try:
            return self._order[book]
        except KeyError:
            raise UnknownBookError(book) from None

    def resolve(self, name: str) -> str:
        """
        Resolve user input to a canonical book name.

        Matching is case-insensitive and ignores surrounding/duplicate
        whitespace. An exact name wins; otherwise the input must be the prefix
        of exactly one book (e.g. 'gen' -> 'Genesis', '1 cor' -> '1 Corinthians').

        Raises:
            UnknownBookError: If nothing or more than one book matches

        """
        needle = " ".join(name.split()).casefold()
        if not needle:
            raise UnknownBookError(name)

        for book in self._outlines:
            if book.casefold() == needle:
                return book

        candidates = [book for book in self._outlines if book.casefold().startswith(needle)]
        if len(candidates) == 1:
            return candidates[0]
        if candidates:
            logger.debug("Ambiguous book name '%s' matches %s", name, candidates)
        raise UnknownBookError(name)


@lru_cache(maxsize=1)
def _load_default() -> Versification:
    """Load and cache the bundled structure file."""
    text = (resources.files("versetrack") / "data" / DEFAULT_STRUCTURE_RESOURCE).read_text(encoding="utf-8")
    return Versification.from_dict(yaml.safe_load(text))
