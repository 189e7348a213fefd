"""Exception hierarchy for VerseTrack."""


class VerseTrackError(Exception):
    """Base class for every error raised by VerseTrack."""


class InvalidRangeError(VerseTrackError, ValueError):
    """Raised when a locus or range is structurally invalid (e.g. start after end)."""


class OutOfBoundsError(InvalidRangeError):
    """Raised when a locus lies outside the chapters or verses of its book."""


class InvalidCountError(VerseTrackError, ValueError):
    """Raised when a read count is smaller than 1."""


class InvalidDateError(VerseTrackError, ValueError):
    """Raised when a reading date lies in the future."""


class UnknownBookError(VerseTrackError, LookupError):
    """Raised when a book name is not part of the canonical book list."""

    def __init__(self, book: str) -> None:
        """Store the offending book name."""
        super().__init__(f"Unknown book: '{book}'")
        self.book = book


class MalformedPersistedStateError(VerseTrackError):
    """
    Raised when persisted progress for a book cannot be loaded as-is.

    The affected book stays quarantined until the underlying file is fixed.
    """

    def __init__(self, book: str | None, reason: str) -> None:
        """Store the affected book and a human-readable reason."""
        where = f"book '{book}'" if book else "progress file"
        super().__init__(f"Malformed persisted state in {where}: {reason}")
        self.book = book
        self.reason = reason


class PersistenceError(VerseTrackError, OSError):
    """Raised when the progress file could not be written."""
