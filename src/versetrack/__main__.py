"""Main entry point for the VerseTrack command-line interface."""

import argparse
import logging
import sys
from datetime import date, timedelta
from pathlib import Path

from . import __version__, paths
from .config import TrackerConfig, ensure_config, load_config
from .errors import MalformedPersistedStateError, PersistenceError, VerseTrackError
from .logging_utils import setup_logging
from .parsing import build_targets
from .persistence import load_progress, save_progress
from .reporting import consolidate_chapters, format_last_read, format_passages, format_read_count
from .store import ProgressStore
from .structure import Testament, Versification

logger = logging.getLogger(__name__)


def _add_selection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("book", help="Book name, or an unambiguous prefix of it (e.g. 'gen', '1 cor').")
    parser.add_argument("chapters", nargs="?", default=None, help="A chapter ('3') or a chapter span ('3-5'). Omit for the whole book.")
    parser.add_argument("verses", nargs="?", default=None, help="Verses of a single chapter, e.g. '1-5,7'. Omit for the whole chapter.")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments for the VerseTrack CLI.

    Returns:
        argparse.Namespace: An object containing the parsed command-line arguments.

    """
    parser = argparse.ArgumentParser(prog="versetrack", description="VerseTrack Reading Progress Tracker")
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"VerseTrack {__version__}",
        help="Show the version number and exit.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug level logging.")
    parser.add_argument("--config", default=None, help="Path to the configuration file.")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    record_parser = subparsers.add_parser("record", help="Record a reading of a passage (dated today).")
    _add_selection_arguments(record_parser)

    set_parser = subparsers.add_parser("set", help="Overwrite the read count and date of a passage.")
    _add_selection_arguments(set_parser)
    set_parser.add_argument("--count", type=int, required=True, help="The new read count (at least 1).")
    set_parser.add_argument("--date", type=date.fromisoformat, default=None, help="Last read date as YYYY-MM-DD (default: today).")

    status_parser = subparsers.add_parser("status", help="Show how many times books or chapters have been read in full.")
    status_parser.add_argument("book", nargs="?", default=None, help="Show the chapters of this book.")

    passages_parser = subparsers.add_parser("passages", help="List the read passages chapter by chapter.")
    passages_parser.add_argument("book", nargs="?", default=None, help="Only list this book.")

    recent_parser = subparsers.add_parser("recent", help="Show the chapters read recently.")
    recent_parser.add_argument("--days", type=int, default=None, help="How many days to look back (default: from config).")

    subparsers.add_parser("show-config", help="Display the loaded configuration and exit.")

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help(sys.stderr)
        sys.exit(1)
    return args


def _load_config(config_file: Path) -> TrackerConfig | None:
    """
    Load configuration from the given file.

    Returns:
        An optional TrackerConfig object if loading is successful, otherwise None.

    """
    try:
        logger.debug("Loading configuration from: %s", config_file)
        return load_config(str(config_file))
    except FileNotFoundError:
        logger.exception("Could not find a valid configuration file.")
        return None
    except Exception:
        logger.exception("An unexpected error occurred while loading the configuration.")
        return None


def _open_store(config: TrackerConfig) -> ProgressStore:
    """Load the document structure and the progress file named by the config."""
    structure_path = config.resolved_structure_path()
    versification = Versification.load(structure_path) if structure_path else Versification.default()
    return load_progress(config.resolved_progress_path(), versification)


def _save(store: ProgressStore, config: TrackerConfig) -> int:
    try:
        save_progress(store, config.resolved_progress_path())
    except PersistenceError:
        logger.exception("The reading was applied but could NOT be saved")
        return 1
    return 0


def _cmd_record(args: argparse.Namespace, store: ProgressStore, config: TrackerConfig) -> int:
    book = store.versification.resolve(args.book)
    targets = build_targets(store.versification.outline(book), args.chapters, args.verses)
    today = store.clock()
    for target in targets:
        store.record(book, target, today)
    print(f"Recorded {book} {', '.join(str(t) for t in targets)}")
    return _save(store, config)


def _cmd_set(args: argparse.Namespace, store: ProgressStore, config: TrackerConfig) -> int:
    book = store.versification.resolve(args.book)
    targets = build_targets(store.versification.outline(book), args.chapters, args.verses)
    today = store.clock()
    for target in targets:
        store.manual_set(book, target, args.count, args.date or today, today)
    print(f"Set {book} {', '.join(str(t) for t in targets)} to {args.count}x")
    return _save(store, config)


def _cmd_status(args: argparse.Namespace, store: ProgressStore, _config: TrackerConfig) -> int:
    today = store.clock()
    if args.book is None:
        for testament in Testament:
            try:
                rollup = store.testament_rollup(testament)
            except MalformedPersistedStateError:
                print(f"{testament.label}: blocked")
                continue
            print(f"{testament.label}: {format_read_count(rollup)} (last read {format_last_read(rollup.latest_read, today)})")
        for book, _ledger in store.all():
            rollup = store.book_rollup(book)
            print(f"{book}: {format_read_count(rollup)} (last read {format_last_read(rollup.latest_read, today)})")
        for book, error in store.quarantined.items():
            print(f"{book}: blocked ({error.reason})")
        return 0

    book = store.versification.resolve(args.book)
    rollup = store.book_rollup(book)
    print(f"{book}: {format_read_count(rollup)}")
    for chapter in range(1, store.versification.outline(book).chapter_count + 1):
        chapter_stats = store.chapter_rollup(book, chapter)
        print(f"  Chapter {chapter}: {format_read_count(chapter_stats)} (last read {format_last_read(chapter_stats.latest_read, today)})")
    return 0


def _cmd_passages(args: argparse.Namespace, store: ProgressStore, _config: TrackerConfig) -> int:
    books = [store.versification.resolve(args.book)] if args.book else None
    today = store.clock()
    for passages in store.passages(books):
        for line in format_passages(passages, today):
            print(line)
    return 0


def _cmd_recent(args: argparse.Namespace, store: ProgressStore, config: TrackerConfig) -> int:
    days = args.days if args.days is not None else config.recent_days
    today = store.clock()
    for read_on, entries in store.recent_reads(today - timedelta(days=days)):
        print(f"{format_last_read(read_on, today)}: {consolidate_chapters(entries)}")
    return 0


COMMANDS = {
    "record": _cmd_record,
    "set": _cmd_set,
    "status": _cmd_status,
    "passages": _cmd_passages,
    "recent": _cmd_recent,
}


def _run_command(args: argparse.Namespace, config: TrackerConfig) -> int:
    """Open the store, run one command and return its exit code."""
    try:
        store = _open_store(config)
        return COMMANDS[args.command](args, store, config)
    except (VerseTrackError, FileNotFoundError, ValueError) as e:
        logger.error("%s", e)  # noqa: TRY400
        return 1


def main(argv: list[str] | None = None) -> None:
    """
    Run the main entry point for the VerseTrack command-line interface.

    1. Parses command-line arguments.
    2. Loads (or creates) the configuration.
    3. Runs the requested command against the progress file.
    """
    try:
        args = _parse_args(argv)
        config_file = Path(args.config) if args.config else paths.get_config_file_path()
        setup_logging(version=__version__, debug=args.debug, log_dir=paths.get_log_dir(config_file.parent))

        if not args.config:
            config_file = ensure_config(config_file.parent)
        config = _load_config(config_file)
        if config is None:
            logger.critical("Failed to load configuration. Aborting.")
            sys.exit(1)

        if args.command == "show-config":
            print("Configuration:")
            print(f"  Config file: {config_file.resolve()}")
            print(f"  Progress path: {config.resolved_progress_path()}")
            print(f"  Log directory: {paths.get_log_dir(config.config_dir)}")
            return

        exit_code = _run_command(args, config)
    except Exception:
        logger.exception("An unexpected error occurred")
        logger.critical("An unrecoverable error occurred. Please check the logs for details.")
        sys.exit(1)

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
