"""Manages the discovery and provision of fixed paths for the VerseTrack application."""
# src/versetrack/paths.py

import os
from pathlib import Path
from typing import Final

CONFIG_FILE_NAMES: Final[list[str]] = ["config.yaml", "config.yml"]
APP_DIR_NAME: Final[str] = "versetrack"
HOME_ENV_VAR: Final[str] = "VERSETRACK_HOME"
DEFAULT_PROGRESS_FILE: Final[str] = "reading_progress.yaml"


def get_config_dir() -> Path:
    """
    Return the directory holding the configuration, logs and default progress file.

    Resolution order: $VERSETRACK_HOME, then $XDG_CONFIG_HOME/versetrack,
    then ~/.config/versetrack.
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg_config).expanduser() if xdg_config else Path.home() / ".config"
    return base / APP_DIR_NAME


def find_config_file(config_dir: Path | None = None) -> Path | None:
    """Return the first existing config file (config.yaml preferred over config.yml), if any."""
    directory = config_dir or get_config_dir()
    for config_file in CONFIG_FILE_NAMES:
        path = directory / config_file
        if path.is_file():
            return path
    return None


def get_config_file_path(config_dir: Path | None = None) -> Path:
    """Return the config file in use, or the path where a new one would be created."""
    directory = config_dir or get_config_dir()
    return find_config_file(directory) or directory / CONFIG_FILE_NAMES[0]


def get_log_dir(config_dir: Path | None = None) -> Path:
    """Return the path to the log directory."""
    return (config_dir or get_config_dir()) / "logs"


def resolve_progress_path(configured: str | None, config_dir: Path | None = None) -> Path:
    """
    Resolve the progress file location.

    A configured path has '~' expanded; relative paths are taken relative to
    the config directory. Without a configured path the default file inside
    the config directory is used.
    """
    directory = config_dir or get_config_dir()
    if not configured:
        return directory / DEFAULT_PROGRESS_FILE
    path = Path(configured).expanduser()
    return path if path.is_absolute() else directory / path


def ensure_dir_exists(path: Path) -> None:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
