"""Handles the parsing and validation of the VerseTrack configuration file."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from . import paths
from .templates import DEFAULT_CONFIG_YAML

logger = logging.getLogger(__name__)


class TrackerConfig(BaseModel):
    """The root configuration for VerseTrack."""

    model_config = ConfigDict(extra="forbid")

    progress_path: str | None = None
    structure_path: str | None = None
    recent_days: int = Field(default=7, ge=0)

    # Set by load_config(); not part of the file.
    config_dir: Path | None = Field(default=None, exclude=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any], config_dir: Path | None = None) -> "TrackerConfig":
        """Create a TrackerConfig from a dictionary, validating every field."""
        try:
            return cls(**data, config_dir=config_dir)
        except ValidationError as e:
            msg = f"Invalid or missing configuration: {e}"
            raise ValueError(msg) from e
        except TypeError as e:
            msg = f"Invalid or missing configuration: {e}"
            raise ValueError(msg) from e

    def resolved_progress_path(self) -> Path:
        """Return the absolute location of the progress file."""
        return paths.resolve_progress_path(self.progress_path, self.config_dir).resolve()

    def resolved_structure_path(self) -> Path | None:
        """Return the location of the custom structure file, if one is configured."""
        if not self.structure_path:
            return None
        path = Path(self.structure_path).expanduser()
        if not path.is_absolute():
            path = (self.config_dir or paths.get_config_dir()) / path
        return path


def load_config(config_path: str) -> TrackerConfig:
    """
    Load, parse, and validate the YAML configuration file.

    Args:
        config_path: The path to the config.yaml file.

    Returns:
        A TrackerConfig object representing the validated configuration.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If there is a syntax error in the YAML file.
        ValueError: If the configuration is invalid.

    """
    path = Path(config_path)
    if not path.is_file():
        msg = f"Configuration file not found at: {config_path}"
        raise FileNotFoundError(msg)

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        msg = f"Error parsing YAML config file: {e}"
        raise yaml.YAMLError(msg) from e

    # An empty file (or one with only comments) means all defaults.
    if data is None:
        data = {}
    if not isinstance(data, dict):
        msg = "Invalid or missing configuration: config file must be a YAML mapping (dictionary)."
        raise ValueError(msg)

    return TrackerConfig.from_dict(data, config_dir=path.parent)


def ensure_config(config_dir: Path | None = None) -> Path:
    """
    Return the config file path, writing the default config first if none exists.

    Raises:
        OSError: If the default config could not be written

    """
    directory = config_dir or paths.get_config_dir()
    existing = paths.find_config_file(directory)
    if existing is not None:
        return existing

    config_file = directory / paths.CONFIG_FILE_NAMES[0]
    paths.ensure_dir_exists(directory)
    config_file.write_text(DEFAULT_CONFIG_YAML, encoding="utf-8")
    logger.info("Created default configuration at: %s", config_file)
    return config_file
