"""Configuration for Tilbudsjakt."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

APP_NAME = "tilbudsjakt"

# Bundled data files
DATA_DIR = Path(__file__).parent / "data"
DEFAULT_SYNSETS_FILE = DATA_DIR / "norwegian_synsets.json"
DEFAULT_CATEGORIES_FILE = DATA_DIR / "categories.json"
DEFAULT_MEALS_FILE = DATA_DIR / "meals.json"

# Offer files written by the catalog refresh job ("<store>_offers.json")
DEFAULT_OFFERS_DIR = Path("offers")

DEFAULT_LOG_LEVEL = "WARNING"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _path_from_env(name: str, default: Path) -> Path:
    value = os.getenv(name)
    return Path(value).expanduser() if value else default


def get_offers_dir() -> Path:
    """Get the offers directory from TILBUDSJAKT_OFFERS_DIR or the default."""
    return _path_from_env("TILBUDSJAKT_OFFERS_DIR", DEFAULT_OFFERS_DIR)


def get_synsets_file() -> Path:
    """Get the synset file from TILBUDSJAKT_SYNSETS_FILE or the bundled file."""
    return _path_from_env("TILBUDSJAKT_SYNSETS_FILE", DEFAULT_SYNSETS_FILE)


def get_categories_file() -> Path:
    """Get the category file from TILBUDSJAKT_CATEGORIES_FILE or the bundled file."""
    return _path_from_env("TILBUDSJAKT_CATEGORIES_FILE", DEFAULT_CATEGORIES_FILE)


def get_meals_file() -> Path:
    """Get the meal file from TILBUDSJAKT_MEALS_FILE or the bundled file."""
    return _path_from_env("TILBUDSJAKT_MEALS_FILE", DEFAULT_MEALS_FILE)


def get_log_level() -> str:
    """Get the log level name from TILBUDSJAKT_LOG_LEVEL."""
    return os.getenv("TILBUDSJAKT_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()


def configure_logging(level: str | int | None = None) -> None:
    """Configure root logging for command-line use."""
    if level is None:
        level = get_log_level()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
