"""Configuration and logging setup for the trade journal.

Configuration lives in ``~/.config/tradejournal/config.toml``:

    [journal]
    owner_id = "me"

    [storage]
    db_path = "~/.config/tradejournal/tradejournal.db"

    [valuation]
    cache_hours = 24

    [logging]
    level = "INFO"
"""

import logging
import os
from pathlib import Path
from typing import Optional

import toml
from rich.logging import RichHandler

from tradejournal.errors import ConfigError

CONFIG_DIR = Path.home() / ".config" / "tradejournal"
CONFIG_PATH = CONFIG_DIR / "config.toml"
DEFAULT_DB_PATH = CONFIG_DIR / "tradejournal.db"

DEFAULT_OWNER_ID = "default"
DEFAULT_CACHE_HOURS = 24.0
DEFAULT_LOG_LEVEL = "WARNING"

# Environment variable overriding CONFIG_PATH
CONFIG_ENV_VAR = "TRADEJOURNAL_CONFIG"


def get_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    return Path(override).expanduser() if override else CONFIG_PATH


def load_config(path: Optional[Path] = None) -> dict:
    """Load the TOML configuration.

    Args:
        path: Config file to read. Defaults to get_config_path().

    Returns:
        Parsed configuration, or an empty dict if the file does not exist.

    Raises:
        ConfigError: If the file exists but cannot be parsed.
    """
    config_path = path or get_config_path()
    if not config_path.exists():
        return {}
    try:
        return toml.load(config_path)
    except (toml.TomlDecodeError, OSError) as e:
        raise ConfigError(f"Failed to read config {config_path}: {e}") from e


def get_db_path(config: dict) -> Path:
    db_path = config.get("storage", {}).get("db_path")
    return Path(db_path).expanduser() if db_path else DEFAULT_DB_PATH


def get_owner_id(config: dict) -> str:
    return str(config.get("journal", {}).get("owner_id", DEFAULT_OWNER_ID))


def get_cache_hours(config: dict) -> float:
    return float(config.get("valuation", {}).get("cache_hours", DEFAULT_CACHE_HOURS))


def get_log_level(config: dict) -> str:
    return str(config.get("logging", {}).get("level", DEFAULT_LOG_LEVEL)).upper()


def setup_logging(level: str = DEFAULT_LOG_LEVEL) -> logging.Logger:
    """Route tradejournal logs through rich.

    Calling this again only updates the level.
    """
    logger = logging.getLogger("tradejournal")
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
        logger.propagate = False
    return logger
