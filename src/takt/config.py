"""Configuration management for Takt."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

TAKT_HOME = Path(os.environ.get("TAKT_HOME", Path.home() / "takt"))
CONFIG_FILE = TAKT_HOME / "config" / "takt.conf"
DATA_DIR = TAKT_HOME / "data"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class Config:
    """Takt configuration."""

    week_start_day: int = 0
    score_threshold_n1: int = 8
    score_threshold_n2: int = 3
    # N2 only changes deadline scores when this is on
    score_n2_tier: bool = False
    expand_window_days: int = 365
    default_duration: int = 30
    data_dir: str = ""

    @property
    def data_path(self) -> Path:
        if self.data_dir:
            return Path(self.data_dir).expanduser()
        return DATA_DIR


def _strip_value(value: str) -> str:
    """Remove surrounding quotes, or an inline comment from an unquoted value."""
    if value[:1] in ('"', "'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def _int_setting(key: str, value: str, default: int, low: int | None = None, high: int | None = None) -> int:
    try:
        number = int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {key.upper()}: {value!r}, keeping {default}")
        return default
    if (low is not None and number < low) or (high is not None and number > high):
        logger.warning(f"{key.upper()} out of range: {number}, keeping {default}")
        return default
    return number


def _bool_setting(key: str, value: str, default: bool) -> bool:
    lowered = value.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    logger.warning(f"Invalid boolean for {key.upper()}: {value!r}, keeping {default}")
    return default


def load_config(path: Path | None = None) -> Config:
    """Load configuration from a takt.conf file (KEY = value lines)."""
    path = path or CONFIG_FILE
    config = Config()

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _strip_value(value.strip())

        match key:
            case "week_start_day":
                config.week_start_day = _int_setting(key, value, config.week_start_day, 0, 6)
            case "score_threshold_n1":
                config.score_threshold_n1 = _int_setting(key, value, config.score_threshold_n1, 1)
            case "score_threshold_n2":
                config.score_threshold_n2 = _int_setting(key, value, config.score_threshold_n2, 1)
            case "score_n2_tier":
                config.score_n2_tier = _bool_setting(key, value, config.score_n2_tier)
            case "expand_window_days":
                config.expand_window_days = _int_setting(key, value, config.expand_window_days, 1)
            case "default_duration":
                config.default_duration = _int_setting(key, value, config.default_duration, 1)
            case "data_dir":
                config.data_dir = value
            case _:
                logger.debug(f"Ignoring unknown config key {key!r}")

    return config
