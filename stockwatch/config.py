"""Settings read from the environment (and `.env`, loaded by the entry point)."""

import os
from pathlib import Path


def _get_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, str(default)))
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, str(default)))
    except ValueError:
        return default


def _get_bool(name: str, default: bool = False) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


def get_db_path() -> Path:
    """Get database path from env or default."""
    return Path(os.environ.get("DB_PATH", "data/products.db"))


def get_check_interval_minutes() -> int:
    """Minutes between scheduled sweeps."""
    return _get_int("CHECK_INTERVAL_MINUTES", 30)


def get_pacing_seconds() -> float:
    """Pause between two consecutive product checks within a sweep."""
    return _get_float("SWEEP_PACING_SECONDS", 3.0)


def get_warmup_seconds() -> float:
    """Delay before the first sweep after the scheduler starts."""
    return _get_float("WARMUP_DELAY_SECONDS", 10.0)


def get_direct_timeout() -> float:
    return _get_float("DIRECT_TIMEOUT_SECONDS", 10.0)


def get_min_content_length() -> int:
    """Fallback-channel payloads shorter than this are rejected."""
    return _get_int("MIN_CONTENT_LENGTH", 100)


def get_channels_file() -> Path | None:
    path = os.environ.get("STOCKWATCH_CHANNELS_FILE")
    return Path(path) if path else None


def use_browser_fallback() -> bool:
    """Check if the headless browser channel is enabled via BROWSER_FALLBACK."""
    return _get_bool("BROWSER_FALLBACK")


def get_log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").upper()
