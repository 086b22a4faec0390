"""Environment-driven settings with validated fallbacks."""

import os
from pathlib import Path

from .constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_FEED_TIMEOUT_SECONDS,
    DEFAULT_LOCK_TIMEOUT_SECONDS,
    DEFAULT_STALE_MINUTES,
    DEFAULT_STATE_FILE,
)
from .time_utils import to_int


def _positive_int_env(name: str, default: int) -> int:
    value = to_int(os.environ.get(name), default)
    return value if value > 0 else default


def get_state_file() -> Path:
    """Resolve the JSON store location."""
    return Path(os.environ.get("PETGOTCHI_STATE_FILE", "").strip() or DEFAULT_STATE_FILE)


def get_fallback_token() -> str | None:
    """Token used when a user record carries no credential of its own."""
    return os.environ.get("GH_TOKEN") or None


def get_stale_minutes() -> int:
    """Minutes a watermark must age before the user is due again."""
    return _positive_int_env("PETGOTCHI_STALE_MINUTES", DEFAULT_STALE_MINUTES)


def get_batch_size() -> int:
    """Maximum users processed per orchestrator run."""
    return _positive_int_env("PETGOTCHI_BATCH_SIZE", DEFAULT_BATCH_SIZE)


def get_feed_timeout() -> int:
    """Per-request timeout (seconds) for the GitHub client."""
    return _positive_int_env("PETGOTCHI_FEED_TIMEOUT", DEFAULT_FEED_TIMEOUT_SECONDS)


def get_lock_timeout() -> int:
    """Seconds to wait for the store's file lock before giving up."""
    return _positive_int_env("PETGOTCHI_LOCK_TIMEOUT", DEFAULT_LOCK_TIMEOUT_SECONDS)
