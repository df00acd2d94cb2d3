"""
Engine Configuration — process-wide settings, loaded once at startup.

Works in ALL environments:
    • Local          — loads credentials from .env
    • GitHub Actions — loads from repo secrets (injected as env vars)
    • Supabase cron  — env vars set on the worker
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigurationError

# ─── Paths ────────────────────────────────────────────────────────────────────
PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_DIR.parent

DEFAULT_API_BASE = "https://api.x.com/2"
DEFAULT_TIMEOUT = 30.0  # seconds
DEFAULT_CHECK_INTERVAL = 60  # seconds between passes


def _env(key, default=""):
    """Read an env var, stripped of surrounding whitespace."""
    return (os.environ.get(key) or default).strip()


def _number(key, default, cast):
    raw = _env(key)
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class EngineConfig:
    """Consumer credentials, storage location and HTTP settings."""

    consumer_key: str
    consumer_secret: str
    supabase_url: str = ""
    supabase_key: str = ""
    api_base: str = DEFAULT_API_BASE
    request_timeout: float = DEFAULT_TIMEOUT
    check_interval: int = DEFAULT_CHECK_INTERVAL

    @classmethod
    def from_env(cls, dotenv_path=None) -> "EngineConfig":
        """Build the config from environment variables (and .env for local dev)."""
        load_dotenv(dotenv_path or PROJECT_ROOT / ".env")

        return cls(
            consumer_key=_env("TWITTER_CONSUMER_KEY"),
            consumer_secret=_env("TWITTER_CONSUMER_SECRET"),
            supabase_url=_env("SUPABASE_URL"),
            supabase_key=_env("SUPABASE_KEY") or _env("SUPABASE_SERVICE_ROLE_KEY"),
            api_base=_env("TWITTER_API_BASE", DEFAULT_API_BASE).rstrip("/"),
            request_timeout=_number("TWITTER_REQUEST_TIMEOUT", DEFAULT_TIMEOUT, float),
            check_interval=_number("PUBLISHER_CHECK_INTERVAL", DEFAULT_CHECK_INTERVAL, int),
        )

    def validate(self, require_storage=False) -> "EngineConfig":
        """
        Fail fast on missing settings.

        Raises:
            ConfigurationError: naming the first missing environment variable.
        """
        if not self.consumer_key:
            raise ConfigurationError("Missing TWITTER_CONSUMER_KEY environment variable")
        if not self.consumer_secret:
            raise ConfigurationError("Missing TWITTER_CONSUMER_SECRET environment variable")
        if require_storage:
            if not self.supabase_url:
                raise ConfigurationError("Missing SUPABASE_URL environment variable")
            if not self.supabase_key:
                raise ConfigurationError("Missing SUPABASE_KEY environment variable")
        return self
