# nfl_stats/config.py
"""
Configuration for the NFL stats service.

This module centralizes all tunable settings (source base URLs, season,
cache backend and TTLs, fetch timeout, retry policy, worker pool size).
Every field can be overridden with the environment variable of the same
name in upper case.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import os
from typing import Optional

# Jan/Feb games (late regular season, playoffs) belong to the previous year's season.
SEASON_ROLLOVER_MONTH = 3


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, returning default on missing/invalid values."""
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    """Read a float environment variable, returning default on missing/invalid values."""
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    """Read a string environment variable; blank counts as unset."""
    raw = os.getenv(name)
    return raw.strip() if raw and raw.strip() else default


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if not raw or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def current_season(now: Optional[datetime] = None) -> int:
    """NFL season year for a moment in time."""
    now = now or datetime.now(tz=timezone.utc)
    return now.year if now.month >= SEASON_ROLLOVER_MONTH else now.year - 1


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable app configuration.

    Notes:
      - season: None means "derive from the clock" (see current_season()).
      - cache_backend: "memory" (per process) or "sqlite" (cache_db_path).
    """

    # Sources
    espn_api_base: str = field(
        default_factory=lambda: _env_str(
            "ESPN_API_BASE", "https://site.api.espn.com/apis/site/v2/sports/football/nfl"
        )
    )
    pfr_base: str = field(default_factory=lambda: _env_str("PFR_BASE", "https://www.pro-football-reference.com"))
    season: Optional[int] = field(default_factory=lambda: _env_optional_int("SEASON"))
    tz: str = field(default_factory=lambda: _env_str("TZ", "UTC"))

    # Cache controls
    cache_backend: str = field(default_factory=lambda: _env_str("CACHE_BACKEND", "memory").lower())
    cache_db_path: str = field(default_factory=lambda: _env_str("CACHE_DB_PATH", "nfl_stats_cache.db"))
    cache_ttl_seconds: int = field(default_factory=lambda: _env_int("CACHE_TTL_SECONDS", 600))
    stale_ttl_seconds: int = field(default_factory=lambda: _env_int("STALE_TTL_SECONDS", 86400))

    # Outbound requests
    fetch_timeout_seconds: float = field(default_factory=lambda: _env_float("FETCH_TIMEOUT_SECONDS", 10.0))
    retry_max_attempts: int = field(default_factory=lambda: _env_int("RETRY_MAX_ATTEMPTS", 3))
    retry_base_delay_seconds: float = field(default_factory=lambda: _env_float("RETRY_BASE_DELAY_SECONDS", 0.3))
    retry_max_delay_seconds: float = field(default_factory=lambda: _env_float("RETRY_MAX_DELAY_SECONDS", 5.0))

    # Fan-out
    max_workers: int = field(default_factory=lambda: _env_int("MAX_WORKERS", 8))

    log_level: str = field(default_factory=lambda: _env_str("LOG_LEVEL", "INFO"))

    def __post_init__(self):
        """Clamp values that would break the pipeline rather than fail at first request."""
        # dataclass frozen => use object.__setattr__
        if self.cache_backend not in ("memory", "sqlite"):
            object.__setattr__(self, "cache_backend", "memory")
        object.__setattr__(self, "max_workers", max(1, self.max_workers))
        object.__setattr__(self, "retry_max_attempts", max(1, self.retry_max_attempts))

    def resolve_season(self, now: Optional[datetime] = None) -> int:
        """Configured season, or the one in progress."""
        return self.season if self.season is not None else current_season(now)
