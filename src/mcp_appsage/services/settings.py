"""Environment-driven configuration for AppSage services."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[3]
STATE_DIR = PROJECT_ROOT / "state" / "public"

DEFAULT_CACHE_TTL_SECONDS = 3600
"""Cached unified reports expire after one hour unless configured otherwise."""

MAX_CACHE_TTL_SECONDS = 7 * 24 * 3600
"""Upper bound applied to configured cache TTLs."""

REPORTS_DIR_ENV = "APPSAGE_REPORTS_DIR"
CACHE_DIR_ENV = "APPSAGE_CACHE_DIR"
CACHE_TTL_ENV = "APPSAGE_CACHE_TTL_SECONDS"
CACHE_ENABLED_ENV = "APPSAGE_CACHE_ENABLED"
PERMISSION_RULES_ENV = "APPSAGE_PERMISSION_RULES"


def _env_int(
    name: str,
    default: int,
    *,
    min_value: int = 0,
    max_value: int | None = None,
) -> int:
    """Return a bounded integer setting sourced from the environment."""

    raw = os.getenv(name)
    if not raw or not raw.strip():
        return default
    try:
        parsed = int(raw)
    except ValueError:
        return default
    if parsed < min_value:
        return default
    if max_value is not None and parsed > max_value:
        return max_value
    return parsed


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_path(name: str, default: Path | None) -> Path | None:
    raw = os.getenv(name)
    if not raw or not raw.strip():
        return default
    return Path(raw.strip())


@dataclass(frozen=True)
class AppSageConfig:
    """Container describing every configurable service setting."""

    reports_dir: Path
    cache_dir: Path
    cache_ttl_seconds: int
    cache_enabled: bool
    permission_rules_path: Path | None

    @classmethod
    def from_env(cls) -> "AppSageConfig":
        """Return a configuration using the current environment variables."""

        return cls(
            reports_dir=_env_path(REPORTS_DIR_ENV, STATE_DIR / "reports"),
            cache_dir=_env_path(CACHE_DIR_ENV, STATE_DIR / "cache"),
            cache_ttl_seconds=_env_int(
                CACHE_TTL_ENV,
                DEFAULT_CACHE_TTL_SECONDS,
                min_value=1,
                max_value=MAX_CACHE_TTL_SECONDS,
            ),
            cache_enabled=_env_flag(CACHE_ENABLED_ENV, True),
            permission_rules_path=_env_path(PERMISSION_RULES_ENV, None),
        )
