"""
config/settings.py
──────────────────────────────────────────────────────────────────────────────
Single source of truth for all tuneable parameters.

All values can be overridden via environment variables or a .env file placed
at the project root.  The frozen dataclass ensures settings are never mutated
at runtime.

  DB_DSN                  → target database
  CATEGORY_PAUSE_SECONDS  → pause between categories in multi-category runs
  BATCH_SIZE              → default count for batch / interactive runs
  DELETION_POLICY         → "deprecate" (default) | "cascade"
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root (two levels up from this file)
load_dotenv(Path(__file__).parent.parent.parent / ".env")


def _env(key: str, default: str) -> str:
    return os.getenv(key, default)


def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _env_float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


@dataclass(frozen=True)
class Settings:
    """Immutable application settings loaded from environment variables."""

    # ── Database ───────────────────────────────────────────────────────────
    db_dsn: str = field(
        default_factory=lambda: _env("DB_DSN", "dbname=tiersync")
    )
    db_connect_timeout: int = field(
        default_factory=lambda: _env_int("DB_CONNECT_TIMEOUT", 10)
    )

    # ── Reconciliation drivers ─────────────────────────────────────────────
    # Backpressure only: keeps request rate and run time under storage limits.
    category_pause_seconds: float = field(
        default_factory=lambda: _env_float("CATEGORY_PAUSE_SECONDS", 0.5)
    )
    batch_size: int = field(
        default_factory=lambda: _env_int("BATCH_SIZE", 3)
    )

    # What happens to an obsolete question that still has recorded responses.
    # Valid values: "deprecate" | "cascade"
    deletion_policy: str = field(
        default_factory=lambda: _env("DELETION_POLICY", "deprecate")
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Returns a cached singleton Settings instance.

    Use this everywhere instead of instantiating Settings() directly —
    it guarantees a single object is shared across the entire process.
    """
    return Settings()
