"""
domain/exceptions.py
──────────────────────────────────────────────────────────────────────────────
Custom exception hierarchy.

All exceptions are rooted at TierSyncError so callers can catch broadly
(except TierSyncError) or narrowly (except DatabaseError).

How the delivery layer treats them:
  NotFoundError        → exit 1 (single-category run aborts)
  DatabaseError        → logged per category in tolerant drivers, else exit 1
  ClassificationError  → exit 1, no default tier is ever substituted
  TemplateError        → exit 1 at start-up, nothing is written
"""
from __future__ import annotations


class TierSyncError(Exception):
    """Base exception for all application errors."""


class ConfigurationError(TierSyncError):
    """Raised when required configuration is missing or invalid."""


class TemplateError(TierSyncError):
    """Raised when the canonical template data is malformed."""


class DatabaseError(TierSyncError):
    """Raised when a storage operation fails."""


class NotFoundError(TierSyncError):
    """Raised when a referenced category, question or assessment does not exist."""


class ClassificationError(TierSyncError):
    """Raised when no tier can be computed (no tier-impacting answers)."""
