"""
services/container.py
──────────────────────────────────────────────────────────────────────────────
Dependency Injection container.

THIS IS THE ONLY FILE THAT NAMES CONCRETE ADAPTER CLASSES.

Replace the database:
  - from tiersync.adapters.postgres_repository import PostgresTaxonomyRepository
  + from tiersync.adapters.other_repository import OtherTaxonomyRepository

Thread safety:
  @lru_cache(maxsize=1) makes every getter return the same instance across
  calls — one repository connection per process, shared by the driver, the
  verifier and the tier service.
"""
from __future__ import annotations

import logging
from functools import lru_cache

from tiersync.adapters.postgres_repository import PostgresTaxonomyRepository
from tiersync.adapters.postgres_responses import PostgresResponseStore
from tiersync.config.settings import Settings, get_settings
from tiersync.config.template import get_template
from tiersync.domain.exceptions import ConfigurationError
from tiersync.domain.models import DeletionPolicy
from tiersync.services.category_reconciler import CategoryReconciler
from tiersync.services.driver import ReconcileDriver
from tiersync.services.question_reconciler import QuestionReconciler
from tiersync.services.registry import TemplateRegistry
from tiersync.services.tiering import TierService
from tiersync.services.verifier import AlignmentVerifier

logger = logging.getLogger(__name__)


def deletion_policy(settings: Settings) -> DeletionPolicy:
    """Parse DELETION_POLICY into a DeletionPolicy."""
    try:
        return DeletionPolicy(settings.deletion_policy.lower())
    except ValueError:
        raise ConfigurationError(
            f"Unknown DELETION_POLICY '{settings.deletion_policy}'. "
            "Valid values: 'deprecate', 'cascade'."
        ) from None


def _check_settings(settings: Settings) -> None:
    if settings.batch_size < 1:
        raise ConfigurationError(f"BATCH_SIZE must be at least 1, got {settings.batch_size}")
    if settings.category_pause_seconds < 0:
        raise ConfigurationError(
            f"CATEGORY_PAUSE_SECONDS must not be negative, got {settings.category_pause_seconds}"
        )


@lru_cache(maxsize=1)
def get_registry() -> TemplateRegistry:
    """Validated canonical template.

    Raises:
        TemplateError: If config/template.py breaks an authoring rule.
    """
    return TemplateRegistry(get_template())


@lru_cache(maxsize=1)
def get_repository() -> PostgresTaxonomyRepository:
    return PostgresTaxonomyRepository(get_settings())


@lru_cache(maxsize=1)
def get_driver() -> ReconcileDriver:
    """Build and return the fully wired ReconcileDriver singleton.

    Raises:
        ConfigurationError: If settings are invalid.
        TemplateError:      If the template is malformed.
    """
    settings = get_settings()
    _check_settings(settings)
    policy = deletion_policy(settings)
    repository = get_repository()

    driver = ReconcileDriver(
        registry=get_registry(),
        categories=CategoryReconciler(repository),
        questions=QuestionReconciler(repository, deletion_policy=policy),
        settings=settings,
    )
    logger.info(
        "ReconcileDriver ready | template=%s deletion_policy=%s pause=%.2fs",
        get_registry().version,
        policy.value,
        settings.category_pause_seconds,
    )
    return driver


@lru_cache(maxsize=1)
def get_verifier() -> AlignmentVerifier:
    return AlignmentVerifier(get_registry(), get_repository())


@lru_cache(maxsize=1)
def get_tier_service() -> TierService:
    return TierService(
        repository=get_repository(),
        responses=PostgresResponseStore(get_settings()),
    )
