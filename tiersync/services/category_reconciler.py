"""
services/category_reconciler.py
──────────────────────────────────────────────────────────────────────────────
Ensures every canonical category exists in storage with the right order.

Rules:
  • missing name            → insert (canonical order, generated description)
  • order_index drifted     → patch order_index only
  • otherwise               → no write
  • non-canonical categories are never touched (no delete or rename path)

Returns the name → id map downstream question passes need.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from tiersync.config.template import category_description
from tiersync.domain.models import CanonicalCategory, Category
from tiersync.ports.repository_port import TaxonomyRepository

logger = logging.getLogger(__name__)

_LOCK_KEY = "question_categories"


@dataclass
class CategorySyncResult:
    """Name → id map plus write counts of one category pass."""

    ids: dict[str, str] = field(default_factory=dict)
    created: int = 0
    updated: int = 0

    @property
    def writes(self) -> int:
        return self.created + self.updated


class CategoryReconciler:
    """Converges persisted categories toward the canonical list.

    Args:
        repository: Any object satisfying TaxonomyRepository.
    """

    def __init__(self, repository: TaxonomyRepository) -> None:
        self._repo = repository

    def reconcile_categories(
        self,
        categories: Iterable[CanonicalCategory],
    ) -> CategorySyncResult:
        """Create missing categories and fix drifted order indexes.

        Args:
            categories: Canonical categories, in template order.

        Returns:
            CategorySyncResult whose ``ids`` maps every canonical name to its
            persisted id.

        Raises:
            DatabaseError: On storage failure (propagated unchanged).
        """
        result = CategorySyncResult()
        with self._repo.transaction(lock_key=_LOCK_KEY):
            existing = {c.name: c for c in self._repo.list_categories()}

            for canonical in categories:
                stored = existing.get(canonical.name)
                if stored is None:
                    stored = self._repo.upsert_category(
                        Category(
                            name=canonical.name,
                            order_index=canonical.order_index,
                            description=category_description(canonical.name),
                        )
                    )
                    result.created += 1
                    logger.info(
                        "Created category %d: %s", canonical.order_index, canonical.name
                    )
                elif stored.order_index != canonical.order_index:
                    logger.info(
                        "Reordered category %s: %d → %d",
                        canonical.name,
                        stored.order_index,
                        canonical.order_index,
                    )
                    stored = self._repo.upsert_category(
                        stored.model_copy(update={"order_index": canonical.order_index})
                    )
                    result.updated += 1
                result.ids[canonical.name] = stored.id

        logger.info(
            "Category pass complete | categories=%d created=%d updated=%d",
            len(result.ids),
            result.created,
            result.updated,
        )
        return result
