"""
services/verifier.py
──────────────────────────────────────────────────────────────────────────────
Read-only alignment check: does the store match the template?

Reuses plan_questions(), so "aligned" means exactly "a reconcile run would
write nothing for this category".  Never writes.
"""
from __future__ import annotations

import logging

from tiersync.domain.models import AlignmentReport, CategoryAlignment
from tiersync.ports.repository_port import TaxonomyRepository
from tiersync.services.question_reconciler import plan_questions
from tiersync.services.registry import TemplateRegistry

logger = logging.getLogger(__name__)


class AlignmentVerifier:
    """Compares persisted categories/questions with the canonical template."""

    def __init__(self, registry: TemplateRegistry, repository: TaxonomyRepository) -> None:
        self._registry = registry
        self._repo = repository

    def verify(self) -> AlignmentReport:
        stored = {c.name: c for c in self._repo.list_categories()}
        rows: list[CategoryAlignment] = []

        for canonical in self._registry.categories:
            category = stored.get(canonical.name)
            if category is None:
                rows.append(
                    CategoryAlignment(
                        name=canonical.name,
                        order_index=canonical.order_index,
                        exists=False,
                        order_matches=False,
                        expected=len(canonical.questions),
                        missing=canonical.question_texts,
                    )
                )
                continue

            existing = self._repo.list_questions_by_category(category.id)
            plan = plan_questions(category.id, existing, canonical.questions)
            rows.append(
                CategoryAlignment(
                    name=canonical.name,
                    order_index=canonical.order_index,
                    exists=True,
                    order_matches=category.order_index == canonical.order_index,
                    expected=len(canonical.questions),
                    actual=len(existing),
                    missing=[q.text for q in plan.inserts],
                    extra=[q.text for q in plan.removals],
                    drifted=[p.question.text for p in plan.patches],
                )
            )

        report = AlignmentReport(template_version=self._registry.version, categories=rows)
        logger.info(
            "Verification | aligned=%s questions=%d/%d",
            report.aligned,
            report.actual_total,
            report.expected_total,
        )
        return report
