"""
services/driver.py
──────────────────────────────────────────────────────────────────────────────
Batch / resume entry points over the one reconciliation engine.

Every mode runs the same two steps over the *selected* categories only:
  1. CategoryReconciler (zero writes once converged) → name → id map
  2. QuestionReconciler for each category, with a short pause between
     categories

Categories outside the selection are neither created nor reordered.

Modes differ only in selection and failure handling:

  run_all          every category            tolerant  (log, continue)
  run_batch        categories[start:+count]  tolerant, reports next_start
  run_single       one name / order index    fail-fast (raises)
  run_interactive  consecutive batches, asking the operator between them

The pause is backpressure against storage request-rate and run-time
limits.  It does not make two concurrent runs safe; that is what the
per-category transaction lock in the repository is for.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import Optional, Union

from tiersync.config.settings import Settings
from tiersync.domain.exceptions import TierSyncError
from tiersync.domain.models import CanonicalCategory, CategoryOutcome, RunReport
from tiersync.services.category_reconciler import CategoryReconciler
from tiersync.services.question_reconciler import QuestionReconciler
from tiersync.services.registry import TemplateRegistry

logger = logging.getLogger(__name__)

# Called with (next_start, count); returns True to run that batch.
ConfirmFn = Callable[[int, int], bool]


class ReconcileDriver:
    """Runs reconciliation over all, some or one category.

    Args:
        registry:   Validated canonical template.
        categories: CategoryReconciler.
        questions:  QuestionReconciler.
        settings:   Shared application settings (pause, batch size).
        sleep:      Pause function; injectable so tests run instantly.
    """

    def __init__(
        self,
        registry: TemplateRegistry,
        categories: CategoryReconciler,
        questions: QuestionReconciler,
        settings: Settings,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._registry = registry
        self._categories = categories
        self._questions = questions
        self._pause = settings.category_pause_seconds
        self._batch_size = settings.batch_size
        self._sleep = sleep

    @property
    def batch_size(self) -> int:
        return self._batch_size

    # ── Public API ─────────────────────────────────────────────────────────

    def run_all(self) -> RunReport:
        """Reconcile every canonical category, continuing past failures."""
        return self._run("all", self._registry.categories, tolerant=True)

    def run_batch(self, start: int, count: Optional[int] = None) -> RunReport:
        """Reconcile categories[start, start+count) in canonical order.

        Args:
            start: 0-based index of the first category.
            count: Number of categories (default: settings.batch_size).

        Returns:
            RunReport with ``next_start`` set when categories remain.

        Raises:
            ValueError: If start is outside the template or count < 1.
        """
        if count is None:
            count = self._batch_size
        selected = self._registry.select(start, count)
        report = self._run("batch", selected, tolerant=True)
        report.next_start = self._registry.next_start(start, count)
        report.count = count
        if report.next_start is None:
            logger.info("All categories have been processed")
        else:
            logger.info(
                "Batch done | next batch: start=%d count=%d", report.next_start, count
            )
        return report

    def run_single(self, identifier: Union[str, int]) -> RunReport:
        """Reconcile exactly one category; any failure propagates.

        Raises:
            NotFoundError: If no canonical category matches ``identifier``.
            DatabaseError: On storage failure.
        """
        category = self._registry.find(identifier)
        return self._run("single", (category,), tolerant=False)

    def run_interactive(
        self,
        start: int,
        count: Optional[int],
        confirm: ConfirmFn,
        on_report: Optional[Callable[[RunReport], None]] = None,
    ) -> list[RunReport]:
        """Run consecutive batches, asking ``confirm`` before each follow-up.

        ``on_report`` receives each batch report as soon as the batch ends,
        before the operator is asked about the next one.

        Stops when the template is exhausted or the operator declines; the
        last report's ``next_start`` is then the resume point.
        """
        reports: list[RunReport] = []
        next_start: Optional[int] = start
        while next_start is not None:
            report = self.run_batch(next_start, count)
            report.mode = "interactive"
            reports.append(report)
            if on_report is not None:
                on_report(report)
            if report.done or not confirm(report.next_start, report.count):
                break
            next_start, count = report.next_start, report.count
        return reports

    # ── Private helpers ────────────────────────────────────────────────────

    def _run(
        self,
        mode: str,
        selected: Sequence[CanonicalCategory],
        tolerant: bool,
    ) -> RunReport:
        logger.info(
            "Reconcile run | mode=%s template=%s categories=%d",
            mode,
            self._registry.version,
            len(selected),
        )
        sync = self._categories.reconcile_categories(selected)
        report = RunReport(
            mode=mode,
            template_version=self._registry.version,
            categories_created=sync.created,
            categories_updated=sync.updated,
        )

        for position, category in enumerate(selected):
            if position and self._pause > 0:
                self._sleep(self._pause)
            logger.info(
                "Reconciling category %d: %s", category.order_index, category.name
            )
            try:
                result = self._questions.reconcile_questions(
                    sync.ids[category.name], category.questions
                )
            except TierSyncError as exc:
                if not tolerant:
                    raise
                logger.exception(
                    "Category %d (%s) failed, continuing",
                    category.order_index,
                    category.name,
                )
                report.outcomes.append(
                    CategoryOutcome(
                        name=category.name,
                        order_index=category.order_index,
                        ok=False,
                        error=str(exc),
                    )
                )
                continue
            report.outcomes.append(
                CategoryOutcome(
                    name=category.name,
                    order_index=category.order_index,
                    ok=True,
                    result=result,
                )
            )

        logger.info(
            "Reconcile run complete | mode=%s succeeded=%d failed=%d writes=%d",
            mode,
            len(report.succeeded),
            len(report.failed),
            report.writes,
        )
        return report
