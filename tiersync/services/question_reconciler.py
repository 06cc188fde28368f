"""
services/question_reconciler.py
──────────────────────────────────────────────────────────────────────────────
Converges one category's persisted questions to its canonical list.

Architecture:
  • plan_questions() is a pure function — no I/O — that diffs the stored rows
    against the canonical list and returns a QuestionPlan.
  • QuestionReconciler.reconcile_questions() reads, plans and applies the
    plan inside a single storage transaction locked on the category id.

Matching a canonical question to a stored row:
  1. by template_key (stable identity, survives wording corrections)
  2. else by literal text, for rows written before keys existed or whose
     key has been retired from the template

Per canonical position i (1-based):
  matched, fields equal   → no write
  matched, fields drifted → patch in place (id and responses preserved)
  unmatched               → insert with order_index = i, empty description
Unmatched stored rows are obsolete: deleted, or deprecated when they carry
responses and the policy is DEPRECATE.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from tiersync.domain.models import (
    CanonicalQuestion,
    DeletionPolicy,
    Question,
    QuestionReconcileResult,
)
from tiersync.ports.repository_port import TaxonomyRepository

logger = logging.getLogger(__name__)

# Fields a patch may rewrite on an existing row.
_PATCHABLE = ("text", "order_index", "answer_type", "template_key")


# ── Plan ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class QuestionPatch:
    """An existing row with its target values and the names of changed fields."""

    question: Question
    changes: tuple[str, ...]


@dataclass(frozen=True)
class QuestionPlan:
    """Every write needed to bring one category in line with the template."""

    category_id: str
    inserts: tuple[Question, ...] = ()
    patches: tuple[QuestionPatch, ...] = ()
    removals: tuple[Question, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.inserts or self.patches or self.removals)


# ── Service class ──────────────────────────────────────────────────────────

class QuestionReconciler:
    """Applies question plans through a TaxonomyRepository.

    Args:
        repository:      Any object satisfying TaxonomyRepository.
        deletion_policy: What to do with obsolete rows that have responses.
    """

    def __init__(
        self,
        repository: TaxonomyRepository,
        deletion_policy: DeletionPolicy = DeletionPolicy.DEPRECATE,
    ) -> None:
        self._repo = repository
        self._deletion_policy = deletion_policy
        logger.debug("QuestionReconciler init | deletion_policy=%s", deletion_policy.value)

    # ── Public API ─────────────────────────────────────────────────────────

    def reconcile_questions(
        self,
        category_id: str,
        canonical_questions: Sequence[CanonicalQuestion],
    ) -> QuestionReconcileResult:
        """Bring one category's questions in line with the canonical list.

        Args:
            category_id:         Persisted id of the category.
            canonical_questions: The category's canonical questions, in order.

        Returns:
            QuestionReconcileResult with created/updated/deleted/deprecated counts.
            All zero when the category was already converged.

        Raises:
            DatabaseError: On storage failure.  The category's transaction is
                           rolled back, so nothing is half-applied.
        """
        with self._repo.transaction(lock_key=category_id):
            existing = self._repo.list_questions_by_category(category_id)
            plan = plan_questions(category_id, existing, canonical_questions)
            if plan.is_empty:
                logger.debug(
                    "Category %s already converged (%d questions)",
                    category_id,
                    len(existing),
                )
                return QuestionReconcileResult(category_id=category_id)
            result = self._apply(plan)

        logger.info(
            "Reconciled category %s | created=%d updated=%d deleted=%d deprecated=%d",
            category_id,
            result.created,
            result.updated,
            result.deleted,
            result.deprecated,
        )
        return result

    # ── Private helpers ────────────────────────────────────────────────────

    def _apply(self, plan: QuestionPlan) -> QuestionReconcileResult:
        result = QuestionReconcileResult(category_id=plan.category_id)

        # Removals first: (category_id, text) is unique, and a corrected
        # wording may take over the text of a row being retired.
        for question in plan.removals:
            if (
                self._deletion_policy == DeletionPolicy.DEPRECATE
                and self._repo.has_responses(question.id)
            ):
                self._repo.deprecate_question(question.id)
                result.deprecated += 1
                logger.info("Deprecated question with responses: %r", question.text)
            else:
                self._repo.delete_question(question.id)
                result.deleted += 1
                logger.info("Deleted obsolete question: %r", question.text)

        for patch in plan.patches:
            self._repo.upsert_question(patch.question)
            result.updated += 1
            logger.debug(
                "Patched question %s (%s): %r",
                patch.question.id,
                ", ".join(patch.changes),
                patch.question.text,
            )

        for question in plan.inserts:
            self._repo.upsert_question(question)
            result.created += 1
            logger.debug(
                "Inserted question #%d: %r", question.order_index, question.text
            )

        return result


# ── Pure function: diff stored rows against the canonical list ─────────────
# Extracted as a module-level function so unit tests (and the verifier) can
# call it without a repository.

def plan_questions(
    category_id: str,
    existing: Sequence[Question],
    canonical: Sequence[CanonicalQuestion],
) -> QuestionPlan:
    """Compute the writes that converge ``existing`` to ``canonical``.

    This is a *pure function* — deterministic, no side-effects, no I/O.

    Args:
        category_id: Category the questions belong to (used for inserts).
        existing:    Active persisted questions of the category, any order.
        canonical:   Canonical questions in display order.  Texts and keys
                     are assumed unique (enforced by validate_template).

    Returns:
        QuestionPlan.  ``is_empty`` is True when nothing needs writing.

    Examples:
        >>> from tiersync.domain.models import CanonicalQuestion, Question
        >>> stored = [Question(id="q1", category_id="c", text="B?", order_index=1)]
        >>> plan = plan_questions("c", stored, [
        ...     CanonicalQuestion(key="a", text="A?"),
        ...     CanonicalQuestion(key="b", text="B?"),
        ... ])
        >>> [q.text for q in plan.inserts]
        ['A?']
        >>> [(p.question.id, p.question.order_index) for p in plan.patches]
        [('q1', 2)]
    """
    canonical_keys = {c.key for c in canonical}
    by_key: dict[str, Question] = {}
    by_text: dict[str, Question] = {}
    for row in existing:
        if row.template_key and row.template_key in canonical_keys:
            by_key.setdefault(row.template_key, row)
        by_text.setdefault(row.text, row)

    claimed: set[str] = set()
    inserts: list[Question] = []
    patches: list[QuestionPatch] = []

    for position, item in enumerate(canonical, start=1):
        row = by_key.get(item.key)
        if row is None:
            candidate = by_text.get(item.text)
            if (
                candidate is not None
                and candidate.id not in claimed
                and candidate.template_key not in canonical_keys
            ):
                row = candidate

        target = {
            "text": item.text,
            "order_index": position,
            "answer_type": item.answer_type,
            "template_key": item.key,
        }

        if row is None:
            inserts.append(
                Question(category_id=category_id, description="", **target)
            )
            continue

        claimed.add(row.id)
        changes = tuple(f for f in _PATCHABLE if getattr(row, f) != target[f])
        if changes:
            patches.append(
                QuestionPatch(question=row.model_copy(update=target), changes=changes)
            )

    removals = tuple(row for row in existing if row.id not in claimed)
    return QuestionPlan(
        category_id=category_id,
        inserts=tuple(inserts),
        patches=tuple(patches),
        removals=removals,
    )
