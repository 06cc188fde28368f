"""
ports/repository_port.py
──────────────────────────────────────────────────────────────────────────────
Abstract interface for the questionnaire taxonomy store.

The port is deliberately narrow: reconciliation needs to list what exists and
then write the minimum set of changes.  Diffing happens in pure Python
(services/question_reconciler.plan_questions), so every rule about what gets
created, patched or removed is unit-testable with no database.

Current implementation: PostgresTaxonomyRepository (psycopg2)
To swap: write a new adapter implementing this Protocol and change ONE line
in services/container.py.
"""
from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Optional, Protocol, runtime_checkable

from tiersync.domain.models import Category, Question


@runtime_checkable
class TaxonomyRepository(Protocol):
    """Contract for category / question storage."""

    def list_categories(self) -> list[Category]:
        """Return every persisted category, ordered by order_index.

        Raises:
            DatabaseError: On connection or query failure.
        """
        ...

    def upsert_category(self, category: Category) -> Category:
        """Insert the category if no row has its name, else patch order_index.

        Returns:
            The stored row, id populated.

        Raises:
            DatabaseError: On connection or query failure.
        """
        ...

    def list_questions_by_category(self, category_id: str) -> list[Question]:
        """Return the active (non-deprecated) questions of one category.

        Raises:
            DatabaseError: On connection or query failure.
        """
        ...

    def upsert_question(self, question: Question) -> Question:
        """Write one question.

        With ``question.id`` set: patch text, order_index, answer_type and
        template_key of that row.  Without: insert, or patch the *active* row
        that already has the same (category_id, text).  Deprecated rows never
        conflict: (category_id, text) is unique among active rows only.

        Returns:
            The stored row, id populated.

        Raises:
            DatabaseError: On connection or query failure.
        """
        ...

    def delete_question(self, question_id: str) -> None:
        """Delete a question row (responses follow the FK's ON DELETE rule)."""
        ...

    def deprecate_question(self, question_id: str) -> None:
        """Hide a question from active listings without deleting it."""
        ...

    def has_responses(self, question_id: str) -> bool:
        """True when at least one assessment response references the question."""
        ...

    def fetch_questions(self, question_ids: list[str]) -> dict[str, Question]:
        """Fetch questions (deprecated included) by id.

        Returns:
            Dict mapping id → Question.  Unknown ids are silently omitted.
        """
        ...

    def transaction(self, lock_key: Optional[str] = None) -> AbstractContextManager:
        """Context manager grouping writes into one atomic unit.

        Args:
            lock_key: When given, the transaction also holds an exclusive
                      lock on this key so concurrent runs serialise per key.

        Nested calls join the outer transaction.
        """
        ...
