"""
tests/conftest.py
──────────────────────────────────────────────────────────────────────────────
Shared pytest fixtures and in-memory adapter implementations.

In-memory adapters implement the Port Protocols via structural subtyping —
they do NOT inherit from any base class.  pytest uses them to test service
logic without a database.

Fixture hierarchy:
  repo              → implements TaxonomyRepository (dicts + write log)
  responses         → implements AssessmentResponsePort
  registry          → TemplateRegistry over the real canonical template
  category_reconciler / question_reconciler → wired with repo
  sleeps            → records pauses instead of sleeping
  driver            → ReconcileDriver wired with all of the above
"""
from __future__ import annotations

import copy
import itertools
from contextlib import contextmanager
from typing import Optional

import pytest

from tiersync.config.settings import Settings
from tiersync.config.template import get_template
from tiersync.domain.exceptions import DatabaseError, NotFoundError
from tiersync.domain.models import (
    AnswerType,
    Category,
    DeletionPolicy,
    Question,
    RecordedAnswer,
    Tier,
)
from tiersync.services.category_reconciler import CategoryReconciler
from tiersync.services.driver import ReconcileDriver
from tiersync.services.question_reconciler import QuestionReconciler
from tiersync.services.registry import TemplateRegistry


# ── Settings fixture ───────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def settings() -> Settings:
    """Return a Settings instance with sane test defaults."""
    return Settings(
        db_dsn="dbname=tiersync_test",
        db_connect_timeout=1,
        category_pause_seconds=0.5,
        batch_size=3,
        deletion_policy="deprecate",
    )


# ── In-memory adapters ─────────────────────────────────────────────────────

class InMemoryTaxonomyRepository:
    """Dict-backed repository that logs every write.

    ``writes`` holds (operation, id) tuples in call order; seed_* helpers
    populate state without logging, so a test can assert "zero writes".
    ``fail_categories`` makes list_questions_by_category raise DatabaseError
    for the given category ids.  Like the partial unique index, question
    text is unique per category among active (non-deprecated) rows.
    """

    def __init__(self) -> None:
        self.categories: dict[str, Category] = {}
        self.questions: dict[str, Question] = {}
        self.response_counts: dict[str, int] = {}
        self.writes: list[tuple[str, str]] = []
        self.locks: list[str] = []
        self.fail_categories: set[str] = set()
        self._ids = itertools.count(1)
        self._depth = 0

    # ── seeding helpers ────────────────────────────────────────────────────

    def seed_category(self, name: str, order_index: int) -> Category:
        category = Category(id=f"cat-{next(self._ids)}", name=name, order_index=order_index)
        self.categories[category.id] = category
        return category

    def seed_question(
        self,
        category_id: str,
        text: str,
        order_index: int,
        **fields,
    ) -> Question:
        question = Question(
            id=f"q-{next(self._ids)}",
            category_id=category_id,
            text=text,
            order_index=order_index,
            **fields,
        )
        self.questions[question.id] = question
        return question

    def active_questions(self, category_id: str) -> list[Question]:
        return sorted(
            (q for q in self.questions.values()
             if q.category_id == category_id and not q.deprecated),
            key=lambda q: q.order_index,
        )

    def category_by_name(self, name: str) -> Optional[Category]:
        return next((c for c in self.categories.values() if c.name == name), None)

    # ── TaxonomyRepository implementation ──────────────────────────────────

    def list_categories(self) -> list[Category]:
        return sorted(self.categories.values(), key=lambda c: (c.order_index, c.name))

    def upsert_category(self, category: Category) -> Category:
        stored = self.categories.get(category.id) if category.id else None
        if stored is None:
            stored = self.category_by_name(category.name)
        if stored is None:
            stored = category.model_copy(update={"id": f"cat-{next(self._ids)}"})
            self.writes.append(("insert_category", stored.id))
        else:
            stored = stored.model_copy(update={"order_index": category.order_index})
            self.writes.append(("update_category", stored.id))
        self.categories[stored.id] = stored
        return stored

    def list_questions_by_category(self, category_id: str) -> list[Question]:
        if category_id in self.fail_categories:
            raise DatabaseError(f"simulated failure for {category_id}")
        return self.active_questions(category_id)

    def _active_with_text(self, category_id: str, text: str) -> Optional[Question]:
        return next(
            (q for q in self.questions.values()
             if q.category_id == category_id and q.text == text and not q.deprecated),
            None,
        )

    def upsert_question(self, question: Question) -> Question:
        if question.id:
            if question.id not in self.questions:
                raise NotFoundError(f"question {question.id} does not exist")
            # same rule as the partial unique index on (category_id, text)
            clash = self._active_with_text(question.category_id, question.text)
            if clash is not None and clash.id != question.id:
                raise DatabaseError(
                    "duplicate key value violates unique constraint "
                    "questions_category_active_text_key"
                )
            stored = self.questions[question.id].model_copy(
                update={
                    "text": question.text,
                    "order_index": question.order_index,
                    "answer_type": question.answer_type,
                    "template_key": question.template_key,
                    "deprecated": False,
                }
            )
            self.writes.append(("update_question", stored.id))
        else:
            stored = self._active_with_text(question.category_id, question.text)
            if stored is None:
                stored = question.model_copy(update={"id": f"q-{next(self._ids)}"})
                self.writes.append(("insert_question", stored.id))
            else:
                stored = stored.model_copy(
                    update={
                        "order_index": question.order_index,
                        "answer_type": question.answer_type,
                        "template_key": question.template_key or stored.template_key,
                    }
                )
                self.writes.append(("update_question", stored.id))
        self.questions[stored.id] = stored
        return stored

    def delete_question(self, question_id: str) -> None:
        self.questions.pop(question_id, None)
        self.response_counts.pop(question_id, None)
        self.writes.append(("delete_question", question_id))

    def deprecate_question(self, question_id: str) -> None:
        self.questions[question_id] = self.questions[question_id].model_copy(
            update={"deprecated": True}
        )
        self.writes.append(("deprecate_question", question_id))

    def has_responses(self, question_id: str) -> bool:
        return self.response_counts.get(question_id, 0) > 0

    def fetch_questions(self, question_ids: list[str]) -> dict[str, Question]:
        return {i: self.questions[i] for i in question_ids if i in self.questions}

    @contextmanager
    def transaction(self, lock_key: Optional[str] = None):
        if lock_key:
            self.locks.append(lock_key)
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return
        snapshot = (
            copy.deepcopy(self.categories),
            copy.deepcopy(self.questions),
            copy.deepcopy(self.response_counts),
        )
        self._depth = 1
        try:
            yield
        except BaseException:
            self.categories, self.questions, self.response_counts = snapshot
            raise
        finally:
            self._depth = 0


class InMemoryResponseStore:
    """Fake Assessment Response Store keyed by assessment id."""

    def __init__(self) -> None:
        self.answers: dict[str, list[RecordedAnswer]] = {}
        self.saved: dict[str, Tier] = {}

    def record(self, assessment_id: str, question_id: str, value, answer_type=AnswerType.BOOLEAN) -> None:
        self.answers.setdefault(assessment_id, []).append(
            RecordedAnswer(question_id=question_id, answer_type=answer_type, value=value)
        )

    def get_answers(self, assessment_id: str) -> list[RecordedAnswer]:
        return list(self.answers.get(assessment_id, []))

    def save_tier(self, assessment_id: str, tier: Tier) -> None:
        if assessment_id not in self.answers:
            raise NotFoundError(f"assessment {assessment_id} does not exist")
        self.saved[assessment_id] = tier


# ── pytest fixtures ────────────────────────────────────────────────────────

@pytest.fixture
def repo():
    return InMemoryTaxonomyRepository()


@pytest.fixture
def responses():
    return InMemoryResponseStore()


@pytest.fixture(scope="session")
def registry():
    return TemplateRegistry(get_template())


@pytest.fixture
def category_reconciler(repo):
    return CategoryReconciler(repo)


@pytest.fixture
def question_reconciler(repo):
    return QuestionReconciler(repo, deletion_policy=DeletionPolicy.DEPRECATE)


@pytest.fixture
def sleeps():
    """List that records every pause the driver requests."""
    return []


@pytest.fixture
def driver(registry, category_reconciler, question_reconciler, settings, sleeps):
    return ReconcileDriver(
        registry=registry,
        categories=category_reconciler,
        questions=question_reconciler,
        settings=settings,
        sleep=sleeps.append,
    )
