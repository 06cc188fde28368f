"""
tests/integration/test_postgres_repository.py
──────────────────────────────────────────────────────────────────────────────
Integration tests for PostgresTaxonomyRepository and PostgresResponseStore.

Requires a running PostgreSQL 13+ instance (gen_random_uuid).  These tests
are marked @pytest.mark.integration and are SKIPPED in the standard test run.
They only touch categories whose names start with "it-" and remove them
afterwards.

Run with:
  pytest -m integration tiersync/tests/integration/ -v

Environment:
  DB_DSN defaults to "dbname=tiersync"
"""
from __future__ import annotations

import uuid

import pytest

from tiersync.domain.exceptions import DatabaseError, NotFoundError
from tiersync.domain.models import (
    CanonicalQuestion,
    Category,
    DeletionPolicy,
    Question,
    Tier,
)
from tiersync.services.question_reconciler import QuestionReconciler

pytestmark = pytest.mark.integration


@pytest.fixture(scope="module")
def pg_repo():
    """Create a real PostgresTaxonomyRepository with the schema in place."""
    from tiersync.adapters.postgres_repository import PostgresTaxonomyRepository
    from tiersync.config.settings import get_settings
    adapter = PostgresTaxonomyRepository(get_settings())
    adapter.ensure_schema()
    yield adapter
    adapter._execute("DELETE FROM question_categories WHERE name LIKE %s", ("it-%",))
    adapter.close()


@pytest.fixture(scope="module")
def pg_responses():
    from tiersync.adapters.postgres_responses import PostgresResponseStore
    from tiersync.config.settings import get_settings
    store = PostgresResponseStore(get_settings())
    yield store
    store.close()


@pytest.fixture
def category(pg_repo):
    return pg_repo.upsert_category(
        Category(name=f"it-{uuid.uuid4().hex[:8]}", order_index=1, description="test")
    )


def _canonical(*texts: str) -> list[CanonicalQuestion]:
    return [CanonicalQuestion(key=f"it.{i}", text=t) for i, t in enumerate(texts)]


class TestSchema:
    def test_ensure_schema_is_idempotent(self, pg_repo):
        pg_repo.ensure_schema()
        pg_repo.ensure_schema()


class TestCategories:
    def test_insert_returns_id(self, category):
        assert category.id

    def test_upsert_by_name_returns_same_row(self, pg_repo, category):
        again = pg_repo.upsert_category(Category(name=category.name, order_index=4))
        assert again.id == category.id
        assert again.order_index == 4

    def test_update_unknown_id_raises(self, pg_repo):
        with pytest.raises(NotFoundError):
            pg_repo.upsert_category(
                Category(id=str(uuid.uuid4()), name="it-ghost", order_index=1)
            )


class TestQuestions:
    def test_insert_and_list(self, pg_repo, category):
        pg_repo.upsert_question(
            Question(category_id=category.id, text="Q1?", order_index=1, template_key="k1")
        )
        stored = pg_repo.list_questions_by_category(category.id)
        assert [(q.text, q.template_key) for q in stored] == [("Q1?", "k1")]
        assert stored[0].description == ""

    def test_duplicate_text_insert_patches_existing_row(self, pg_repo, category):
        first = pg_repo.upsert_question(
            Question(category_id=category.id, text="Q1?", order_index=1)
        )
        second = pg_repo.upsert_question(
            Question(category_id=category.id, text="Q1?", order_index=3, template_key="k1")
        )
        assert second.id == first.id
        assert second.order_index == 3
        assert len(pg_repo.list_questions_by_category(category.id)) == 1

    def test_deprecated_hidden_from_listing(self, pg_repo, category):
        q = pg_repo.upsert_question(
            Question(category_id=category.id, text="Old?", order_index=1)
        )
        pg_repo.deprecate_question(q.id)
        assert pg_repo.list_questions_by_category(category.id) == []
        assert pg_repo.fetch_questions([q.id])[q.id].deprecated is True

    def test_fetch_questions_ignores_unknown_ids(self, pg_repo, category):
        q = pg_repo.upsert_question(
            Question(category_id=category.id, text="Q1?", order_index=1)
        )
        found = pg_repo.fetch_questions([q.id, str(uuid.uuid4())])
        assert list(found) == [q.id]

    def test_transaction_rolls_back(self, pg_repo, category):
        with pytest.raises(DatabaseError):
            with pg_repo.transaction(lock_key=category.id):
                pg_repo.upsert_question(
                    Question(category_id=category.id, text="Q1?", order_index=1)
                )
                pg_repo._execute("SELECT 1/0")
        assert pg_repo.list_questions_by_category(category.id) == []


class TestReconcileAgainstPostgres:
    def test_converges_then_idempotent(self, pg_repo, category):
        reconciler = QuestionReconciler(pg_repo)
        pg_repo.upsert_question(
            Question(category_id=category.id, text="Legacy Q", order_index=1)
        )
        canonical = _canonical("A?", "B?", "C?")

        first = reconciler.reconcile_questions(category.id, canonical)
        second = reconciler.reconcile_questions(category.id, canonical)

        stored = pg_repo.list_questions_by_category(category.id)
        assert [q.text for q in stored] == ["A?", "B?", "C?"]
        assert [q.order_index for q in stored] == [1, 2, 3]
        assert (first.created, first.deleted) == (3, 1)
        assert second.writes == 0


class TestResponses:
    @pytest.fixture
    def assessment(self, pg_repo, category):
        yes = pg_repo.upsert_question(
            Question(category_id=category.id, text="Yes?", order_index=1)
        )
        no = pg_repo.upsert_question(
            Question(category_id=category.id, text="No?", order_index=2)
        )
        assessment_id = pg_repo._execute(
            "INSERT INTO assessments DEFAULT VALUES RETURNING id::text AS id"
        )[0]["id"]
        for q, value in ((yes, True), (no, False)):
            pg_repo._execute(
                "INSERT INTO assessment_responses (assessment_id, question_id, response) "
                "VALUES (%s, %s, %s)",
                (assessment_id, q.id, value),
            )
        yield assessment_id, yes, no
        pg_repo._execute("DELETE FROM assessments WHERE id = %s", (assessment_id,))

    def test_get_answers(self, pg_responses, assessment):
        assessment_id, yes, no = assessment
        answers = {a.question_id: a.value for a in pg_responses.get_answers(assessment_id)}
        assert answers == {yes.id: True, no.id: False}

    def test_has_responses(self, pg_repo, assessment):
        _, yes, _ = assessment
        assert pg_repo.has_responses(yes.id)

    def test_deprecate_policy_keeps_answered_row(self, pg_repo, category, assessment):
        _, yes, no = assessment
        reconciler = QuestionReconciler(pg_repo, deletion_policy=DeletionPolicy.DEPRECATE)
        result = reconciler.reconcile_questions(
            category.id, [CanonicalQuestion(key="it.yes", text="Yes?")]
        )
        assert result.deprecated == 1
        assert pg_repo.fetch_questions([no.id])[no.id].deprecated is True

    def test_answered_retired_text_taken_over(self, pg_repo, category, assessment):
        _, yes, no = assessment
        pg_repo.upsert_question(yes.model_copy(update={"template_key": "it.yes"}))
        reconciler = QuestionReconciler(pg_repo, deletion_policy=DeletionPolicy.DEPRECATE)
        canonical = [CanonicalQuestion(key="it.yes", text="No?")]

        first = reconciler.reconcile_questions(category.id, canonical)
        second = reconciler.reconcile_questions(category.id, canonical)

        stored = pg_repo.list_questions_by_category(category.id)
        assert first.deprecated == 1
        assert [(q.id, q.text) for q in stored] == [(yes.id, "No?")]
        assert pg_repo.fetch_questions([no.id])[no.id].text == "No?"
        assert second.writes == 0

    def test_save_tier(self, pg_repo, pg_responses, assessment):
        assessment_id, _, _ = assessment
        pg_responses.save_tier(assessment_id, Tier.TIER_3)
        row = pg_repo._execute(
            "SELECT tier_level FROM assessments WHERE id = %s", (assessment_id,)
        )[0]
        assert row["tier_level"] == 3

    def test_save_tier_unknown_assessment(self, pg_responses):
        with pytest.raises(NotFoundError):
            pg_responses.save_tier(str(uuid.uuid4()), Tier.TIER_1)
