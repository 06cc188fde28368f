"""
adapters/postgres_repository.py
──────────────────────────────────────────────────────────────────────────────
Implements TaxonomyRepository using psycopg2.

Database layout (see ensure_schema):
  Table : question_categories
  Cols  : id uuid (PK), name (unique), description, order_index, created_at
  Table : questions
  Cols  : id uuid (PK), category_id → question_categories ON DELETE CASCADE,
          text, description, order_index, impacts_tier, question_type,
          validation_rules, template_key, deprecated, created_at
  Index : UNIQUE (category_id, text) WHERE NOT deprecated

The partial (category_id, text) index turns a racing duplicate insert into
an ON CONFLICT patch of the existing active row instead of a second copy.
Deprecated rows sit outside it, so a retired question keeps its text (and
its responses) while an active row takes that text over.

To swap the database engine:
  1. Write a new adapter implementing TaxonomyRepository
  2. Change ONE import in services/container.py
"""
from __future__ import annotations

import logging

from tiersync.adapters.postgres_base import PostgresAdapterBase
from tiersync.domain.exceptions import NotFoundError
from tiersync.domain.models import Category, Question

logger = logging.getLogger(__name__)

_CATEGORY_COLS = "id::text AS id, name, description, order_index"

_QUESTION_COLS = """
    id::text          AS id,
    category_id::text AS category_id,
    text,
    COALESCE(description, '')     AS description,
    order_index,
    question_type                 AS answer_type,
    template_key,
    COALESCE(impacts_tier, TRUE)  AS impacts_tier,
    deprecated
"""

# Idempotent; safe to run on every deploy.  assessments / assessment_responses
# belong to the host application and are only created here for fresh stores.
_SCHEMA_DDL = (
    """
    CREATE TABLE IF NOT EXISTS question_categories (
        id          uuid PRIMARY KEY DEFAULT gen_random_uuid(),
        name        text NOT NULL,
        description text,
        order_index integer NOT NULL,
        created_at  timestamp DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS questions (
        id          uuid PRIMARY KEY DEFAULT gen_random_uuid(),
        category_id uuid NOT NULL
                    REFERENCES question_categories (id) ON DELETE CASCADE,
        text        text NOT NULL,
        description text,
        order_index integer NOT NULL,
        created_at  timestamp DEFAULT now()
    )
    """,
    "ALTER TABLE questions ADD COLUMN IF NOT EXISTS impacts_tier boolean DEFAULT TRUE",
    "ALTER TABLE questions ADD COLUMN IF NOT EXISTS question_type text NOT NULL DEFAULT 'boolean'",
    "ALTER TABLE questions ADD COLUMN IF NOT EXISTS validation_rules jsonb DEFAULT '{}'::jsonb",
    "ALTER TABLE questions ADD COLUMN IF NOT EXISTS template_key text",
    "ALTER TABLE questions ADD COLUMN IF NOT EXISTS deprecated boolean NOT NULL DEFAULT FALSE",
    """
    CREATE TABLE IF NOT EXISTS assessments (
        id              uuid PRIMARY KEY DEFAULT gen_random_uuid(),
        assessment_type text DEFAULT 'tier-assessment',
        tier_level      integer,
        created_at      timestamp DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS assessment_responses (
        id               uuid PRIMARY KEY DEFAULT gen_random_uuid(),
        assessment_id    uuid NOT NULL REFERENCES assessments (id) ON DELETE CASCADE,
        question_id      uuid NOT NULL REFERENCES questions (id) ON DELETE CASCADE,
        response         boolean,
        text_response    text,
        numeric_response double precision,
        select_response  text,
        created_at       timestamp DEFAULT now()
    )
    """,
    "CREATE UNIQUE INDEX IF NOT EXISTS question_categories_name_key ON question_categories (name)",
    # Deprecated rows keep their text; only active rows must be unique.
    "DROP INDEX IF EXISTS questions_category_text_key",
    """
    CREATE UNIQUE INDEX IF NOT EXISTS questions_category_active_text_key
        ON questions (category_id, text) WHERE NOT deprecated
    """,
    "CREATE INDEX IF NOT EXISTS questions_category_idx ON questions (category_id, order_index)",
    "CREATE INDEX IF NOT EXISTS assessment_responses_question_idx ON assessment_responses (question_id)",
)


class PostgresTaxonomyRepository(PostgresAdapterBase):
    """psycopg2 implementation of TaxonomyRepository.

    Injected into the reconcilers via services/container.py.
    """

    # ── Schema ─────────────────────────────────────────────────────────────

    def ensure_schema(self) -> None:
        """Create tables, columns and constraints the reconciler relies on.

        Raises:
            DatabaseError: e.g. when existing duplicate (category_id, text)
                           rows prevent the unique index from being built.
        """
        with self.transaction():
            for statement in _SCHEMA_DDL:
                self._execute(statement)
        logger.info("Schema ensured (%d statements)", len(_SCHEMA_DDL))

    # ── Categories ─────────────────────────────────────────────────────────

    def list_categories(self) -> list[Category]:
        rows = self._execute(
            f"SELECT {_CATEGORY_COLS} FROM question_categories ORDER BY order_index, name"
        )
        return [Category(**row) for row in rows]

    def upsert_category(self, category: Category) -> Category:
        if category.id:
            rows = self._execute(
                f"""
                UPDATE question_categories
                SET    order_index = %s
                WHERE  id = %s
                RETURNING {_CATEGORY_COLS}
                """,
                (category.order_index, category.id),
            )
            if not rows:
                raise NotFoundError(f"category {category.id} does not exist")
        else:
            rows = self._execute(
                f"""
                INSERT INTO question_categories (name, description, order_index)
                VALUES (%s, %s, %s)
                ON CONFLICT (name) DO UPDATE
                SET    order_index = EXCLUDED.order_index
                RETURNING {_CATEGORY_COLS}
                """,
                (category.name, category.description, category.order_index),
            )
        return Category(**rows[0])

    # ── Questions ──────────────────────────────────────────────────────────

    def list_questions_by_category(self, category_id: str) -> list[Question]:
        rows = self._execute(
            f"""
            SELECT {_QUESTION_COLS}
            FROM   questions
            WHERE  category_id = %s AND NOT deprecated
            ORDER  BY order_index, created_at
            """,
            (category_id,),
        )
        return [Question(**row) for row in rows]

    def upsert_question(self, question: Question) -> Question:
        if question.id:
            rows = self._execute(
                f"""
                UPDATE questions
                SET    text = %s,
                       order_index = %s,
                       question_type = %s,
                       template_key = %s,
                       deprecated = FALSE
                WHERE  id = %s
                RETURNING {_QUESTION_COLS}
                """,
                (
                    question.text,
                    question.order_index,
                    question.answer_type.value,
                    question.template_key,
                    question.id,
                ),
            )
            if not rows:
                raise NotFoundError(f"question {question.id} does not exist")
        else:
            rows = self._execute(
                f"""
                INSERT INTO questions
                       (category_id, text, description, order_index,
                        question_type, template_key, impacts_tier)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (category_id, text) WHERE NOT deprecated DO UPDATE
                SET    order_index   = EXCLUDED.order_index,
                       question_type = EXCLUDED.question_type,
                       template_key  = COALESCE(EXCLUDED.template_key,
                                                questions.template_key)
                RETURNING {_QUESTION_COLS}
                """,
                (
                    question.category_id,
                    question.text,
                    question.description or "",
                    question.order_index,
                    question.answer_type.value,
                    question.template_key,
                    question.impacts_tier,
                ),
            )
        return Question(**rows[0])

    def delete_question(self, question_id: str) -> None:
        self._execute("DELETE FROM questions WHERE id = %s", (question_id,))

    def deprecate_question(self, question_id: str) -> None:
        self._execute(
            "UPDATE questions SET deprecated = TRUE WHERE id = %s", (question_id,)
        )

    def has_responses(self, question_id: str) -> bool:
        rows = self._execute(
            """
            SELECT EXISTS (
                SELECT 1 FROM assessment_responses WHERE question_id = %s
            ) AS present
            """,
            (question_id,),
        )
        return bool(rows and rows[0]["present"])

    def fetch_questions(self, question_ids: list[str]) -> dict[str, Question]:
        """Fetch questions by id.  Unknown ids are absent from the result."""
        if not question_ids:
            return {}
        rows = self._execute(
            f"SELECT {_QUESTION_COLS} FROM questions WHERE id::text = ANY(%s)",
            (list(question_ids),),
        )
        return {row["id"]: Question(**row) for row in rows}
