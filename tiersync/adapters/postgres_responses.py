"""
adapters/postgres_responses.py
──────────────────────────────────────────────────────────────────────────────
Implements AssessmentResponsePort using psycopg2.

Reads the host application's assessment_responses table.  Each response
row stores its value in one of four typed columns; the question's type
decides which one is the recorded value.
"""
from __future__ import annotations

import logging

from tiersync.adapters.postgres_base import PostgresAdapterBase
from tiersync.domain.exceptions import NotFoundError
from tiersync.domain.models import AnswerType, RecordedAnswer, Tier

logger = logging.getLogger(__name__)

_VALUE_COLUMN = {
    AnswerType.BOOLEAN: "response",
    AnswerType.TEXT:    "text_response",
    AnswerType.NUMERIC: "numeric_response",
    AnswerType.SELECT:  "select_response",
}


class PostgresResponseStore(PostgresAdapterBase):
    """psycopg2 implementation of AssessmentResponsePort."""

    def get_answers(self, assessment_id: str) -> list[RecordedAnswer]:
        rows = self._execute(
            """
            SELECT r.question_id::text                     AS question_id,
                   COALESCE(q.question_type, 'boolean')    AS answer_type,
                   r.response,
                   r.text_response,
                   r.numeric_response,
                   r.select_response
            FROM   assessment_responses r
            LEFT   JOIN questions q ON q.id = r.question_id
            WHERE  r.assessment_id = %s
            ORDER  BY r.created_at
            """,
            (assessment_id,),
        )
        answers: list[RecordedAnswer] = []
        for row in rows:
            answer_type = AnswerType(row["answer_type"])
            answers.append(
                RecordedAnswer(
                    question_id=row["question_id"],
                    answer_type=answer_type,
                    value=row[_VALUE_COLUMN[answer_type]],
                )
            )
        logger.debug("Assessment %s: %d recorded answers", assessment_id, len(answers))
        return answers

    def save_tier(self, assessment_id: str, tier: Tier) -> None:
        rows = self._execute(
            "UPDATE assessments SET tier_level = %s WHERE id = %s RETURNING id",
            (int(tier), assessment_id),
        )
        if not rows:
            raise NotFoundError(f"assessment {assessment_id} does not exist")
        logger.info("Assessment %s: tier_level set to %d", assessment_id, tier)
