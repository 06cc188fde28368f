"""
ports/response_port.py
──────────────────────────────────────────────────────────────────────────────
Abstract interface for the Assessment Response Store.

Tier classification itself never touches storage: services/tiering.classify
takes already-resolved (Question, value) pairs.  This port is only used by
TierService to read one assessment's answers and, optionally, record the
resulting tier back on the assessment for reporting.

Current implementation: PostgresResponseStore (psycopg2)
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from tiersync.domain.models import RecordedAnswer, Tier


@runtime_checkable
class AssessmentResponsePort(Protocol):
    """Contract for reading recorded answers."""

    def get_answers(self, assessment_id: str) -> list[RecordedAnswer]:
        """Return every recorded answer of an assessment, oldest first.

        Returns:
            List of RecordedAnswer (question_id, answer_type, value).
            Empty list if the assessment has no responses.

        Raises:
            DatabaseError: On connection or query failure.
        """
        ...

    def save_tier(self, assessment_id: str, tier: Tier) -> None:
        """Store the computed tier on the assessment.

        Raises:
            NotFoundError: If the assessment does not exist.
            DatabaseError: On connection or query failure.
        """
        ...
