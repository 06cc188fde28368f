"""
domain/models.py
──────────────────────────────────────────────────────────────────────────────
Pure domain objects — Pydantic models with no imports from adapters or ports.

These models are the lingua franca of the entire system:
  • adapters produce and consume them (Category, Question, RecordedAnswer)
  • services orchestrate them (plans, run reports, tier results)
  • interfaces (CLI) serialise them

Canonical* models describe the questionnaire template; the un-prefixed
models describe persisted rows.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator


# ── Enums ──────────────────────────────────────────────────────────────────────

class AnswerType(str, Enum):
    """Kind of value a question records."""
    BOOLEAN = "boolean"
    TEXT    = "text"
    NUMERIC = "numeric"
    SELECT  = "select"


class DeletionPolicy(str, Enum):
    """Fate of an obsolete question during reconciliation."""
    DEPRECATE = "deprecate"   # keep rows that have responses, hidden from listings
    CASCADE   = "cascade"     # always delete; responses go with the row


class Tier(IntEnum):
    """Capability tier, 1 = highest."""
    TIER_1 = 1
    TIER_2 = 2
    TIER_3 = 3
    TIER_4 = 4


# ── Canonical template ─────────────────────────────────────────────────────────

class CanonicalQuestion(BaseModel):
    """One question definition in the canonical template.

    ``key`` is the stable identity of the question; ``text`` is its current
    wording and may be corrected without losing recorded responses.
    """

    key:         str = Field(..., min_length=1, max_length=80)
    text:        str = Field(..., min_length=1)
    answer_type: AnswerType = AnswerType.BOOLEAN

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class CanonicalCategory(BaseModel):
    """One category of the canonical template, questions in display order."""

    name:        str = Field(..., min_length=1)
    order_index: int = Field(..., ge=1)
    questions:   tuple[CanonicalQuestion, ...] = ()

    @property
    def question_texts(self) -> list[str]:
        return [q.text for q in self.questions]


class Template(BaseModel):
    """The full canonical questionnaire, categories in display order."""

    version:    str
    categories: tuple[CanonicalCategory, ...]

    @property
    def question_count(self) -> int:
        return sum(len(c.questions) for c in self.categories)


# ── Persisted rows ─────────────────────────────────────────────────────────────

class Category(BaseModel):
    """A row of question_categories."""

    id:          Optional[str] = None
    name:        str
    order_index: int
    description: Optional[str] = None


class Question(BaseModel):
    """A row of questions."""

    id:           Optional[str] = None
    category_id:  str
    text:         str
    description:  Optional[str] = ""
    order_index:  int
    answer_type:  AnswerType = AnswerType.BOOLEAN
    template_key: Optional[str] = None
    impacts_tier: bool = True
    deprecated:   bool = False

    @property
    def is_tier_impacting(self) -> bool:
        """Boolean questions count toward the tier unless explicitly opted out."""
        return self.answer_type == AnswerType.BOOLEAN and self.impacts_tier


class RecordedAnswer(BaseModel):
    """One response read from the Assessment Response Store."""

    question_id: str
    answer_type: AnswerType = AnswerType.BOOLEAN
    value:       Union[bool, float, str, None] = None


# ── Reconciliation results ─────────────────────────────────────────────────────

class QuestionReconcileResult(BaseModel):
    """Write counts for one category's question pass."""

    category_id: str
    created:     int = 0
    updated:     int = 0
    deleted:     int = 0
    deprecated:  int = 0

    @property
    def writes(self) -> int:
        return self.created + self.updated + self.deleted + self.deprecated


class CategoryOutcome(BaseModel):
    """Result of reconciling one category inside a driver run."""

    name:        str
    order_index: int
    ok:          bool
    result:      Optional[QuestionReconcileResult] = None
    error:       Optional[str] = None


class RunReport(BaseModel):
    """Summary of one driver invocation.

    ``next_start`` is set when an index-range run stopped before the end of
    the template; pass it (with ``count``) to the next invocation.
    """

    mode:             str
    template_version: str
    outcomes:         list[CategoryOutcome] = Field(default_factory=list)
    categories_created: int = 0
    categories_updated: int = 0
    next_start:       Optional[int] = None
    count:            Optional[int] = None
    started_at:       datetime = Field(
                          default_factory=lambda: datetime.now(timezone.utc)
                      )

    @property
    def succeeded(self) -> list[CategoryOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[CategoryOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def done(self) -> bool:
        return self.next_start is None

    @property
    def writes(self) -> int:
        question_writes = sum(o.result.writes for o in self.outcomes if o.result)
        return question_writes + self.categories_created + self.categories_updated

    def to_dict(self) -> dict:
        """Serialise to a plain JSON-safe dict."""
        return self.model_dump(mode="json")


# ── Tier classification ────────────────────────────────────────────────────────

class TierResult(BaseModel):
    """Tier plus the figures it was derived from."""

    tier:        Tier
    affirmative: int
    impacting:   int
    ratio:       float
    gaps:        list[str] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


# ── Verification ───────────────────────────────────────────────────────────────

class CategoryAlignment(BaseModel):
    """Read-only comparison of one category with the template."""

    name:            str
    order_index:     int
    exists:          bool
    order_matches:   bool = True
    expected:        int
    actual:          int = 0
    missing:         list[str] = Field(default_factory=list)
    extra:           list[str] = Field(default_factory=list)
    drifted:         list[str] = Field(default_factory=list)

    @property
    def aligned(self) -> bool:
        return (
            self.exists
            and self.order_matches
            and not self.missing
            and not self.extra
            and not self.drifted
        )


class AlignmentReport(BaseModel):
    """Verification result for the whole template."""

    template_version: str
    categories:       list[CategoryAlignment]

    @property
    def aligned(self) -> bool:
        return all(c.aligned for c in self.categories)

    @property
    def expected_total(self) -> int:
        return sum(c.expected for c in self.categories)

    @property
    def actual_total(self) -> int:
        return sum(c.actual for c in self.categories)
