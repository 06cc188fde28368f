"""
services/tiering.py
──────────────────────────────────────────────────────────────────────────────
Tier classification: reduce one assessment's answers to a tier 1–4.

  ratio = affirmative tier-impacting answers / tier-impacting answers

  ratio ≥ 0.90          → Tier 1
  0.75 ≤ ratio < 0.90   → Tier 2
  0.50 ≤ ratio < 0.75   → Tier 3
  ratio < 0.50          → Tier 4

Lower bounds are inclusive and compared with exact rational arithmetic
(fractions.Fraction): 9 "yes" out of 10 is exactly 0.90 and lands in Tier 1.

A question is tier-impacting when it is boolean-typed and its impacts_tier
flag is set (the flag defaults to true).  Zero tier-impacting answers is an
error — no default tier is ever returned.

classify() and assess() are pure.  TierService is the storage-backed wrapper
that resolves an assessment id to (Question, value) pairs.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from fractions import Fraction
from typing import Any, Union

from tiersync.domain.exceptions import ClassificationError
from tiersync.domain.models import Question, RecordedAnswer, Tier, TierResult
from tiersync.ports.repository_port import TaxonomyRepository
from tiersync.ports.response_port import AssessmentResponsePort

logger = logging.getLogger(__name__)

# (inclusive lower bound, tier), highest band first
TIER_BANDS: tuple[tuple[Fraction, Tier], ...] = (
    (Fraction(90, 100), Tier.TIER_1),
    (Fraction(75, 100), Tier.TIER_2),
    (Fraction(50, 100), Tier.TIER_3),
)

AnswerPair = tuple[Question, Any]


# ── Pure functions ─────────────────────────────────────────────────────────

def tier_for_ratio(ratio: Union[Fraction, float, int]) -> Tier:
    """Map an affirmative ratio in [0, 1] to its tier.

    Floats are read through their shortest decimal form, so 0.9 means 9/10.

    Raises:
        ValueError: If ratio is outside [0, 1].
    """
    exact = Fraction(repr(ratio)) if isinstance(ratio, float) else Fraction(ratio)
    if not 0 <= exact <= 1:
        raise ValueError(f"ratio must be within [0, 1], got {ratio}")
    for lower_bound, tier in TIER_BANDS:
        if exact >= lower_bound:
            return tier
    return Tier.TIER_4


def assess(answers: Iterable[AnswerPair]) -> TierResult:
    """Classify answers and report the figures behind the tier.

    Args:
        answers: (Question, recorded value) pairs.  Only ``True`` counts as
                 affirmative; unanswered (None) counts against the ratio.

    Returns:
        TierResult with tier, counts, ratio and ``gaps`` — the texts of
        tier-impacting questions not answered affirmatively, in input order.

    Raises:
        ClassificationError: If no answer is tier-impacting.
    """
    impacting = 0
    affirmative = 0
    gaps: list[str] = []
    for question, value in answers:
        if not question.is_tier_impacting:
            continue
        impacting += 1
        if value is True:
            affirmative += 1
        else:
            gaps.append(question.text)

    if impacting == 0:
        raise ClassificationError("no tier-impacting answers; tier cannot be computed")

    ratio = Fraction(affirmative, impacting)
    return TierResult(
        tier=tier_for_ratio(ratio),
        affirmative=affirmative,
        impacting=impacting,
        ratio=float(ratio),
        gaps=gaps,
    )


def classify(answers: Iterable[AnswerPair]) -> Tier:
    """Return the tier for (Question, value) pairs.

    Raises:
        ClassificationError: If no answer is tier-impacting.
    """
    return assess(answers).tier


# ── Service class ──────────────────────────────────────────────────────────

class TierService:
    """Classifies a stored assessment.

    Args:
        repository: TaxonomyRepository, used to resolve question ids.
        responses:  AssessmentResponsePort, source of recorded answers.
    """

    def __init__(
        self,
        repository: TaxonomyRepository,
        responses: AssessmentResponsePort,
    ) -> None:
        self._repo = repository
        self._responses = responses

    def classify_assessment(self, assessment_id: str, save: bool = False) -> TierResult:
        """Resolve an assessment's answers and classify them.

        Answers whose question no longer exists, or has been deprecated, are
        skipped with a log line rather than counted.  When a question was
        answered more than once, only the last recorded answer counts.

        Args:
            assessment_id: Assessment to classify.
            save:          Also store the tier on the assessment.

        Raises:
            ClassificationError: If no tier-impacting answers remain.
            NotFoundError:       If ``save`` and the assessment does not exist.
            DatabaseError:       On storage failure.
        """
        # one answer per question: the last one recorded wins
        latest: dict[str, RecordedAnswer] = {}
        for answer in self._responses.get_answers(assessment_id):
            latest[answer.question_id] = answer
        questions = self._repo.fetch_questions(list(latest))

        pairs: list[AnswerPair] = []
        for answer in latest.values():
            question = questions.get(answer.question_id)
            if question is None:
                logger.warning(
                    "Answer references missing question %s — skipped", answer.question_id
                )
                continue
            if question.deprecated:
                logger.debug("Answer to deprecated question %r skipped", question.text)
                continue
            pairs.append((question, answer.value))

        result = assess(pairs)
        logger.info(
            "Assessment %s | tier=%d affirmative=%d/%d",
            assessment_id,
            result.tier,
            result.affirmative,
            result.impacting,
        )
        if save:
            self._responses.save_tier(assessment_id, result.tier)
        return result
