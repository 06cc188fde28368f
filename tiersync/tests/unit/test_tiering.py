"""
tests/unit/test_tiering.py
──────────────────────────────────────────────────────────────────────────────
Unit tests for tier classification.

Tests cover:
  • tier_for_ratio() band boundaries (inclusive lower bounds)
  • assess()/classify(): what counts as tier-impacting and affirmative
  • TierService: id resolution, skipped answers, save
"""
from __future__ import annotations

from fractions import Fraction

import pytest

from tiersync.domain.exceptions import ClassificationError, NotFoundError
from tiersync.domain.models import AnswerType, Question, Tier
from tiersync.services.tiering import TierService, assess, classify, tier_for_ratio


def _q(text: str, **fields) -> Question:
    return Question(id=text, category_id="cat", text=text, order_index=1, **fields)


def _answers(yes: int, no: int) -> list[tuple[Question, bool]]:
    pairs = [(_q(f"yes-{i}"), True) for i in range(yes)]
    pairs += [(_q(f"no-{i}"), False) for i in range(no)]
    return pairs


class TestTierForRatio:
    @pytest.mark.parametrize(
        "ratio, tier",
        [
            (1.0, Tier.TIER_1),
            (0.95, Tier.TIER_1),
            (0.90, Tier.TIER_1),
            (0.89, Tier.TIER_2),
            (0.75, Tier.TIER_2),
            (0.60, Tier.TIER_3),
            (0.50, Tier.TIER_3),
            (0.40, Tier.TIER_4),
            (0.0, Tier.TIER_4),
        ],
    )
    def test_bands(self, ratio, tier):
        assert tier_for_ratio(ratio) == tier

    def test_exact_fraction_on_boundary(self):
        assert tier_for_ratio(Fraction(9, 10)) == Tier.TIER_1
        assert tier_for_ratio(Fraction(3, 4)) == Tier.TIER_2
        assert tier_for_ratio(Fraction(1, 2)) == Tier.TIER_3

    def test_just_below_boundary(self):
        assert tier_for_ratio(Fraction(8999, 10000)) == Tier.TIER_2

    @pytest.mark.parametrize("ratio", [-0.1, 1.01])
    def test_out_of_range_raises(self, ratio):
        with pytest.raises(ValueError):
            tier_for_ratio(ratio)


class TestClassify:
    def test_nine_of_ten_is_tier_one(self):
        assert classify(_answers(9, 1)) == Tier.TIER_1

    def test_three_of_four_is_tier_two(self):
        assert classify(_answers(3, 1)) == Tier.TIER_2

    def test_one_of_two_is_tier_three(self):
        assert classify(_answers(1, 1)) == Tier.TIER_3

    def test_two_of_five_is_tier_four(self):
        assert classify(_answers(2, 3)) == Tier.TIER_4

    def test_empty_answers_raise(self):
        with pytest.raises(ClassificationError):
            classify([])

    def test_only_non_boolean_answers_raise(self):
        pairs = [(_q("How many?", answer_type=AnswerType.NUMERIC), 12)]
        with pytest.raises(ClassificationError):
            classify(pairs)

    def test_non_boolean_answers_ignored(self):
        pairs = _answers(1, 0) + [
            (_q("Notes", answer_type=AnswerType.TEXT), "no"),
            (_q("Count", answer_type=AnswerType.NUMERIC), 0),
        ]
        result = assess(pairs)
        assert result.impacting == 1
        assert result.tier == Tier.TIER_1

    def test_opted_out_question_ignored(self):
        pairs = _answers(1, 0) + [(_q("Informational", impacts_tier=False), False)]
        assert assess(pairs).impacting == 1

    def test_unanswered_counts_against(self):
        pairs = _answers(1, 0) + [(_q("Skipped"), None)]
        result = assess(pairs)
        assert result.ratio == 0.5
        assert result.gaps == ["Skipped"]

    def test_only_true_is_affirmative(self):
        pairs = [(_q("a"), "true"), (_q("b"), 1), (_q("c"), True)]
        assert assess(pairs).affirmative == 1


class TestAssess:
    def test_reports_counts_and_ratio(self):
        result = assess(_answers(3, 1))
        assert (result.affirmative, result.impacting) == (3, 4)
        assert result.ratio == 0.75

    def test_gaps_in_input_order(self):
        pairs = [(_q("First"), False), (_q("Second"), True), (_q("Third"), False)]
        assert assess(pairs).gaps == ["First", "Third"]

    def test_to_dict_is_json_safe(self):
        d = assess(_answers(1, 0)).to_dict()
        assert d["tier"] == 1
        assert d["gaps"] == []


class TestTierService:
    @pytest.fixture
    def service(self, repo, responses):
        return TierService(repository=repo, responses=responses)

    @pytest.fixture
    def questions(self, repo):
        category = repo.seed_category("Alpha", 1)
        return [repo.seed_question(category.id, f"Q{i}?", i) for i in range(1, 5)]

    def test_classifies_recorded_answers(self, service, responses, questions):
        for q, value in zip(questions, (True, True, True, False)):
            responses.record("a-1", q.id, value)
        result = service.classify_assessment("a-1")
        assert result.tier == Tier.TIER_2
        assert result.gaps == ["Q4?"]

    def test_repeated_answers_count_once_last_wins(self, service, responses, questions):
        responses.record("a-1", questions[0].id, True)
        responses.record("a-1", questions[1].id, True)
        responses.record("a-1", questions[0].id, True)
        responses.record("a-1", questions[0].id, False)
        result = service.classify_assessment("a-1")
        assert (result.affirmative, result.impacting) == (1, 2)
        assert result.gaps == ["Q1?"]

    def test_missing_question_skipped(self, service, responses, questions):
        responses.record("a-1", questions[0].id, True)
        responses.record("a-1", "gone", False)
        assert service.classify_assessment("a-1").impacting == 1

    def test_deprecated_question_skipped(self, service, repo, responses, questions):
        responses.record("a-1", questions[0].id, True)
        responses.record("a-1", questions[1].id, False)
        repo.deprecate_question(questions[1].id)
        result = service.classify_assessment("a-1")
        assert result.impacting == 1
        assert result.tier == Tier.TIER_1

    def test_no_answers_raise(self, service):
        with pytest.raises(ClassificationError):
            service.classify_assessment("unknown")

    def test_save_stores_tier(self, service, responses, questions):
        responses.record("a-1", questions[0].id, False)
        service.classify_assessment("a-1", save=True)
        assert responses.saved == {"a-1": Tier.TIER_4}

    def test_without_save_nothing_stored(self, service, responses, questions):
        responses.record("a-1", questions[0].id, True)
        service.classify_assessment("a-1")
        assert responses.saved == {}

    def test_save_unknown_assessment_raises(self, service, responses, questions, monkeypatch):
        responses.record("a-1", questions[0].id, True)
        monkeypatch.setattr(
            responses, "get_answers", lambda _id: responses.answers["a-1"]
        )
        with pytest.raises(NotFoundError):
            service.classify_assessment("a-2", save=True)
