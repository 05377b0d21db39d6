"""
Unit Tests for Risk Scorer

Tests text phrase scoring, structured answer scoring and the
never-raise contract for malformed input.
"""

import pytest

from harbor.domain.enums.severity import SeverityLevel
from harbor.domain.models.risk import ScoreThresholds
from harbor.services.scoring import RiskScorer


@pytest.fixture
def scorer():
    return RiskScorer()


class TestTextScoring:
    """Tests for free-text scoring."""

    def test_ideation_with_means_is_critical(self, scorer):
        """Ideation plus a method word should be CRITICAL."""
        text = "I want to kill myself and I have pills"
        result = scorer.score(text)

        assert result.level == SeverityLevel.CRITICAL
        assert "suicide_ideation" in result.indicators
        assert "suicide_plan" in result.indicators
        assert result.score == 30
        assert result.source_text_length == len(text)
        assert result.source == "text"

    def test_mild_sadness_is_low(self, scorer):
        """Low-tier vocabulary should yield LOW."""
        result = scorer.score("I feel really sad and lonely today")

        assert result.level == SeverityLevel.LOW
        assert result.indicators == frozenset({"low_mood"})
        assert result.score == 2

    def test_method_word_alone_does_not_raise_severity(self, scorer):
        """Plan phrases count only alongside ideation or self-harm."""
        result = scorer.score("I'm going to the bridge tonight to see the fireworks")

        assert result.level == SeverityLevel.SAFE
        assert "suicide_plan" not in result.indicators
        assert result.score == 0

    def test_medical_emergency_detected(self, scorer):
        """Overdose language is CRITICAL on its own."""
        result = scorer.score("I think I took too many pills")

        assert result.level == SeverityLevel.CRITICAL
        assert result.indicators == frozenset({"medical_emergency"})

    def test_everyday_took_too_much_is_not_an_emergency(self, scorer):
        """Ambiguous overdose wording needs ideation or substance context."""
        result = scorer.score("I took too much time on my homework and feel tired")

        assert "medical_emergency" not in result.indicators
        assert result.level == SeverityLevel.LOW

    def test_bare_overdose_mention_is_not_an_emergency(self, scorer):
        result = scorer.score("We watched a documentary about overdose prevention")

        assert "medical_emergency" not in result.indicators
        assert result.level == SeverityLevel.SAFE

    def test_overdose_with_substance_context_is_critical(self, scorer):
        result = scorer.score("I overdosed on drugs")

        assert result.level == SeverityLevel.CRITICAL
        assert result.indicators == frozenset({"medical_emergency", "substance_use"})

    def test_apostrophes_are_normalized(self, scorer):
        """'can't take it' should match the immediate danger phrase."""
        result = scorer.score("I can't take it anymore")

        assert "immediate_danger" in result.indicators
        assert result.level == SeverityLevel.MODERATE

    def test_phrase_matches_whole_words_only(self, scorer):
        """'alone' should not match inside 'lonely'."""
        result = scorer.score("lonely")

        assert "isolation" not in result.indicators

    def test_deterministic(self, scorer):
        """Identical input should produce equal assessments."""
        text = "I feel hopeless and trapped, like a burden"

        first = scorer.score(text)
        second = scorer.score(text)

        assert first == second
        assert first.id != second.id


class TestConfidence:
    """Tests for confidence derivation."""

    def test_short_input_reduces_confidence(self, scorer):
        result = scorer.score("sad")

        expected = (0.3 + (1 / 50) * 0.65) * 0.7
        assert result.confidence == pytest.approx(expected)

    def test_long_input_increases_confidence(self, scorer):
        result = scorer.score("I am tired " * 20)

        expected = (0.3 + (1 / 50) * 0.65) * 1.1
        assert result.confidence == pytest.approx(expected)

    def test_confidence_clamped_to_one(self, scorer):
        text = "I want to kill myself tonight because I overdosed " + "really " * 50
        result = scorer.score(text)

        assert result.confidence == 1.0

    def test_confidence_in_range(self, scorer):
        for text in ["sad", "help me please", "I feel hopeless", "suicide"]:
            result = scorer.score(text)
            assert 0.0 <= result.confidence <= 1.0


class TestMalformedInput:
    """score() never raises; bad input yields SAFE with zero confidence."""

    @pytest.mark.parametrize("value", [None, 42, 3.5, ["sad"], b"sad"])
    def test_non_text_yields_safe(self, scorer, value):
        result = scorer.score(value)

        assert result.level == SeverityLevel.SAFE
        assert result.confidence == 0.0
        assert result.indicators == frozenset()

    @pytest.mark.parametrize("text", ["", "   ", "?!.,"])
    def test_empty_text_yields_safe(self, scorer, text):
        result = scorer.score(text)

        assert result.level == SeverityLevel.SAFE
        assert result.confidence == 0.0
        assert result.source_text_length == len(text)

    def test_out_of_range_answer_yields_safe(self, scorer):
        result = scorer.score({"safety": 0})

        assert result.level == SeverityLevel.SAFE
        assert result.confidence == 0.0
        assert result.source == "answers"

    def test_boolean_answer_rejected(self, scorer):
        result = scorer.score({"self-harm-thoughts": True})

        assert result.level == SeverityLevel.SAFE
        assert result.confidence == 0.0

    def test_string_answer_rejected(self, scorer):
        result = scorer.score({"safety": "1"})

        assert result.level == SeverityLevel.SAFE

    def test_only_unknown_questions_yields_safe(self, scorer):
        result = scorer.score({"favourite-colour": 3})

        assert result.level == SeverityLevel.SAFE
        assert result.confidence == 0.0


class TestAnswerScoring:
    """Tests for structured answer scoring."""

    def test_plan_with_means_is_critical(self, scorer):
        """Unsafe, plan and means should be CRITICAL with four risk factors."""
        result = scorer.score({"safety": 1, "self-harm-plan": 1, "self-harm-means": 1})

        assert result.level == SeverityLevel.CRITICAL
        assert len(result.risk_factors) >= 4
        assert "plan_with_means" in result.indicators
        assert "lethal_means" in result.indicators
        assert result.confidence == pytest.approx(0.3)

    def test_ideation_floor_is_moderate(self, scorer):
        result = scorer.score({"self-harm-thoughts": 1})

        assert result.level == SeverityLevel.MODERATE
        assert "suicide_ideation" in result.indicators

    def test_plan_floor_is_high(self, scorer):
        result = scorer.score({"self-harm-thoughts": 1, "self-harm-plan": 1, "self-harm-means": 0})

        assert result.level >= SeverityLevel.HIGH

    def test_dependent_questions_skipped(self, scorer):
        """Answering 'no' to thoughts makes plan and impulsivity irrelevant."""
        result = scorer.score({"self-harm-thoughts": 0})

        assert result.level == SeverityLevel.SAFE
        assert result.confidence == pytest.approx(1 / 8)

    def test_protective_factors_reported(self, scorer):
        result = scorer.score({"safety": 5, "support-available": 5})

        assert result.level == SeverityLevel.SAFE
        assert result.protective_factors == (
            "Currently feels safe",
            "Social support available",
        )
        assert result.risk_factors == ()

    def test_unknown_questions_ignored(self, scorer):
        with_unknown = scorer.score({"self-harm-thoughts": 1, "mystery": 99})
        without = scorer.score({"self-harm-thoughts": 1})

        assert with_unknown == without

    def test_question_bank_exposed(self, scorer):
        ids = [q.id for q in scorer.answer_scorer.questions]

        assert ids[0] == "safety"
        assert {"self-harm-thoughts", "self-harm-plan", "self-harm-means"} <= set(ids)


class TestThresholds:
    """Tests for configurable thresholds."""

    def test_thresholds_are_configurable(self):
        scorer = RiskScorer(
            text_thresholds=ScoreThresholds(critical=100, high=50, moderate=20, low=1),
        )

        result = scorer.score("I want to kill myself and I have pills")

        assert result.level == SeverityLevel.MODERATE

    def test_text_and_answer_thresholds_independent(self):
        scorer = RiskScorer(
            text_thresholds=ScoreThresholds(critical=100, high=50, moderate=20, low=1),
        )

        result = scorer.score({"safety": 1, "self-harm-plan": 1, "self-harm-means": 1})

        assert result.level == SeverityLevel.CRITICAL

    def test_misordered_thresholds_rejected(self):
        with pytest.raises(ValueError):
            ScoreThresholds(critical=10, high=20)

    def test_three_low_tier_phrases_yield_low(self):
        """Three distinct low-tier phrases yield LOW below the score threshold."""
        scorer = RiskScorer(
            text_thresholds=ScoreThresholds(critical=30, high=20, moderate=10, low=5),
        )

        two = scorer.score("sad and tired")
        three = scorer.score("sad and tired and upset")

        assert two.level == SeverityLevel.SAFE
        assert three.level == SeverityLevel.LOW
