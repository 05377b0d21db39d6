"""
Text Risk Scorer

Scores free text against the weighted phrase tiers.

SAFETY-CRITICAL: Plan and means language counts only when suicidal
ideation or self-harm language appears in the same input. A method
word alone ("bridge", "tonight") never raises severity. Ambiguous
overdose wording ("took too much") also needs ideation or substance
language beside it.

ARCHITECTURE: Pure function of (text, thresholds). No I/O, no clock
access beyond the timestamp passed in by the caller.
"""

from datetime import datetime
from typing import Iterable

from harbor.domain.enums.severity import SeverityLevel
from harbor.domain.models.risk import RiskAssessment, ScoreThresholds
from harbor.errors import InputError
from harbor.services.scoring.phrases import PHRASE_RULES, PhraseRule, Tier, normalize

# Confidence adjustments by input length (in tokens)
SHORT_INPUT_TOKENS = 3
LONG_INPUT_TOKENS = 50
SHORT_INPUT_FACTOR = 0.7
LONG_INPUT_FACTOR = 1.1

# Base confidence grows with score up to this ceiling
BASE_CONFIDENCE_FLOOR = 0.3
BASE_CONFIDENCE_CEILING = 0.95
BASE_CONFIDENCE_SATURATION = 50.0


def base_confidence(score: float) -> float:
    """Confidence before length adjustments."""
    saturation = min(score, BASE_CONFIDENCE_SATURATION) / BASE_CONFIDENCE_SATURATION
    return BASE_CONFIDENCE_FLOOR + saturation * (BASE_CONFIDENCE_CEILING - BASE_CONFIDENCE_FLOOR)


def adjust_for_length(confidence: float, token_count: int) -> float:
    """Apply short/long input adjustments and clamp to [0, 1]."""
    if token_count < SHORT_INPUT_TOKENS:
        confidence *= SHORT_INPUT_FACTOR
    elif token_count > LONG_INPUT_TOKENS:
        confidence *= LONG_INPUT_FACTOR
    return max(0.0, min(1.0, confidence))


class TextRiskScorer:
    """
    Weighted phrase scorer for free text.

    Scoring Steps:
    1. Normalize text and match every phrase rule
    2. Drop conditional matches whose required indicators are absent
    3. Sum weights and classify against thresholds
    4. Apply low-tier match rule
    5. Derive confidence from score and input length

    Usage:
        scorer = TextRiskScorer(ScoreThresholds())
        assessment = scorer.score("I feel really sad today", timestamp)
    """

    def __init__(
        self,
        thresholds: ScoreThresholds,
        rules: Iterable[PhraseRule] = PHRASE_RULES,
    ) -> None:
        self.thresholds = thresholds
        self._rules = tuple(rules)

    def score(self, text: object, timestamp: datetime) -> RiskAssessment:
        """
        Score free text.

        Raises:
            InputError: If text is not a non-empty string
        """
        if not isinstance(text, str):
            raise InputError(f"Expected text, got {type(text).__name__}")

        normalized = normalize(text)
        if not normalized:
            raise InputError("Empty text")

        # Step 1: Raw matches
        matched = [rule for rule in self._rules if rule.matches(normalized)]
        unconditional = {r.indicator for r in matched if not r.requires}

        # Step 2: Conditional matches need a co-occurring required indicator
        counted = [
            r for r in matched
            if not r.requires or not r.requires.isdisjoint(unconditional)
        ]

        # Step 3: Score and classify
        score = sum(r.weight for r in counted)
        level = self.thresholds.classify(score)

        # Step 4: Enough distinct low-tier phrases yield LOW on their own
        low_tier_count = sum(1 for r in counted if r.tier == Tier.LOW)
        if level == SeverityLevel.SAFE and low_tier_count >= self.thresholds.low_tier_matches:
            level = SeverityLevel.LOW

        # Step 5: Confidence
        token_count = len(normalized.split())
        confidence = adjust_for_length(base_confidence(score), token_count)

        return RiskAssessment(
            level=level,
            confidence=confidence,
            indicators=frozenset(str(r.indicator) for r in counted),
            source_text_length=len(text),
            score=score,
            source="text",
            timestamp=timestamp,
        )
