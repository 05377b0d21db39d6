"""
Structured Answer Risk Scorer

Scores answers to the structured assessment questions.

SAFETY-CRITICAL: Severity floors and the critical-factor rule make
a plan with access to means CRITICAL regardless of other answers.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Iterable

from harbor.domain.enums.severity import SeverityLevel
from harbor.domain.models.risk import RiskAssessment, ScoreThresholds
from harbor.errors import InputError
from harbor.services.scoring.questions import (
    ASSESSMENT_QUESTIONS,
    COMBINATION_RULES,
    AssessmentQuestion,
    CombinationRule,
)
from harbor.config.logging_config import get_logger

logger = get_logger(__name__)


class AnswerRiskScorer:
    """
    Weighted scorer for structured assessment answers.

    Scoring Steps:
    1. Validate answers against each question's scale
    2. Skip questions whose dependency was answered 0
    3. Sum weighted severity and collect risk/protective factors
    4. Add the combination bonus for matched combinations
    5. Classify, then apply severity floors and the critical-factor rule
    6. Confidence = answered / relevant questions

    Unknown question ids are ignored.

    Usage:
        scorer = AnswerRiskScorer(ScoreThresholds())
        assessment = scorer.score({"safety": 1, "self-harm-thoughts": 1}, timestamp)
    """

    def __init__(
        self,
        thresholds: ScoreThresholds,
        questions: Iterable[AssessmentQuestion] = ASSESSMENT_QUESTIONS,
        combinations: Iterable[CombinationRule] = COMBINATION_RULES,
    ) -> None:
        self.thresholds = thresholds
        self._questions = {q.id: q for q in questions}
        self._combinations = tuple(combinations)

    @property
    def questions(self) -> list[AssessmentQuestion]:
        return list(self._questions.values())

    def _validate(self, answers: object) -> dict[str, int]:
        if not isinstance(answers, Mapping):
            raise InputError(f"Expected answer mapping, got {type(answers).__name__}")

        known: dict[str, int] = {}
        for question_id, value in answers.items():
            question = self._questions.get(question_id)
            if question is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise InputError(f"Answer to {question_id} must be an integer")
            low, high = question.scale.bounds
            if not low <= value <= high:
                raise InputError(f"Answer to {question_id} out of range {low}..{high}")
            known[question_id] = value

        if not known:
            raise InputError("No recognized answers")
        return known

    def _is_relevant(self, question: AssessmentQuestion, answers: dict[str, int]) -> bool:
        """A question is skipped when the question it depends on was answered 0."""
        if question.depends_on is None:
            return True
        return answers.get(question.depends_on) != 0

    def score(self, answers: object, timestamp: datetime) -> RiskAssessment:
        """
        Score structured answers.

        Raises:
            InputError: If answers are malformed or none are recognized
        """
        # Step 1: Validation
        known = self._validate(answers)

        # Step 2: Relevance
        relevant = [q for q in self._questions.values() if self._is_relevant(q, known)]
        answered = [q for q in relevant if q.id in known]

        # Step 3: Weighted severity and factors
        score = 0.0
        indicators: set[str] = set()
        risk_factors: list[str] = []
        protective_factors: list[str] = []
        critical_ids: set[str] = set()
        floor = SeverityLevel.SAFE

        for question in answered:
            answer = known[question.id]
            score += question.weight * question.severity_fraction(answer)

            if question.meets_critical(answer):
                critical_ids.add(question.id)
                if question.risk_factor:
                    risk_factors.append(question.risk_factor)
                if question.indicator:
                    indicators.add(str(question.indicator))
                if question.severity_floor is not None:
                    floor = max(floor, question.severity_floor)

            if question.is_protective(answer) and question.protective_factor:
                protective_factors.append(question.protective_factor)

        # Step 4: Combination bonus
        for rule in self._combinations:
            if all(qid in critical_ids for qid in rule.question_ids):
                score += self.thresholds.combination_bonus
                indicators.add(str(rule.indicator))
                risk_factors.append(rule.risk_factor)

        # Step 5: Classification
        level = max(self.thresholds.classify(score), floor)
        if len(critical_ids) >= self.thresholds.critical_factor_count:
            level = SeverityLevel.CRITICAL

        # Step 6: Confidence
        confidence = len(answered) / len(relevant) if relevant else 0.0

        logger.debug(
            "Structured answers scored",
            answered=len(answered),
            relevant=len(relevant),
            level=level.label,
        )

        return RiskAssessment(
            level=level,
            confidence=max(0.0, min(1.0, confidence)),
            indicators=frozenset(indicators),
            source_text_length=0,
            score=score,
            source="answers",
            risk_factors=tuple(risk_factors),
            protective_factors=tuple(protective_factors),
            timestamp=timestamp,
        )
