"""
Risk Scorer

Single entry point for scoring free text or structured answers.

SAFETY-CRITICAL: score() never raises for bad input. Malformed or
empty input yields a SAFE assessment with zero confidence and no
indicators.

ARCHITECTURE: Deterministic. Identical input always produces an equal
assessment (id and timestamp are excluded from equality), which the
escalation coordinator's de-duplication relies on.
"""

from collections.abc import Mapping
from typing import Optional, Union

from harbor.domain.models.risk import RiskAssessment, ScoreThresholds
from harbor.errors import InputError
from harbor.infrastructure.metrics import track_risk_assessment
from harbor.infrastructure.scheduling.clock import Clock, SystemClock
from harbor.services.scoring.answer_scorer import AnswerRiskScorer
from harbor.services.scoring.text_scorer import TextRiskScorer
from harbor.config.logging_config import get_logger

logger = get_logger(__name__)

ScoringInput = Union[str, Mapping[str, int]]


class RiskScorer:
    """
    Crisis risk scorer.

    Dispatches text to the phrase scorer and mappings to the
    structured-answer scorer. Each keeps its own thresholds.

    Usage:
        scorer = RiskScorer()
        assessment = scorer.score("I feel really sad and lonely today")
        assessment = scorer.score({"safety": 1, "self-harm-plan": 1})
    """

    def __init__(
        self,
        text_thresholds: Optional[ScoreThresholds] = None,
        answer_thresholds: Optional[ScoreThresholds] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._text = TextRiskScorer(text_thresholds or ScoreThresholds())
        self._answers = AnswerRiskScorer(answer_thresholds or ScoreThresholds())

    @property
    def answer_scorer(self) -> AnswerRiskScorer:
        return self._answers

    def score(self, value: ScoringInput) -> RiskAssessment:
        """
        Score text or structured answers.

        Args:
            value: Free text, or a mapping of question id to answer

        Returns:
            RiskAssessment (SAFE with zero confidence on bad input)
        """
        if isinstance(value, Mapping):
            return self.score_answers(value)
        return self.score_text(value)

    def score_text(self, text: object) -> RiskAssessment:
        timestamp = self._clock.now()
        try:
            assessment = self._text.score(text, timestamp)
        except InputError as e:
            logger.info("Unscorable text input", reason=str(e))
            length = len(text) if isinstance(text, str) else 0
            assessment = RiskAssessment.safe(
                source="text", source_text_length=length, timestamp=timestamp,
            )
        return self._record(assessment)

    def score_answers(self, answers: object) -> RiskAssessment:
        timestamp = self._clock.now()
        try:
            assessment = self._answers.score(answers, timestamp)
        except InputError as e:
            logger.info("Unscorable answer input", reason=str(e))
            assessment = RiskAssessment.safe(source="answers", timestamp=timestamp)
        return self._record(assessment)

    def _record(self, assessment: RiskAssessment) -> RiskAssessment:
        track_risk_assessment(assessment.level.label, assessment.source)
        logger.info(
            "Risk assessment completed",
            assessment_id=str(assessment.id),
            level=assessment.level.label,
            confidence=round(assessment.confidence, 3),
            indicators=sorted(assessment.indicators),
            source=assessment.source,
        )
        return assessment
