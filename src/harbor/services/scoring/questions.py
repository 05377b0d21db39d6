"""
Structured Crisis Assessment Questions

Question bank for the structured-answer scorer.

CLINICAL_VALIDATION_REQUIRED: Question weights, critical thresholds
and severity floors require clinical review.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional

from harbor.domain.enums.indicators import Indicator
from harbor.domain.enums.severity import SeverityLevel


class AnswerScale(StrEnum):
    """Allowed answer range for a question."""

    BINARY = "binary"
    """0 = no, 1 = yes."""

    LIKERT = "likert"
    """1 (not at all) to 5 (extremely)."""

    @property
    def bounds(self) -> tuple[int, int]:
        return (0, 1) if self is AnswerScale.BINARY else (1, 5)


@dataclass(frozen=True)
class AssessmentQuestion:
    """
    One structured assessment question.

    Attributes:
        id: Question identifier used as the answer key
        text: Question shown to the user
        weight: Points contributed at maximum severity
        scale: Allowed answer range
        inverse: Lower answers mean higher risk (e.g. feeling safe)
        critical_threshold: Answer at which the question becomes a risk
            factor (>= for normal, <= for inverse questions)
        depends_on: Question that must not be answered 0 for this
            question to be relevant
        risk_factor: Label reported when the threshold is met
        indicator: Indicator emitted when the threshold is met
        severity_floor: Minimum level once the threshold is met
        protective_threshold: Answer at which the question reports a
            protective factor (>= for inverse questions)
        protective_factor: Label reported when protective
    """

    id: str
    text: str
    weight: float
    scale: AnswerScale
    inverse: bool = False
    critical_threshold: Optional[int] = None
    depends_on: Optional[str] = None
    risk_factor: Optional[str] = None
    indicator: Optional[Indicator] = None
    severity_floor: Optional[SeverityLevel] = None
    protective_threshold: Optional[int] = None
    protective_factor: Optional[str] = None

    def severity_fraction(self, answer: int) -> float:
        """Position of the answer on the 0..1 risk scale."""
        if self.scale is AnswerScale.BINARY:
            return float(answer)
        low, high = self.scale.bounds
        fraction = (answer - low) / (high - low)
        return 1.0 - fraction if self.inverse else fraction

    def meets_critical(self, answer: int) -> bool:
        if self.critical_threshold is None:
            return False
        if self.inverse:
            return answer <= self.critical_threshold
        return answer >= self.critical_threshold

    def is_protective(self, answer: int) -> bool:
        if self.protective_threshold is None:
            return False
        return answer >= self.protective_threshold


@dataclass(frozen=True)
class CombinationRule:
    """Answer combination that adds the combination bonus."""

    question_ids: tuple[str, ...]
    indicator: Indicator
    risk_factor: str


ASSESSMENT_QUESTIONS: tuple[AssessmentQuestion, ...] = (
    AssessmentQuestion(
        id="safety",
        text="How safe do you feel right now?",
        weight=3,
        scale=AnswerScale.LIKERT,
        inverse=True,
        critical_threshold=2,
        risk_factor="Feels unsafe right now",
        indicator=Indicator.FEELS_UNSAFE,
        protective_threshold=4,
        protective_factor="Currently feels safe",
    ),
    AssessmentQuestion(
        id="self-harm-thoughts",
        text="Are you having thoughts of hurting yourself or ending your life?",
        weight=5,
        scale=AnswerScale.BINARY,
        critical_threshold=1,
        risk_factor="Active suicidal ideation",
        indicator=Indicator.SUICIDE_IDEATION,
        severity_floor=SeverityLevel.MODERATE,
    ),
    AssessmentQuestion(
        id="self-harm-plan",
        text="Do you have a plan for how you would hurt yourself?",
        weight=10,
        scale=AnswerScale.BINARY,
        critical_threshold=1,
        depends_on="self-harm-thoughts",
        risk_factor="Specific suicide plan",
        indicator=Indicator.SUICIDE_PLAN,
        severity_floor=SeverityLevel.HIGH,
    ),
    AssessmentQuestion(
        id="self-harm-means",
        text="Do you have access to the means to carry out your plan?",
        weight=15,
        scale=AnswerScale.BINARY,
        critical_threshold=1,
        depends_on="self-harm-plan",
        risk_factor="Access to lethal means",
        indicator=Indicator.LETHAL_MEANS,
        severity_floor=SeverityLevel.CRITICAL,
    ),
    AssessmentQuestion(
        id="support-available",
        text="Is there someone you can reach out to for support right now?",
        weight=2,
        scale=AnswerScale.LIKERT,
        inverse=True,
        protective_threshold=4,
        protective_factor="Social support available",
    ),
    AssessmentQuestion(
        id="overwhelm-level",
        text="How overwhelmed do you feel?",
        weight=2,
        scale=AnswerScale.LIKERT,
        critical_threshold=5,
        risk_factor="Extreme overwhelm",
        indicator=Indicator.OVERWHELM,
    ),
    AssessmentQuestion(
        id="hopelessness",
        text="How hopeless do you feel about the future?",
        weight=3,
        scale=AnswerScale.LIKERT,
        critical_threshold=4,
        risk_factor="Severe hopelessness",
        indicator=Indicator.HOPELESSNESS,
    ),
    AssessmentQuestion(
        id="substance-use",
        text="Have you been using alcohol or drugs today?",
        weight=2,
        scale=AnswerScale.BINARY,
        critical_threshold=1,
        risk_factor="Substance use present",
        indicator=Indicator.SUBSTANCE_USE,
    ),
    AssessmentQuestion(
        id="previous-attempts",
        text="Have you attempted to end your life before?",
        weight=3,
        scale=AnswerScale.BINARY,
        critical_threshold=1,
        risk_factor="History of previous attempts",
        indicator=Indicator.PREVIOUS_ATTEMPTS,
    ),
    AssessmentQuestion(
        id="impulsivity",
        text="Do you feel like you might act on these thoughts without warning?",
        weight=4,
        scale=AnswerScale.BINARY,
        critical_threshold=1,
        depends_on="self-harm-thoughts",
        risk_factor="High impulsivity risk",
        indicator=Indicator.IMPULSIVITY,
    ),
)

COMBINATION_RULES: tuple[CombinationRule, ...] = (
    CombinationRule(
        question_ids=("self-harm-plan", "self-harm-means"),
        indicator=Indicator.PLAN_WITH_MEANS,
        risk_factor="Suicide plan combined with access to means",
    ),
)
