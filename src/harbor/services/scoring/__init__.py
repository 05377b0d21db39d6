"""Risk scoring services package."""

from harbor.services.scoring.risk_scorer import RiskScorer, ScoringInput
from harbor.services.scoring.text_scorer import TextRiskScorer
from harbor.services.scoring.answer_scorer import AnswerRiskScorer
from harbor.services.scoring.phrases import PHRASE_RULES, PhraseRule, Tier, normalize
from harbor.services.scoring.questions import (
    ASSESSMENT_QUESTIONS,
    COMBINATION_RULES,
    AssessmentQuestion,
    AnswerScale,
)

__all__ = [
    # Facade
    "RiskScorer",
    "ScoringInput",
    # Scorers
    "TextRiskScorer",
    "AnswerRiskScorer",
    # Phrase tiers
    "PHRASE_RULES",
    "PhraseRule",
    "Tier",
    "normalize",
    # Questions
    "ASSESSMENT_QUESTIONS",
    "COMBINATION_RULES",
    "AssessmentQuestion",
    "AnswerScale",
]
