"""
Risk Models

Data models for crisis risk assessment.

SAFETY-CRITICAL: A RiskAssessment is immutable once created and
persisted append-only. Two assessments produced from identical input
compare equal; id and timestamp are excluded from equality.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from harbor.domain.enums.severity import SeverityLevel


@dataclass(frozen=True)
class ScoreThresholds:
    """
    Score boundaries for each severity level.

    Loaded from settings so they can be tuned without code change.
    Text and answer scoring each hold their own instance.

    Attributes:
        critical: Minimum score for CRITICAL
        high: Minimum score for HIGH
        moderate: Minimum score for MODERATE
        low: Minimum score for LOW
        low_tier_matches: Distinct low-tier phrases that yield LOW on their own
        critical_factor_count: Critical answer factors that force CRITICAL
        combination_bonus: Bonus added for a plan combined with means
    """

    critical: float = 30.0
    high: float = 20.0
    moderate: float = 10.0
    low: float = 1.0
    low_tier_matches: int = 3
    critical_factor_count: int = 3
    combination_bonus: float = 25.0

    def __post_init__(self) -> None:
        if not (self.critical >= self.high >= self.moderate >= self.low >= 0):
            raise ValueError("Thresholds must be non-increasing from critical to low")

    def classify(self, score: float) -> SeverityLevel:
        """Map a score onto the severity scale."""
        if score >= self.critical:
            return SeverityLevel.CRITICAL
        if score >= self.high:
            return SeverityLevel.HIGH
        if score >= self.moderate:
            return SeverityLevel.MODERATE
        if score >= self.low and score > 0:
            return SeverityLevel.LOW
        return SeverityLevel.SAFE


@dataclass(frozen=True)
class RiskAssessment:
    """
    Result of scoring one input.

    Attributes:
        level: Assessed severity
        confidence: Confidence in [0, 1]
        indicators: Names of matched signals
        source_text_length: Length of the scored text (0 for answers)
        score: Raw weighted score
        source: "text" or "answers"
        risk_factors: Human-readable risk factors (answer scoring)
        protective_factors: Human-readable protective factors (answer scoring)
        id: Unique assessment identifier
        timestamp: Creation time
    """

    level: SeverityLevel = SeverityLevel.SAFE
    confidence: float = 0.0
    indicators: frozenset[str] = frozenset()
    source_text_length: int = 0
    score: float = 0.0
    source: str = "text"
    risk_factors: tuple[str, ...] = ()
    protective_factors: tuple[str, ...] = ()
    id: UUID = field(default_factory=uuid4, compare=False)
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc),
        compare=False,
    )

    @classmethod
    def safe(cls, **kwargs: Any) -> "RiskAssessment":
        """Empty result used for malformed or empty input."""
        return cls(level=SeverityLevel.SAFE, confidence=0.0, **kwargs)

    def has_any(self, names: frozenset[str]) -> bool:
        """Check whether any of the given indicators matched."""
        return not self.indicators.isdisjoint(names)

    @property
    def is_critical(self) -> bool:
        return self.level >= SeverityLevel.CRITICAL

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        return {
            "id": str(self.id),
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.label,
            "confidence": round(self.confidence, 4),
            "indicators": sorted(self.indicators),
            "source_text_length": self.source_text_length,
            "score": self.score,
            "source": self.source,
            "risk_factors": list(self.risk_factors),
            "protective_factors": list(self.protective_factors),
        }


@dataclass(frozen=True)
class CrisisLevelConfig:
    """
    Operational parameters for one severity level.

    Attributes:
        level: Severity level described
        urgency: Urgency rank from 1 (lowest) to 5 (highest)
        auto_escalate: Whether the level escalates without user action
        max_response_seconds: Target time to first human response
        description: Short description shown to operators
    """

    level: SeverityLevel
    urgency: int
    auto_escalate: bool
    max_response_seconds: int
    description: str


CRISIS_LEVELS: dict[SeverityLevel, CrisisLevelConfig] = {
    SeverityLevel.SAFE: CrisisLevelConfig(
        level=SeverityLevel.SAFE,
        urgency=1,
        auto_escalate=False,
        max_response_seconds=3600,
        description="No immediate crisis indicators",
    ),
    SeverityLevel.LOW: CrisisLevelConfig(
        level=SeverityLevel.LOW,
        urgency=2,
        auto_escalate=False,
        max_response_seconds=1800,
        description="Mild distress, supportive check-in",
    ),
    SeverityLevel.MODERATE: CrisisLevelConfig(
        level=SeverityLevel.MODERATE,
        urgency=3,
        auto_escalate=False,
        max_response_seconds=900,
        description="Moderate distress, offer coping resources",
    ),
    SeverityLevel.HIGH: CrisisLevelConfig(
        level=SeverityLevel.HIGH,
        urgency=4,
        auto_escalate=True,
        max_response_seconds=300,
        description="High risk, connect with crisis support",
    ),
    SeverityLevel.CRITICAL: CrisisLevelConfig(
        level=SeverityLevel.CRITICAL,
        urgency=5,
        auto_escalate=True,
        max_response_seconds=60,
        description="Immediate danger, emergency intervention",
    ),
}


def get_level_config(level: SeverityLevel) -> CrisisLevelConfig:
    """Get operational parameters for a severity level."""
    return CRISIS_LEVELS[level]


def should_auto_escalate(level: SeverityLevel) -> bool:
    """Check if a severity level escalates without user action."""
    return get_level_config(level).auto_escalate
