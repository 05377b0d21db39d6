"""
Crisis Trend Analysis

Summarizes recorded assessments over a trailing window. Used after
sessions end, on read-only assessment history.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import Iterable, Optional

from harbor.domain.enums.severity import SeverityLevel
from harbor.domain.models.risk import RiskAssessment

TREND_THRESHOLD = 0.3


class TrendDirection(StrEnum):
    IMPROVING = "improving"
    STABLE = "stable"
    WORSENING = "worsening"


@dataclass(frozen=True)
class TrendReport:
    """
    Trend summary.

    Attributes:
        average_level: Mean level on a 1 (safe) to 5 (critical) scale
        direction: Later half compared with earlier half
        total: Assessments inside the window
        critical_incidents: HIGH or CRITICAL assessments inside the window
    """

    average_level: float
    direction: TrendDirection
    total: int
    critical_incidents: int

    def to_dict(self) -> dict:
        return {
            "average_level": round(self.average_level, 3),
            "direction": self.direction.value,
            "total": self.total,
            "critical_incidents": self.critical_incidents,
        }


def _level_number(level: SeverityLevel) -> int:
    return int(level) + 1


def _mean(values: list[int]) -> float:
    return sum(values) / len(values)


def analyze_trends(
    assessments: Iterable[RiskAssessment],
    days: int = 7,
    now: Optional[datetime] = None,
) -> TrendReport:
    """
    Analyze assessment trends over the last `days` days.

    Assessments are ordered by timestamp. The direction compares the
    mean of the later half with the earlier half; a difference above
    0.3 either way counts as a change.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=days)
    recent = sorted(
        (a for a in assessments if a.timestamp > cutoff),
        key=lambda a: a.timestamp,
    )
    if not recent:
        return TrendReport(1.0, TrendDirection.STABLE, 0, 0)

    levels = [_level_number(a.level) for a in recent]
    direction = TrendDirection.STABLE
    midpoint = len(levels) // 2
    if midpoint > 0:
        difference = _mean(levels[midpoint:]) - _mean(levels[:midpoint])
        if difference > TREND_THRESHOLD:
            direction = TrendDirection.WORSENING
        elif difference < -TREND_THRESHOLD:
            direction = TrendDirection.IMPROVING

    return TrendReport(
        average_level=_mean(levels),
        direction=direction,
        total=len(recent),
        critical_incidents=sum(1 for a in recent if a.level >= SeverityLevel.HIGH),
    )
