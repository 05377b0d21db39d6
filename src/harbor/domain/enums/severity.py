"""
Severity and Priority Enumerations

Defines the ordinal severity scale produced by the risk scorer and
the session priority scale used for counselor assignment.

CLINICAL_REVIEW_REQUIRED: Level boundaries are configuration, but the
ordering defined here is relied on by every escalation rule.
"""

from enum import IntEnum


class SeverityLevel(IntEnum):
    """
    Assessed crisis severity.

    Ordered so that comparisons read naturally:
    SAFE < LOW < MODERATE < HIGH < CRITICAL.
    """

    SAFE = 0
    """No crisis indicators matched."""

    LOW = 1
    """
    Low distress.
    - Sadness, frustration, low mood vocabulary
    - Routine supportive conversation
    """

    MODERATE = 2
    """
    Moderate distress.
    - Anxiety, overwhelm, situational stressors
    - Offer coping techniques and check in
    """

    HIGH = 3
    """
    High risk.
    - Hopelessness, entrapment, self-worth statements
    - Surface crisis resources proactively
    """

    CRITICAL = 4
    """
    Critical risk.
    - Suicidal ideation with plan or immediate danger
    - Medical emergency language

    SAFETY_NOTE: Critical assessments are always handed to the
    escalation coordinator before any reply is generated.
    """

    @property
    def label(self) -> str:
        """Lowercase wire name (safe, low, moderate, high, critical)."""
        return self.name.lower()

    @classmethod
    def from_label(cls, label: str) -> "SeverityLevel":
        """Parse a lowercase wire name."""
        return cls[label.upper()]


class SessionPriority(IntEnum):
    """
    Session priority for counselor assignment.

    A session's priority is the high-water mark of every
    assessment it has seen and never decreases.
    """

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def from_severity(cls, level: SeverityLevel) -> "SessionPriority":
        """
        Map assessed severity onto the priority scale.

        safe and low both map to LOW; moderate maps to MEDIUM.
        """
        if level >= SeverityLevel.CRITICAL:
            return cls.CRITICAL
        if level >= SeverityLevel.HIGH:
            return cls.HIGH
        if level >= SeverityLevel.MODERATE:
            return cls.MEDIUM
        return cls.LOW
