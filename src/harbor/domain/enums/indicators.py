"""
Risk Indicator Names

Indicators are the named signals a risk assessment carries. The
escalation coordinator keys its protocols on these names, so both
scorers must emit the same vocabulary.
"""

from enum import StrEnum


class Indicator(StrEnum):
    """Named signal contributing to a risk score."""

    # Suicide risk
    SUICIDE_IDEATION = "suicide_ideation"
    SELF_HARM = "self_harm"
    SUICIDE_PLAN = "suicide_plan"
    LETHAL_MEANS = "lethal_means"
    PLAN_WITH_MEANS = "plan_with_means"
    IMMEDIATE_DANGER = "immediate_danger"
    PREVIOUS_ATTEMPTS = "previous_attempts"
    IMPULSIVITY = "impulsivity"
    FEELS_UNSAFE = "feels_unsafe"

    # Medical and safety emergencies
    MEDICAL_EMERGENCY = "medical_emergency"
    DOMESTIC_VIOLENCE = "domestic_violence"
    CHILD_ABUSE = "child_abuse"

    # Distress
    HOPELESSNESS = "hopelessness"
    WORTHLESSNESS = "worthlessness"
    ENTRAPMENT = "entrapment"
    ISOLATION = "isolation"
    BURDEN = "perceived_burden"
    SUBSTANCE_USE = "substance_use"
    ANXIETY = "anxiety"
    OVERWHELM = "overwhelm"
    LIFE_STRESSOR = "life_stressor"
    LOW_MOOD = "low_mood"
    HELP_SEEKING = "help_seeking"


# Signals that turn critical suicide risk into an auto-dial
DIAL_988_SIGNALS: frozenset[Indicator] = frozenset({
    Indicator.SUICIDE_PLAN,
    Indicator.PLAN_WITH_MEANS,
    Indicator.IMMEDIATE_DANGER,
})

# Explicit medical-emergency set, distinct from suicide-risk signals
DIAL_911_SIGNALS: frozenset[Indicator] = frozenset({
    Indicator.MEDICAL_EMERGENCY,
})

SAFETY_PROTOCOL_SIGNALS: frozenset[Indicator] = frozenset({
    Indicator.DOMESTIC_VIOLENCE,
    Indicator.CHILD_ABUSE,
})
