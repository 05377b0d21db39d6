"""
Crisis Phrase Tiers

Weighted phrase tables used by the text risk scorer.

CLINICAL_VALIDATION_REQUIRED: Phrases and weights need review by
crisis professionals before production use.

Matching runs on normalized text: lowercase, apostrophes removed,
whitespace collapsed. "can't take it" therefore matches "cant take it".
"""

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Optional

from harbor.domain.enums.indicators import Indicator


class Tier(StrEnum):
    """Indicator tier a phrase belongs to."""

    CRITICAL = "critical"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


_APOSTROPHES = re.compile(r"['’‘`]")
_NON_WORD = re.compile(r"[^a-z0-9\s]+")
_WHITESPACE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Normalize text for phrase matching."""
    lowered = _APOSTROPHES.sub("", text.lower())
    return _WHITESPACE.sub(" ", _NON_WORD.sub(" ", lowered)).strip()


@dataclass(frozen=True)
class PhraseRule:
    """
    A weighted phrase.

    Attributes:
        phrase: Normalized phrase text
        weight: Score contributed when matched
        indicator: Indicator emitted when matched
        tier: Tier the phrase belongs to
        requires: Indicators of which at least one must also match
            in the same input for this phrase to count
    """

    phrase: str
    weight: float
    indicator: Indicator
    tier: Tier
    requires: frozenset[Indicator] = frozenset()
    pattern: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        words = [re.escape(w) for w in self.phrase.split()]
        object.__setattr__(
            self, "pattern", re.compile(r"\b" + r"\s+".join(words) + r"\b")
        )

    def matches(self, normalized_text: str) -> bool:
        return self.pattern.search(normalized_text) is not None


def _rules(
    phrases: tuple[str, ...],
    weight: float,
    indicator: Indicator,
    tier: Tier,
    requires: Optional[frozenset[Indicator]] = None,
) -> list[PhraseRule]:
    return [
        PhraseRule(
            phrase=phrase,
            weight=weight,
            indicator=indicator,
            tier=tier,
            requires=requires or frozenset(),
        )
        for phrase in phrases
    ]


_IDEATION = frozenset({Indicator.SUICIDE_IDEATION, Indicator.SELF_HARM})


PHRASE_RULES: tuple[PhraseRule, ...] = tuple([
    # Critical tier: suicidal ideation and self-harm
    *_rules(
        (
            "kill myself", "want to die", "end it all", "suicide", "suicidal",
            "not worth living", "take my life", "end my life", "better off dead",
            "no point living", "no reason to live", "wish i was dead",
        ),
        10.0, Indicator.SUICIDE_IDEATION, Tier.CRITICAL,
    ),
    *_rules(
        ("hurt myself", "harm myself", "cut myself", "cutting myself"),
        10.0, Indicator.SELF_HARM, Tier.CRITICAL,
    ),
    # Critical tier: plan and means, only alongside ideation
    *_rules(
        (
            "plan to", "have a plan", "going to", "pills", "gun", "bridge",
            "rope", "tonight", "razor", "jump off",
        ),
        20.0, Indicator.SUICIDE_PLAN, Tier.CRITICAL, requires=_IDEATION,
    ),
    # Critical tier: immediate danger
    *_rules(
        ("right now", "cant take it", "goodbye", "final message", "last message"),
        15.0, Indicator.IMMEDIATE_DANGER, Tier.CRITICAL,
    ),
    # Critical tier: medical emergency, explicit
    *_rules(
        (
            "took too many pills", "took all my pills", "took a bunch of pills",
            "swallowed all my pills", "took an overdose", "overdosed on pills",
            "overdosed on my meds", "poisoned myself",
        ),
        30.0, Indicator.MEDICAL_EMERGENCY, Tier.CRITICAL,
    ),
    # Critical tier: medical emergency, only alongside ideation or substance use
    *_rules(
        ("overdose", "overdosed", "took too much"),
        30.0, Indicator.MEDICAL_EMERGENCY, Tier.CRITICAL,
        requires=_IDEATION | {Indicator.SUBSTANCE_USE},
    ),
    # High tier
    *_rules(("hopeless", "no hope", "cant go on"), 8.0, Indicator.HOPELESSNESS, Tier.HIGH),
    *_rules(("trapped", "no way out"), 7.0, Indicator.ENTRAPMENT, Tier.HIGH),
    *_rules(("worthless", "hate myself"), 6.0, Indicator.WORTHLESSNESS, Tier.HIGH),
    *_rules(("useless",), 4.0, Indicator.WORTHLESSNESS, Tier.HIGH),
    *_rules(("unbearable", "give up"), 5.0, Indicator.HOPELESSNESS, Tier.HIGH),
    *_rules(("burden",), 5.0, Indicator.BURDEN, Tier.HIGH),
    *_rules(("nobody cares", "no friends"), 5.0, Indicator.ISOLATION, Tier.HIGH),
    *_rules(("alone",), 4.0, Indicator.ISOLATION, Tier.HIGH),
    *_rules(
        ("hits me", "beats me", "domestic violence", "afraid to go home", "abusive partner"),
        12.0, Indicator.DOMESTIC_VIOLENCE, Tier.HIGH,
    ),
    *_rules(
        ("child abuse", "my dad hits me", "my mom hits me", "my parents hit me"),
        12.0, Indicator.CHILD_ABUSE, Tier.HIGH,
    ),
    # Moderate tier
    *_rules(("overwhelmed", "panic"), 5.0, Indicator.OVERWHELM, Tier.MODERATE),
    *_rules(("depressed",), 4.0, Indicator.LOW_MOOD, Tier.MODERATE),
    *_rules(("scared", "anxious"), 3.0, Indicator.ANXIETY, Tier.MODERATE),
    *_rules(("stressed", "worried"), 2.0, Indicator.ANXIETY, Tier.MODERATE),
    *_rules(("struggling",), 3.0, Indicator.OVERWHELM, Tier.MODERATE),
    *_rules(("exhausted", "hard time"), 2.0, Indicator.OVERWHELM, Tier.MODERATE),
    *_rules(("help me",), 3.0, Indicator.HELP_SEEKING, Tier.MODERATE),
    *_rules(("lost my job", "broke up", "abuse", "abused"), 3.0, Indicator.LIFE_STRESSOR, Tier.MODERATE),
    *_rules(("drinking", "drugs", "high all the time"), 4.0, Indicator.SUBSTANCE_USE, Tier.MODERATE),
    # Low tier
    *_rules(
        (
            "sad", "lonely", "down", "upset", "disappointed", "frustrated",
            "angry", "annoyed", "bothered", "concerned", "uneasy", "tired", "confused",
        ),
        1.0, Indicator.LOW_MOOD, Tier.LOW,
    ),
])
