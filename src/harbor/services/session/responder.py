"""
Counselor Responder

Rule-based reply generation for simulated counselor personas.

ARCHITECTURE: Template choice is deterministic. Templates rotate by
the number of user messages in the session, so identical
conversations produce identical replies and tests can assert on text.

CLINICAL_VALIDATION_REQUIRED: All templates require review by a
licensed crisis professional before production use.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from harbor.domain.enums.session import CounselorPersonality
from harbor.domain.enums.severity import SessionPriority, SeverityLevel
from harbor.domain.models.counselor import Counselor

JitterSource = Callable[[], float]

DEFAULT_REPLY = "I hear what you're saying. Can you tell me more about how you're feeling?"

CLOSING_MESSAGE = (
    "Thank you for sharing with me today. Remember, you can reach out anytime "
    "you need support. Take care of yourself, and please don't hesitate to "
    "call 988 if you need immediate help."
)


@dataclass(frozen=True)
class ResponseTemplate:
    """Replies and follow-up questions for one priority band."""

    priority: SessionPriority
    responses: tuple[str, ...]
    follow_ups: tuple[str, ...]


RESPONSE_TEMPLATES: dict[SessionPriority, ResponseTemplate] = {
    SessionPriority.CRITICAL: ResponseTemplate(
        priority=SessionPriority.CRITICAL,
        responses=(
            "I'm really concerned about what you've shared. Your life has value, and I want to help you stay safe right now. Are you in immediate physical danger?",
            "Thank you for trusting me with this. I can hear how much pain you're in. Let's work together to keep you safe. Do you have access to means to harm yourself right now?",
            "I'm here with you, and I want you to know that these feelings can change. You've reached out, which shows incredible strength. Can you tell me where you are right now?",
            "What you're feeling is temporary, even though it doesn't feel that way. I'm going to stay with you through this. Do you have someone who can be with you right now?",
        ),
        follow_ups=(
            "Is there someone you trust who can come be with you?",
            "Have you taken any substances today?",
            "Do you have access to weapons or means to hurt yourself?",
            "What's one small thing that has kept you going until now?",
        ),
    ),
    SessionPriority.HIGH: ResponseTemplate(
        priority=SessionPriority.HIGH,
        responses=(
            "I can hear how much pain you're in right now. Those feelings of hopelessness are real, but they don't define your worth. Can you tell me more about what's making you feel this way?",
            "It sounds like you're going through something really difficult. I want you to know that you're not alone. I'm here with you. What's been the hardest part of today?",
            "These feelings of being worthless aren't the truth about who you are. Crisis can make us believe things that aren't accurate. What's one thing you used to enjoy?",
            "I hear you saying you feel trapped. That must be overwhelming. Sometimes when we're in crisis, solutions aren't visible. Can we explore what support might be available to you?",
        ),
        follow_ups=(
            "How long have you been feeling this way?",
            "Have you had thoughts of hurting yourself?",
            "What usually helps when you're feeling overwhelmed?",
            "Who in your life cares about you?",
            "What's something small that might help you get through tonight?",
        ),
    ),
    SessionPriority.MEDIUM: ResponseTemplate(
        priority=SessionPriority.MEDIUM,
        responses=(
            "It sounds like you're feeling really overwhelmed right now. That's a valid response to stress. Let's work together to help you feel more grounded. Can you tell me what's contributing to these feelings?",
            "Panic and anxiety can feel really scary in the moment. You're safe right now, and these feelings will pass. Can you take a slow, deep breath with me?",
            "I can hear that you're struggling to cope. That takes courage to reach out. What's been the most stressful part of your situation?",
            "You don't have to handle everything alone. What kind of support do you need right now?",
        ),
        follow_ups=(
            "When did you first start feeling this way?",
            "What usually helps you when you're anxious?",
            "Have you been sleeping and eating regularly?",
            "Who in your support network could you reach out to?",
        ),
    ),
    SessionPriority.LOW: ResponseTemplate(
        priority=SessionPriority.LOW,
        responses=(
            "Thank you for sharing how you're feeling. It's completely normal to have ups and downs. Sometimes talking through what's bothering us can really help. What's been on your mind lately?",
            "I hear that you're going through a difficult time. It's good that you're reaching out for support. What's been the most challenging part of your day?",
            "Feeling sad or worried is part of being human. These emotions are valid, and they're telling us something important. Can you tell me more about what's troubling you?",
            "It sounds like you might be dealing with some stress or changes in your life. That can be really draining. What's been different or difficult recently?",
        ),
        follow_ups=(
            "How has your sleep been?",
            "What activities usually make you feel better?",
            "Who are the people you feel closest to?",
        ),
    ),
}

PERSONALITY_PREFIXES: dict[CounselorPersonality, tuple[str, ...]] = {
    CounselorPersonality.EMPATHETIC: (
        "I can really hear the pain in your words.",
        "That sounds incredibly difficult.",
        "I want you to know that your feelings are completely valid.",
        "It takes so much courage to share what you've shared with me.",
    ),
    CounselorPersonality.TRAUMA_INFORMED: (
        "I want you to feel safe in this space.",
        "You have control over how much you share.",
        "Your body and mind have been through a lot.",
    ),
}

PERSONALITY_SUFFIXES: dict[CounselorPersonality, tuple[str, ...]] = {
    CounselorPersonality.SOLUTION_FOCUSED: (
        "Let's work together to find some steps forward.",
        "I wonder what small step we might take to help you feel a bit better.",
        "What's worked for you in the past when you've felt this way?",
    ),
}


def _rotate(options: tuple[str, ...], turn: int) -> str:
    return options[turn % len(options)]


class CounselorResponder:
    """
    Generates counselor replies and computes reply timing.

    Usage:
        responder = CounselorResponder()
        text = responder.reply(counselor, SeverityLevel.HIGH, turn=2)
        delay = responder.reply_delay(counselor, len(user_text))
    """

    def __init__(
        self,
        per_char_delay: float = 0.02,
        delay_cap: float = 10.0,
        jitter: Optional[JitterSource] = None,
    ) -> None:
        """
        Initialize responder.

        Args:
            per_char_delay: Seconds added per character of the user message
            delay_cap: Upper bound on any reply delay
            jitter: Source of extra delay in seconds, zero when omitted
        """
        self._per_char = per_char_delay
        self._cap = delay_cap
        self._jitter = jitter or (lambda: 0.0)

    def reply_delay(self, counselor: Counselor, message_length: int) -> float:
        """responseTime + per-character delay + jitter, capped."""
        delay = (
            counselor.avg_response_time_seconds
            + message_length * self._per_char
            + max(0.0, self._jitter())
        )
        return min(delay, self._cap)

    def reply(self, counselor: Counselor, level: SeverityLevel, turn: int) -> str:
        """
        Build a reply for the latest user message.

        Args:
            counselor: Persona answering
            level: Severity of the latest assessment
            turn: Number of user messages so far, used for rotation
        """
        template = RESPONSE_TEMPLATES.get(SessionPriority.from_severity(level))
        if template is None:
            return DEFAULT_REPLY
        text = _rotate(template.responses, turn)

        prefixes = PERSONALITY_PREFIXES.get(counselor.personality)
        if prefixes:
            text = f"{_rotate(prefixes, turn)} {text}"
        suffixes = PERSONALITY_SUFFIXES.get(counselor.personality)
        if suffixes:
            text = f"{text} {_rotate(suffixes, turn)}"
        return text

    def follow_up(self, level: SeverityLevel, turn: int) -> Optional[str]:
        """Follow-up question for high and critical levels only."""
        if level < SeverityLevel.HIGH:
            return None
        template = RESPONSE_TEMPLATES[SessionPriority.from_severity(level)]
        return _rotate(template.follow_ups, turn)

    def welcome(self, counselor: Counselor) -> str:
        specialties = sorted(counselor.specialties)
        focus = " and ".join(specialties[:2]) if specialties else "crisis counseling"
        return (
            f"Hi, I'm {counselor.name}, {counselor.credentials}. I'm here to listen "
            f"and support you, with experience in {focus}. This is a safe, "
            "confidential space. How are you feeling right now?"
        )

    def specialist_introduction(self, specialist: Counselor) -> str:
        return (
            f"Hi, I'm {specialist.name}, a {specialist.credentials.lower()}. I've "
            "joined to make sure you have the support you need right now. "
            "Can you tell me if you're safe at this moment?"
        )

    def closing(self) -> str:
        return CLOSING_MESSAGE
