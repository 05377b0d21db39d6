"""
Counselor Domain Model

Static profile of a simulated counselor persona. Profiles are
read-only reference data; availability is tracked separately by
the counselor directory.
"""

from dataclasses import dataclass

from harbor.domain.enums.session import CounselorPersonality


@dataclass(frozen=True)
class Counselor:
    """
    Counselor persona profile.

    Attributes:
        id: Stable counselor identifier
        name: Display name
        credentials: Professional credentials shown to users
        specialties: Areas of focus
        personality: Conversation style
        avg_response_time_seconds: Typical time to reply
        experience_years: Years of crisis experience
    """

    id: str
    name: str
    credentials: str
    specialties: frozenset[str]
    personality: CounselorPersonality
    avg_response_time_seconds: float
    experience_years: int

    def to_dict(self) -> dict:
        """Serialize profile for outbound events."""
        return {
            "id": self.id,
            "name": self.name,
            "credentials": self.credentials,
            "specialties": sorted(self.specialties),
            "personality": self.personality.value,
            "avg_response_time_seconds": self.avg_response_time_seconds,
            "experience_years": self.experience_years,
        }


DEFAULT_COUNSELORS: tuple[Counselor, ...] = (
    Counselor(
        id="counselor-1",
        name="Dr. Sarah Chen",
        credentials="LCSW, Crisis Specialist",
        specialties=frozenset({"Suicide Prevention", "Depression", "Anxiety", "Trauma"}),
        personality=CounselorPersonality.EMPATHETIC,
        avg_response_time_seconds=30,
        experience_years=8,
    ),
    Counselor(
        id="counselor-2",
        name="Michael Rodriguez",
        credentials="Licensed Crisis Counselor",
        specialties=frozenset({"Substance Abuse", "Family Crisis", "PTSD"}),
        personality=CounselorPersonality.SOLUTION_FOCUSED,
        avg_response_time_seconds=45,
        experience_years=5,
    ),
    Counselor(
        id="counselor-3",
        name="Dr. Emily Watson",
        credentials="PhD, Clinical Psychology",
        specialties=frozenset({"Bipolar Disorder", "Panic Disorders", "Self-Harm"}),
        personality=CounselorPersonality.TRAUMA_INFORMED,
        avg_response_time_seconds=25,
        experience_years=12,
    ),
    Counselor(
        id="counselor-4",
        name="James Thompson",
        credentials="MA, Crisis Intervention",
        specialties=frozenset({"LGBTQ+ Support", "Teen Crisis", "Relationship Issues"}),
        personality=CounselorPersonality.COGNITIVE,
        avg_response_time_seconds=35,
        experience_years=7,
    ),
)

# Specialist persona joining on hand-off
CRISIS_SPECIALIST = Counselor(
    id="specialist-1",
    name="Dr. Martinez",
    credentials="Crisis Intervention Specialist",
    specialties=frozenset({"Crisis Intervention", "Suicide Prevention"}),
    personality=CounselorPersonality.TRAUMA_INFORMED,
    avg_response_time_seconds=15,
    experience_years=15,
)
