"""
Risk Assessment Database Model

Append-only log of risk assessments keyed by session.

PRIVACY: Only the scored text's length is stored, never the text.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, Float, Integer, String, func
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from harbor.domain.enums.severity import SeverityLevel
from harbor.domain.models.risk import RiskAssessment
from harbor.infrastructure.database.connection import Base


class RiskAssessmentModel(Base):
    """
    Risk assessment table ORM model.

    Table: risk_assessments
    """

    __tablename__ = "risk_assessments"

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        doc="Assessment identifier"
    )
    session_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        index=True,
        doc="Session the assessment belongs to"
    )

    level: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
        doc="Severity level (0-4)"
    )
    confidence: Mapped[float] = mapped_column(Float, default=0.0)
    score: Mapped[float] = mapped_column(Float, default=0.0)
    source: Mapped[str] = mapped_column(String(16), default="text")
    source_text_length: Mapped[int] = mapped_column(Integer, default=0)

    indicators: Mapped[list] = mapped_column(
        ARRAY(String(50)),
        default=list,
        doc="Matched indicator names"
    )
    risk_factors: Mapped[list] = mapped_column(JSONB, default=list)
    protective_factors: Mapped[list] = mapped_column(JSONB, default=list)

    assessed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        doc="When the assessment was produced"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<RiskAssessmentModel(id={self.id}, level={self.level})>"

    @classmethod
    def from_domain(cls, session_id: Optional[str], assessment: RiskAssessment) -> "RiskAssessmentModel":
        return cls(
            id=assessment.id,
            session_id=session_id,
            level=int(assessment.level),
            confidence=assessment.confidence,
            score=assessment.score,
            source=assessment.source,
            source_text_length=assessment.source_text_length,
            indicators=sorted(assessment.indicators),
            risk_factors=list(assessment.risk_factors),
            protective_factors=list(assessment.protective_factors),
            assessed_at=assessment.timestamp,
        )

    def to_domain(self) -> RiskAssessment:
        return RiskAssessment(
            id=self.id,
            timestamp=self.assessed_at,
            level=SeverityLevel(self.level),
            confidence=self.confidence,
            indicators=frozenset(self.indicators or ()),
            source_text_length=self.source_text_length,
            score=self.score,
            source=self.source,
            risk_factors=tuple(self.risk_factors or ()),
            protective_factors=tuple(self.protective_factors or ()),
        )
