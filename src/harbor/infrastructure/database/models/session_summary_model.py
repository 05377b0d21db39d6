"""
Session Summary Database Model

Final summary written when a crisis session ends. Holds counts,
levels and timing only; no message content.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Boolean, DateTime, Float, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from harbor.infrastructure.database.connection import Base


class SessionSummaryModel(Base):
    """
    Session summary table ORM model.

    Table: session_summaries
    """

    __tablename__ = "session_summaries"

    session_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    counselor_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    final_priority: Mapped[str] = mapped_column(String(16), nullable=False)
    peak_severity: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    message_count: Mapped[int] = mapped_column(Integer, default=0)
    user_message_count: Mapped[int] = mapped_column(Integer, default=0)
    assessment_count: Mapped[int] = mapped_column(Integer, default=0)
    escalated: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    end_reason: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    duration_seconds: Mapped[float] = mapped_column(Float, default=0.0)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<SessionSummaryModel(session_id={self.session_id}, peak={self.peak_severity})>"

    @classmethod
    def from_summary(cls, summary: dict[str, Any]) -> "SessionSummaryModel":
        ended = summary.get("ended_at")
        return cls(
            session_id=summary["session_id"],
            user_id=summary["user_id"],
            counselor_id=summary.get("counselor_id"),
            final_priority=summary["final_priority"],
            peak_severity=summary["peak_severity"],
            message_count=summary.get("message_count", 0),
            user_message_count=summary.get("user_message_count", 0),
            assessment_count=summary.get("assessment_count", 0),
            escalated=bool(summary.get("escalated", False)),
            end_reason=summary.get("end_reason"),
            duration_seconds=float(summary.get("duration_seconds", 0.0)),
            started_at=datetime.fromisoformat(summary["created_at"]),
            ended_at=datetime.fromisoformat(ended) if ended else None,
        )

    def to_summary(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "counselor_id": self.counselor_id,
            "final_priority": self.final_priority,
            "peak_severity": self.peak_severity,
            "message_count": self.message_count,
            "user_message_count": self.user_message_count,
            "assessment_count": self.assessment_count,
            "escalated": self.escalated,
            "created_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "end_reason": self.end_reason,
            "duration_seconds": self.duration_seconds,
        }
