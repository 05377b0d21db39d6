"""
Crisis Interaction Database Model

Append-only log of calls, texts, resource views and emergency
dispatches.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from harbor.domain.enums.resources import InteractionAction
from harbor.domain.enums.severity import SeverityLevel
from harbor.domain.models.emergency import CrisisInteraction
from harbor.infrastructure.database.connection import Base


class CrisisInteractionModel(Base):
    """
    Crisis interaction table ORM model.

    Table: crisis_interactions
    """

    __tablename__ = "crisis_interactions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    session_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    action: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    contact: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    successful: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    interaction_metadata: Mapped[dict] = mapped_column(
        "metadata",
        JSONB,
        default=dict,
        doc="Additional non-sensitive context"
    )
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<CrisisInteractionModel(id={self.id}, action={self.action}, successful={self.successful})>"

    @classmethod
    def from_domain(cls, interaction: CrisisInteraction) -> "CrisisInteractionModel":
        return cls(
            id=interaction.id,
            session_id=interaction.session_id,
            action=interaction.action.value,
            level=int(interaction.level),
            contact=interaction.contact,
            successful=interaction.successful,
            interaction_metadata=dict(interaction.metadata),
            occurred_at=interaction.timestamp,
        )

    def to_domain(self) -> CrisisInteraction:
        return CrisisInteraction(
            id=self.id,
            action=InteractionAction(self.action),
            level=SeverityLevel(self.level),
            timestamp=self.occurred_at,
            contact=self.contact,
            successful=self.successful,
            session_id=self.session_id,
            metadata=dict(self.interaction_metadata or {}),
        )
