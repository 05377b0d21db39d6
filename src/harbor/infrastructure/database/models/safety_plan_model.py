"""
Safety Plan Database Model

One row per plan; the most recently updated active plan per user is
the one served.

PRIVACY: Plan sections are user-authored and must never be logged.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from harbor.domain.models.resource import SafetyPlan
from harbor.infrastructure.database.connection import Base

PLAN_SECTIONS = (
    "warning_signs",
    "coping_strategies",
    "social_contacts",
    "professional_contacts",
    "safe_environment_steps",
    "emergency_contacts",
    "reasons_for_living",
)


class SafetyPlanModel(Base):
    """
    Safety plan table ORM model.

    Table: safety_plans
    """

    __tablename__ = "safety_plans"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        index=True,
        doc="User id or anonymous device id"
    )
    sections: Mapped[dict] = mapped_column(JSONB, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<SafetyPlanModel(id={self.id}, is_active={self.is_active})>"

    @classmethod
    def from_domain(cls, plan: SafetyPlan) -> "SafetyPlanModel":
        model = cls(
            id=plan.id,
            user_id=plan.user_id,
            sections={name: list(getattr(plan, name)) for name in PLAN_SECTIONS},
            is_active=plan.is_active,
            updated_at=plan.updated_at,
        )
        if plan.created_at is not None:
            model.created_at = plan.created_at
        return model

    def to_domain(self) -> SafetyPlan:
        sections = self.sections or {}
        return SafetyPlan(
            id=self.id,
            user_id=self.user_id,
            is_active=self.is_active,
            created_at=self.created_at,
            updated_at=self.updated_at,
            **{name: list(sections.get(name, [])) for name in PLAN_SECTIONS},
        )
