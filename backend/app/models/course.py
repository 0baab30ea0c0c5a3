"""
DevCamper Backend — Course SQLAlchemy Model
=============================================

Courses belong to a bootcamp; their tuition feeds the bootcamp's average_cost.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

SKILL_LEVELS = ("beginner", "intermediate", "advanced")


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    weeks: Mapped[int] = mapped_column(Integer, nullable=False)
    tuition: Mapped[float] = mapped_column(Float, nullable=False)
    minimum_skill: Mapped[str] = mapped_column(String(20), nullable=False)
    scholarship_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    bootcamp_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bootcamps.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    bootcamp: Mapped["Bootcamp"] = relationship(back_populates="courses")  # noqa: F821

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, title='{self.title}')>"
