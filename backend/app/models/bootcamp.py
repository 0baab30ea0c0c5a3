"""
DevCamper Backend — Bootcamp SQLAlchemy Model
===============================================

What:  ORM model representing the `bootcamps` table.
Why:   Bootcamps are the primary listing; courses and reviews hang off them.

Table Design Rationale:
    - name is unique and the slug is derived from it (URL-friendly lookups)
    - location is flattened into columns (longitude/latitude plus the
      geocoder's address parts) so radius search can pre-filter with a
      plain bounding box on indexed numeric columns
    - average_cost / average_rating are derived: recomputed by the course and
      review services after every write, never accepted from clients
    - exclusive_owner_id enforces "one bootcamp per non-admin owner" at the
      storage layer. It holds the owner id for non-admin owners and NULL for
      admins; UNIQUE allows any number of NULLs.

Children (courses, reviews) are deleted by the bootcamp service before the
bootcamp row; ON DELETE CASCADE covers databases that enforce it.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

CAREERS = (
    "Web Development",
    "Mobile Development",
    "UI/UX",
    "Data Science",
    "Business",
    "Other",
)


class Bootcamp(Base):
    __tablename__ = "bootcamps"

    __hidden__ = frozenset({"exclusive_owner_id"})

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # ── Location (filled from the geocoder) ───────────────────────────────
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    formatted_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    street: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    zipcode: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    careers: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    average_rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    average_cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    photo: Mapped[str] = mapped_column(String(255), nullable=False, default="no-photo.jpg")
    housing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_assistance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_guarantee: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    accept_gi: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    exclusive_owner_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, nullable=True, unique=True
    )

    # passive_deletes: never lazy-load children just to delete the parent
    courses: Mapped[List["Course"]] = relationship(  # noqa: F821
        back_populates="bootcamp", passive_deletes=True
    )
    reviews: Mapped[List["Review"]] = relationship(  # noqa: F821
        back_populates="bootcamp", passive_deletes=True
    )

    __table_args__ = (
        Index("idx_bootcamps_lat_lng", "latitude", "longitude"),
    )

    def __repr__(self) -> str:
        return f"<Bootcamp(id={self.id}, name='{self.name}')>"
