"""
DevCamper Backend — User SQLAlchemy Model
===========================================

What:  ORM model representing the `users` table.
Why:   Users own bootcamps, courses and reviews; their role drives authorization.

Table Design Rationale:
    - email is unique: login looks users up by email
    - password stores a bcrypt hash and is listed in __hidden__ so it can
      never be serialized into a response
    - reset_password_token stores the SHA-256 of the emailed token, never the
      token itself; a leaked table row cannot be replayed
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Role(str, enum.Enum):
    USER = "user"
    PUBLISHER = "publisher"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    __hidden__ = frozenset({"password", "reset_password_token", "reset_password_expire"})

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Login identifier, stored lower-cased",
    )

    # What: One of Role's values. Stored as a plain string so new roles
    # don't need a database enum migration.
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.USER.value)

    password: Mapped[str] = mapped_column(String(255), nullable=False, comment="bcrypt hash")

    reset_password_token: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    reset_password_expire: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
