"""User model - the durable copy of each user session record."""
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class User(Base):
    """User model - system of record for the session cache."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(24),
        primary_key=True,
        comment="Opaque identifier assigned at creation; also the cache key",
    )
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255))
    last_access: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        comment="Last resolution that reached the database",
    )
