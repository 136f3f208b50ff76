"""Farm property and herd group models."""
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Property(Base):
    """A farm; soft-deleted properties are excluded from alert runs."""

    __tablename__ = "properties"

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class HerdGroup(Base):
    __tablename__ = "herd_groups"

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id"), nullable=False, index=True)
