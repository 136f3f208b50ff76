"""Breeding (reproduction) records."""
from __future__ import annotations

from datetime import date
from enum import Enum

from sqlalchemy import Date, Enum as SqlEnum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class BreedingStatus(str, Enum):
    """Diagnosis state of a breeding (mating or insemination)."""

    IN_PROGRESS = "IN_PROGRESS"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"
    CONCLUDED = "CONCLUDED"


class Breeding(Base):
    __tablename__ = "breedings"

    animal_id: Mapped[int] = mapped_column(ForeignKey("animals.id"), nullable=False, index=True)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[BreedingStatus] = mapped_column(
        SqlEnum(BreedingStatus, name="breeding_status"),
        nullable=False,
        default=BreedingStatus.IN_PROGRESS,
    )
    insemination_type: Mapped[str | None] = mapped_column(String(60), nullable=True)
