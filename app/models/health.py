"""Sanitary records: treatments and vaccinations."""
from __future__ import annotations

from datetime import date

from sqlalchemy import Boolean, Date, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Treatment(Base):
    """Veterinary treatment, optionally with a scheduled follow-up visit."""

    __tablename__ = "treatments"

    animal_id: Mapped[int] = mapped_column(ForeignKey("animals.id"), nullable=False, index=True)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    diagnosis: Mapped[str | None] = mapped_column(String(255), nullable=True)
    intervention_type: Mapped[str | None] = mapped_column(String(120), nullable=True)
    needs_return: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    return_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)


class Vaccination(Base):
    __tablename__ = "vaccinations"

    animal_id: Mapped[int] = mapped_column(ForeignKey("animals.id"), nullable=False, index=True)
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    vaccine_type: Mapped[str | None] = mapped_column(String(120), nullable=True)
