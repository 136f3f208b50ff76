"""Animal ORM model."""
from __future__ import annotations

from datetime import date
from enum import Enum

from sqlalchemy import Boolean, Date, Enum as SqlEnum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class AnimalSex(str, Enum):
    FEMALE = "F"
    MALE = "M"


class Animal(Base):
    """A buffalo registered on a property."""

    __tablename__ = "animals"

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    tag: Mapped[str | None] = mapped_column(String(40), nullable=True)
    sex: Mapped[AnimalSex] = mapped_column(SqlEnum(AnimalSex, name="animal_sex"), nullable=False)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    property_id: Mapped[int | None] = mapped_column(ForeignKey("properties.id"), nullable=True, index=True)
    group_id: Mapped[int | None] = mapped_column(ForeignKey("herd_groups.id"), nullable=True, index=True)
