"""Production records: milk yields and weighings."""
from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, ForeignKey, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class MilkYield(Base):
    """Liters milked from one animal on one day."""

    __tablename__ = "milk_yields"
    __table_args__ = (CheckConstraint("quantity >= 0", name="quantity_non_negative"),)

    animal_id: Mapped[int] = mapped_column(ForeignKey("animals.id"), nullable=False, index=True)
    milked_on: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(8, 2, asdecimal=True), nullable=False)


class Weighing(Base):
    __tablename__ = "weighings"
    __table_args__ = (CheckConstraint("weight > 0", name="weight_positive"),)

    animal_id: Mapped[int] = mapped_column(ForeignKey("animals.id"), nullable=False, index=True)
    weighed_on: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    weight: Mapped[Decimal] = mapped_column(Numeric(8, 2, asdecimal=True), nullable=False)
