"""Alert model and the enums shared by the alert engine."""
from __future__ import annotations

from datetime import date
from enum import Enum

from sqlalchemy import Boolean, Date, Enum as SqlEnum, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class AlertDomain(str, Enum):
    """Herd management area an alert belongs to."""

    CLINICAL = "CLINICAL"
    SANITARY = "SANITARY"
    REPRODUCTION = "REPRODUCTION"
    MANAGEMENT = "MANAGEMENT"
    PRODUCTION = "PRODUCTION"


class AlertSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {AlertSeverity.HIGH: 0, AlertSeverity.MEDIUM: 1, AlertSeverity.LOW: 2}


class OriginEventType(str, Enum):
    """Kind of herd event an alert was derived from."""

    FEMALE_EMPTY = "FEMALE_EMPTY"
    BREEDING_NO_DIAGNOSIS = "BREEDING_NO_DIAGNOSIS"
    PREDICTED_BIRTH = "PREDICTED_BIRTH"
    TREATMENT_RETURN = "TREATMENT_RETURN"
    VACCINATION = "VACCINATION"
    MILK_DROP = "MILK_DROP"
    PENDING_DRY_OFF = "PENDING_DRY_OFF"
    EARLY_CLINICAL_SIGNS = "EARLY_CLINICAL_SIGNS"

    @property
    def domain(self) -> AlertDomain:
        return _ORIGIN_DOMAINS[self]


_ORIGIN_DOMAINS = {
    OriginEventType.FEMALE_EMPTY: AlertDomain.REPRODUCTION,
    OriginEventType.BREEDING_NO_DIAGNOSIS: AlertDomain.REPRODUCTION,
    OriginEventType.PREDICTED_BIRTH: AlertDomain.REPRODUCTION,
    OriginEventType.TREATMENT_RETURN: AlertDomain.SANITARY,
    OriginEventType.VACCINATION: AlertDomain.SANITARY,
    OriginEventType.MILK_DROP: AlertDomain.PRODUCTION,
    OriginEventType.PENDING_DRY_OFF: AlertDomain.MANAGEMENT,
    OriginEventType.EARLY_CLINICAL_SIGNS: AlertDomain.CLINICAL,
}

# Conditions that persist day after day: once acknowledged they may re-fire
# on a later alert_date while the condition holds.
RECURRING_ORIGIN_EVENT_TYPES = frozenset(
    {OriginEventType.FEMALE_EMPTY, OriginEventType.BREEDING_NO_DIAGNOSIS}
)

OPEN_SLOT = "open"


def is_recurring(origin_event_type: OriginEventType | None) -> bool:
    """Return True when acknowledged alerts of this type may be re-raised for a new date."""

    return origin_event_type in RECURRING_ORIGIN_EVENT_TYPES


def dedup_slot_for(origin_event_type: OriginEventType | None, alert_date: date) -> str | None:
    """Slot value held by the unacknowledged alert of a lineage."""

    if origin_event_type is None:
        return None
    if is_recurring(origin_event_type):
        return alert_date.isoformat()
    return OPEN_SLOT


class Alert(Base):
    """A deduplicated, priority-ranked notice about a herd condition."""

    __tablename__ = "alerts"
    __table_args__ = (
        UniqueConstraint(
            "origin_event_type",
            "origin_event_id",
            "animal_id",
            "domain",
            "dedup_slot",
            name="uq_alerts_lineage_slot",
        ),
        Index(
            "ix_alerts_lineage",
            "origin_event_type",
            "origin_event_id",
            "animal_id",
            "domain",
        ),
        Index("ix_alerts_alert_date", "alert_date"),
    )

    domain: Mapped[AlertDomain] = mapped_column(
        SqlEnum(AlertDomain, name="alert_domain"), nullable=False, index=True
    )
    severity: Mapped[AlertSeverity] = mapped_column(
        SqlEnum(AlertSeverity, name="alert_severity"), nullable=False, default=AlertSeverity.MEDIUM
    )
    animal_id: Mapped[int | None] = mapped_column(nullable=True, index=True)
    property_id: Mapped[int | None] = mapped_column(nullable=True, index=True)
    group_label: Mapped[str | None] = mapped_column(String(120), nullable=True)
    location_label: Mapped[str | None] = mapped_column(String(120), nullable=True)
    reason: Mapped[str] = mapped_column(String(500), nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    clinical_narrative: Mapped[str | None] = mapped_column(Text, nullable=True)
    alert_date: Mapped[date] = mapped_column(Date, nullable=False)
    acknowledged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    origin_event_type: Mapped[OriginEventType | None] = mapped_column(
        SqlEnum(OriginEventType, name="alert_origin_event_type"), nullable=True
    )
    origin_event_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    dedup_slot: Mapped[str | None] = mapped_column(String(16), nullable=True)
