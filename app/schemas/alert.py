"""Alert schemas."""
from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.alert import AlertDomain, AlertSeverity, OriginEventType


class AlertRequest(BaseModel):
    """Everything needed to raise an alert.

    ``domain`` is mandatory. The origin fields come as a pair: both set for
    alerts derived from a herd event (these go through deduplication), both
    absent for manual alerts.
    """

    domain: AlertDomain
    reason: str = Field(min_length=1, max_length=500)
    alert_date: date
    severity: AlertSeverity | None = None
    animal_id: int | None = Field(default=None, gt=0)
    property_id: int | None = Field(default=None, gt=0)
    group_label: str | None = Field(default=None, max_length=120)
    location_label: str | None = Field(default=None, max_length=120)
    note: str | None = None
    clinical_narrative: str | None = None
    origin_event_type: OriginEventType | None = None
    origin_event_id: str | None = Field(default=None, min_length=1, max_length=64)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_origin(self) -> "AlertRequest":
        if (self.origin_event_type is None) != (self.origin_event_id is None):
            raise ValueError("origin_event_type and origin_event_id must be provided together")
        if self.origin_event_type is not None and self.origin_event_type.domain != self.domain:
            raise ValueError(
                f"origin event {self.origin_event_type.value} belongs to domain "
                f"{self.origin_event_type.domain.value}, not {self.domain.value}"
            )
        return self

    @property
    def has_origin(self) -> bool:
        return self.origin_event_type is not None

    def classification_text(self) -> str:
        """Text handed to the priority classifier."""

        if self.clinical_narrative:
            return self.clinical_narrative
        return " ".join(part for part in (self.reason, self.note) if part)


class AlertRead(BaseModel):
    id: int
    domain: AlertDomain
    severity: AlertSeverity
    animal_id: int | None
    property_id: int | None
    group_label: str | None
    location_label: str | None
    reason: str
    note: str | None
    clinical_narrative: str | None
    alert_date: date
    acknowledged: bool
    origin_event_type: OriginEventType | None
    origin_event_id: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AlertFilters(BaseModel):
    domains: list[AlertDomain] = Field(default_factory=list)
    severity: AlertSeverity | None = None
    acknowledged: bool | None = None
    due_within_days: int | None = Field(default=None, ge=0)
    property_id: int | None = Field(default=None, gt=0)


class PageMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> "PageMeta":
        total_pages = (total + limit - 1) // limit if total else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


class AlertPage(BaseModel):
    data: list[AlertRead]
    meta: PageMeta


class EvaluationSummary(BaseModel):
    """Result of an on-demand evaluation of one property."""

    property_id: int
    total: int
    domains: dict[AlertDomain, dict[str, int]]
