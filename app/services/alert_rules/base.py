"""Shared plumbing for the per-domain alert evaluators."""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date
from typing import TypeVar

from sqlalchemy.orm import Session

from app.gateways import AnimalRecord, Gateways
from app.models.alert import AlertDomain
from app.schemas.alert import AlertRequest
from app.services.alerts import Classifier, get_or_create_alert
from app.utils.time import today as current_date

from .constants import NOT_INFORMED

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Subject:
    """An animal together with the labels copied onto its alerts."""

    animal: AnimalRecord
    property_id: int | None
    group_label: str
    location_label: str


class AlertEvaluator:
    """Base class for one domain's rules.

    Subclasses list their rule methods in ``rules``; each takes an optional
    property id and returns how many alerts it newly created.
    """

    domain: AlertDomain
    rules: tuple[str, ...] = ()

    def __init__(
        self,
        db: Session,
        *,
        gateways: Gateways | None = None,
        classifier: Classifier | None = None,
        today: date | None = None,
    ) -> None:
        self.db = db
        self.gateways = gateways or Gateways.for_session(db)
        self.classifier = classifier
        self.today = today or current_date()

    def evaluate(self, property_id: int | None = None) -> int:
        return sum(getattr(self, rule)(property_id) for rule in self.rules)

    def breakdown(self, property_id: int | None = None) -> dict[str, int]:
        return {rule: getattr(self, rule)(property_id) for rule in self.rules}

    def subject(self, animal_id: int, property_id: int | None = None) -> Subject | None:
        profile = self.gateways.herd.animal_profile(animal_id)
        if profile is None:
            logger.warning("Animal not found; skipping alert", extra={"animal_id": animal_id})
            return None
        return Subject(
            animal=profile,
            property_id=property_id or profile.property_id,
            group_label=profile.group_name or NOT_INFORMED,
            location_label=profile.property_name or NOT_INFORMED,
        )

    def request_for(self, subject: Subject, **fields) -> AlertRequest:
        return AlertRequest(
            domain=self.domain,
            animal_id=subject.animal.id,
            property_id=subject.property_id,
            group_label=subject.group_label,
            location_label=subject.location_label,
            **fields,
        )

    def raise_alert(self, request: AlertRequest) -> bool:
        _alert, created = get_or_create_alert(self.db, request, classifier=self.classifier)
        return created

    def process(
        self,
        rule: str,
        property_id: int | None,
        candidates: Iterable[T],
        build: Callable[[T], AlertRequest | None],
    ) -> int:
        """Raise an alert per candidate; one failing candidate never stops the others."""

        created = 0
        for candidate in candidates:
            try:
                request = build(candidate)
                if request is not None and self.raise_alert(request):
                    created += 1
            except Exception:  # noqa: BLE001
                logger.exception(
                    "Alert candidate failed; skipping",
                    extra={"rule": rule, "domain": self.domain.value, "property_id": property_id},
                )
        logger.info(
            "Alert rule evaluated",
            extra={
                "rule": rule,
                "domain": self.domain.value,
                "property_id": property_id,
                "created_count": created,
                "today": self.today.isoformat(),
            },
        )
        return created
