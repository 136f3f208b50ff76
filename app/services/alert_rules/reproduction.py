"""Reproduction alerts: predicted births, undiagnosed breedings and empty females."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

from app.gateways import AnimalRecord, BreedingRecord
from app.models.alert import AlertDomain, OriginEventType
from app.models.reproduction import BreedingStatus
from app.schemas.alert import AlertRequest
from app.utils.time import age_in_months, days_between, format_br

from .base import AlertEvaluator
from .constants import (
    BIRTH_LOOKAHEAD_DAYS,
    FEMALE_EMPTY_AFTER_DAYS,
    GESTATION_DAYS,
    MIN_BREEDING_AGE_MONTHS,
    NO_DIAGNOSIS_AFTER_DAYS,
    NOT_INFORMED,
)


def predicted_birth(breeding: BreedingRecord) -> date:
    return breeding.event_date + timedelta(days=GESTATION_DAYS)


class FemaleState(str, Enum):
    NEVER_BRED = "NEVER_BRED"
    OPEN = "OPEN"
    PREGNANT = "PREGNANT"
    AWAITING_DIAGNOSIS = "AWAITING_DIAGNOSIS"


@dataclass(frozen=True)
class FemaleStatus:
    """Reproductive state of a female; ``days_open`` is set only for OPEN."""

    state: FemaleState
    days_open: int | None = None

    @classmethod
    def from_last_breeding(cls, last: BreedingRecord | None, today: date) -> "FemaleStatus":
        if last is None:
            return cls(FemaleState.NEVER_BRED)
        if last.status == BreedingStatus.CONFIRMED:
            return cls(FemaleState.PREGNANT)
        if last.status == BreedingStatus.IN_PROGRESS:
            return cls(FemaleState.AWAITING_DIAGNOSIS)
        return cls(FemaleState.OPEN, days_open=days_between(last.event_date, today))

    def is_empty(self, threshold_days: int = FEMALE_EMPTY_AFTER_DAYS) -> bool:
        if self.state == FemaleState.NEVER_BRED:
            return True
        return self.state == FemaleState.OPEN and (self.days_open or 0) >= threshold_days


class ReproductionEvaluator(AlertEvaluator):
    domain = AlertDomain.REPRODUCTION
    rules = ("check_predicted_births", "check_breedings_without_diagnosis", "check_empty_females")

    def check_predicted_births(self, property_id: int | None = None) -> int:
        """Confirmed pregnancies whose predicted birth is within 30 days."""

        horizon = self.today + timedelta(days=BIRTH_LOOKAHEAD_DAYS)
        due = [
            breeding
            for breeding in self.gateways.reproduction.confirmed_pregnancies(property_id)
            if self.today <= predicted_birth(breeding) <= horizon
        ]
        return self.process(
            "predicted_births", property_id, due, lambda b: self._predicted_birth_request(b, property_id)
        )

    def _predicted_birth_request(self, breeding: BreedingRecord, property_id: int | None) -> AlertRequest | None:
        subject = self.subject(breeding.animal_id, property_id)
        if subject is None:
            return None
        birth = predicted_birth(breeding)
        bred_on = format_br(breeding.event_date)
        return self.request_for(
            subject,
            reason=f"Birth predicted for {format_br(birth)}.",
            note=f"Prepare the maternity area. Pregnancy from breeding on {bred_on}.",
            clinical_narrative=(
                f"Buffalo {subject.animal.name} is expected to give birth on {format_br(birth)}. "
                f"Pregnancy confirmed for the breeding of {bred_on}. The maternity area must be "
                "prepared and signs of approaching birth monitored."
            ),
            alert_date=birth,
            origin_event_type=OriginEventType.PREDICTED_BIRTH,
            origin_event_id=str(breeding.id),
        )

    def check_breedings_without_diagnosis(self, property_id: int | None = None) -> int:
        """Breedings still in progress 90 days or more after the event."""

        pending = self.gateways.reproduction.breedings_without_diagnosis(
            NO_DIAGNOSIS_AFTER_DAYS, property_id, today=self.today
        )
        return self.process(
            "breedings_without_diagnosis",
            property_id,
            pending,
            lambda b: self._no_diagnosis_request(b, property_id),
        )

    def _no_diagnosis_request(self, breeding: BreedingRecord, property_id: int | None) -> AlertRequest | None:
        subject = self.subject(breeding.animal_id, property_id)
        if subject is None:
            return None
        elapsed = days_between(breeding.event_date, self.today)
        bred_on = format_br(breeding.event_date)
        kind = breeding.insemination_type or NOT_INFORMED
        return self.request_for(
            subject,
            reason=f"Breeding of {subject.animal.name} on {bred_on} still without diagnosis ({elapsed} days).",
            note=f"Diagnosis is recommended 45-60 days after breeding. Type: {kind}. Perform an ultrasound.",
            clinical_narrative=(
                f"Buffalo {subject.animal.name} was bred {elapsed} days ago (on {bred_on}) and no pregnancy "
                f"diagnosis has been made yet. Breeding type: {kind}. Diagnosis is recommended between "
                "45 and 60 days after breeding."
            ),
            alert_date=self.today,
            origin_event_type=OriginEventType.BREEDING_NO_DIAGNOSIS,
            origin_event_id=str(breeding.id),
        )

    def female_status(self, animal_id: int) -> FemaleStatus:
        return FemaleStatus.from_last_breeding(self.gateways.reproduction.last_breeding(animal_id), self.today)

    def check_empty_females(self, property_id: int | None = None) -> int:
        """Females of breeding age never bred, or open for 180 days or more."""

        females = self.gateways.herd.eligible_females(MIN_BREEDING_AGE_MONTHS, property_id, today=self.today)
        return self.process(
            "empty_females", property_id, females, lambda f: self._empty_female_request(f, property_id)
        )

    def _empty_female_request(self, female: AnimalRecord, property_id: int | None) -> AlertRequest | None:
        status = self.female_status(female.id)
        if not status.is_empty():
            return None
        subject = self.subject(female.id, property_id)
        if subject is None:
            return None
        name = subject.animal.name
        age = age_in_months(female.birth_date, self.today)
        if status.state == FemaleState.NEVER_BRED:
            reason = f"Female {name} is fit for breeding but has never been bred."
            narrative = (
                f"Female {name}, {age} months old, is fit for breeding but has never been mated or "
                "inseminated. Reproductive fitness should be assessed and breeding planned."
            )
        else:
            reason = f"Female {name} has not been bred for {status.days_open} days."
            narrative = (
                f"Female {name}, {age} months old, has not been bred for {status.days_open} days. "
                "Reproductive fitness should be assessed and a new breeding planned."
            )
        return self.request_for(
            subject,
            reason=reason,
            note=f"Assess reproductive fitness and plan breeding. Age: {age} months.",
            clinical_narrative=narrative,
            alert_date=self.today,
            origin_event_type=OriginEventType.FEMALE_EMPTY,
            origin_event_id=str(female.id),
        )
