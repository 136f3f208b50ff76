"""Plain read records returned by the herd data gateways."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from app.models.reproduction import BreedingStatus


@dataclass(frozen=True)
class PropertyRecord:
    id: int
    name: str


@dataclass(frozen=True)
class AnimalRecord:
    id: int
    name: str
    birth_date: date | None
    property_id: int | None
    group_id: int | None
    group_name: str | None = None
    property_name: str | None = None


@dataclass(frozen=True)
class TreatmentRecord:
    id: int
    animal_id: int
    event_date: date
    diagnosis: str | None
    intervention_type: str | None
    return_date: date | None


@dataclass(frozen=True)
class VaccinationRecord:
    id: int
    animal_id: int
    scheduled_date: date
    vaccine_type: str | None


@dataclass(frozen=True)
class BreedingRecord:
    id: int
    animal_id: int
    event_date: date
    status: BreedingStatus
    insemination_type: str | None


@dataclass(frozen=True)
class YieldRecord:
    animal_id: int
    milked_on: date
    quantity: float


@dataclass(frozen=True)
class WeighingRecord:
    animal_id: int
    weighed_on: date
    weight: float
