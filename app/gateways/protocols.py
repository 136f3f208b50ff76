"""Read-only interfaces the rule evaluators depend on.

Windowed queries take ``today`` explicitly so evaluations are reproducible.
Empty results are normal; store failures raise ``UpstreamDataError``.
"""
from __future__ import annotations

from datetime import date
from typing import Protocol

from .records import (
    AnimalRecord,
    BreedingRecord,
    PropertyRecord,
    TreatmentRecord,
    VaccinationRecord,
    WeighingRecord,
    YieldRecord,
)


class HerdGateway(Protocol):
    def active_properties(self) -> list[PropertyRecord]: ...

    def animal_profile(self, animal_id: int) -> AnimalRecord | None: ...

    def animal_ids(self, property_id: int | None) -> list[int]: ...

    def eligible_females(
        self, min_age_months: int, property_id: int | None, *, today: date
    ) -> list[AnimalRecord]: ...


class HealthGateway(Protocol):
    def treatments_with_return_due(
        self, property_id: int | None, from_date: date, to_date: date
    ) -> list[TreatmentRecord]: ...

    def vaccinations_due(
        self, property_id: int | None, from_date: date, to_date: date
    ) -> list[VaccinationRecord]: ...

    def recent_treatment_count(self, animal_id: int, days_back: int, *, today: date) -> int: ...


class ReproductionGateway(Protocol):
    def confirmed_pregnancies(self, property_id: int | None) -> list[BreedingRecord]: ...

    def breedings_without_diagnosis(
        self, min_days_elapsed: int, property_id: int | None, *, today: date
    ) -> list[BreedingRecord]: ...

    def last_breeding(self, animal_id: int) -> BreedingRecord | None: ...


class ProductionGateway(Protocol):
    def recent_yields(self, property_id: int | None, days_back: int, *, today: date) -> list[YieldRecord]: ...

    def recent_milking_records(self, animal_id: int, days_back: int, *, today: date) -> list[YieldRecord]: ...

    def recent_weighings(self, animal_id: int, days_back: int, *, today: date) -> list[WeighingRecord]: ...
