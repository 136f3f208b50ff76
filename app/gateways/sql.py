"""SQLAlchemy implementations of the herd data gateways."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.animal import Animal, AnimalSex
from app.models.health import Treatment, Vaccination
from app.models.production import MilkYield, Weighing
from app.models.property import HerdGroup, Property
from app.models.reproduction import Breeding, BreedingStatus
from app.utils.errors import UpstreamDataError
from app.utils.time import subtract_months

from .protocols import HealthGateway, HerdGateway, ProductionGateway, ReproductionGateway
from .records import (
    AnimalRecord,
    BreedingRecord,
    PropertyRecord,
    TreatmentRecord,
    VaccinationRecord,
    WeighingRecord,
    YieldRecord,
)

logger = logging.getLogger(__name__)


@contextmanager
def _upstream(db: Session, what: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Herd data query failed", extra={"query": what, "error": str(exc)})
        raise UpstreamDataError(f"Failed to load {what}.", details={"query": what}) from exc


def _in_property(stmt, property_id: int | None):
    """Restrict a statement already joined to Animal to one property's active animals."""

    stmt = stmt.where(Animal.is_active.is_(True))
    if property_id is not None:
        stmt = stmt.where(Animal.property_id == property_id)
    return stmt


def _breeding_record(row: Breeding) -> BreedingRecord:
    return BreedingRecord(
        id=row.id,
        animal_id=row.animal_id,
        event_date=row.event_date,
        status=row.status,
        insemination_type=row.insemination_type,
    )


class SqlHerdGateway:
    def __init__(self, db: Session) -> None:
        self.db = db

    def active_properties(self) -> list[PropertyRecord]:
        stmt = select(Property.id, Property.name).where(Property.deleted_at.is_(None)).order_by(Property.id)
        with _upstream(self.db, "active properties"):
            return [PropertyRecord(id=row.id, name=row.name) for row in self.db.execute(stmt)]

    def animal_profile(self, animal_id: int) -> AnimalRecord | None:
        stmt = (
            select(Animal, HerdGroup.name.label("group_name"), Property.name.label("property_name"))
            .outerjoin(HerdGroup, HerdGroup.id == Animal.group_id)
            .outerjoin(Property, Property.id == Animal.property_id)
            .where(Animal.id == animal_id)
        )
        with _upstream(self.db, "animal profile"):
            row = self.db.execute(stmt).first()
        if row is None:
            return None
        animal = row.Animal
        return AnimalRecord(
            id=animal.id,
            name=animal.name,
            birth_date=animal.birth_date,
            property_id=animal.property_id,
            group_id=animal.group_id,
            group_name=row.group_name,
            property_name=row.property_name,
        )

    def animal_ids(self, property_id: int | None) -> list[int]:
        stmt = _in_property(select(Animal.id), property_id).order_by(Animal.id)
        with _upstream(self.db, "animal ids"):
            return list(self.db.scalars(stmt))

    def eligible_females(
        self, min_age_months: int, property_id: int | None, *, today: date
    ) -> list[AnimalRecord]:
        born_before = subtract_months(today, min_age_months)
        stmt = _in_property(
            select(Animal).where(
                Animal.sex == AnimalSex.FEMALE,
                Animal.birth_date.is_not(None),
                Animal.birth_date <= born_before,
            ),
            property_id,
        ).order_by(Animal.id)
        with _upstream(self.db, "eligible females"):
            animals = self.db.scalars(stmt).all()
        return [
            AnimalRecord(
                id=a.id,
                name=a.name,
                birth_date=a.birth_date,
                property_id=a.property_id,
                group_id=a.group_id,
            )
            for a in animals
        ]


class SqlHealthGateway:
    def __init__(self, db: Session) -> None:
        self.db = db

    def treatments_with_return_due(
        self, property_id: int | None, from_date: date, to_date: date
    ) -> list[TreatmentRecord]:
        stmt = _in_property(
            select(Treatment)
            .join(Animal, Animal.id == Treatment.animal_id)
            .where(
                Treatment.needs_return.is_(True),
                Treatment.return_date.between(from_date, to_date),
            ),
            property_id,
        ).order_by(Treatment.return_date, Treatment.id)
        with _upstream(self.db, "treatments with return due"):
            rows = self.db.scalars(stmt).all()
        return [
            TreatmentRecord(
                id=t.id,
                animal_id=t.animal_id,
                event_date=t.event_date,
                diagnosis=t.diagnosis,
                intervention_type=t.intervention_type,
                return_date=t.return_date,
            )
            for t in rows
        ]

    def vaccinations_due(
        self, property_id: int | None, from_date: date, to_date: date
    ) -> list[VaccinationRecord]:
        stmt = _in_property(
            select(Vaccination)
            .join(Animal, Animal.id == Vaccination.animal_id)
            .where(Vaccination.scheduled_date.between(from_date, to_date)),
            property_id,
        ).order_by(Vaccination.scheduled_date, Vaccination.id)
        with _upstream(self.db, "vaccinations due"):
            rows = self.db.scalars(stmt).all()
        return [
            VaccinationRecord(
                id=v.id,
                animal_id=v.animal_id,
                scheduled_date=v.scheduled_date,
                vaccine_type=v.vaccine_type,
            )
            for v in rows
        ]

    def recent_treatment_count(self, animal_id: int, days_back: int, *, today: date) -> int:
        stmt = select(func.count(Treatment.id)).where(
            Treatment.animal_id == animal_id,
            Treatment.event_date.between(today - timedelta(days=days_back), today),
        )
        with _upstream(self.db, "recent treatment count"):
            return int(self.db.scalar(stmt) or 0)


class SqlReproductionGateway:
    def __init__(self, db: Session) -> None:
        self.db = db

    def confirmed_pregnancies(self, property_id: int | None) -> list[BreedingRecord]:
        stmt = _in_property(
            select(Breeding)
            .join(Animal, Animal.id == Breeding.animal_id)
            .where(Breeding.status == BreedingStatus.CONFIRMED),
            property_id,
        ).order_by(Breeding.event_date, Breeding.id)
        with _upstream(self.db, "confirmed pregnancies"):
            return [_breeding_record(b) for b in self.db.scalars(stmt)]

    def breedings_without_diagnosis(
        self, min_days_elapsed: int, property_id: int | None, *, today: date
    ) -> list[BreedingRecord]:
        stmt = _in_property(
            select(Breeding)
            .join(Animal, Animal.id == Breeding.animal_id)
            .where(
                Breeding.status == BreedingStatus.IN_PROGRESS,
                Breeding.event_date <= today - timedelta(days=min_days_elapsed),
            ),
            property_id,
        ).order_by(Breeding.event_date, Breeding.id)
        with _upstream(self.db, "breedings without diagnosis"):
            return [_breeding_record(b) for b in self.db.scalars(stmt)]

    def last_breeding(self, animal_id: int) -> BreedingRecord | None:
        stmt = (
            select(Breeding)
            .where(Breeding.animal_id == animal_id)
            .order_by(Breeding.event_date.desc(), Breeding.id.desc())
            .limit(1)
        )
        with _upstream(self.db, "last breeding"):
            row = self.db.scalars(stmt).first()
        return _breeding_record(row) if row is not None else None


class SqlProductionGateway:
    def __init__(self, db: Session) -> None:
        self.db = db

    def recent_yields(self, property_id: int | None, days_back: int, *, today: date) -> list[YieldRecord]:
        stmt = _in_property(
            select(MilkYield)
            .join(Animal, Animal.id == MilkYield.animal_id)
            .where(MilkYield.milked_on.between(today - timedelta(days=days_back), today)),
            property_id,
        ).order_by(MilkYield.animal_id, MilkYield.milked_on)
        with _upstream(self.db, "recent yields"):
            rows = self.db.scalars(stmt).all()
        return [YieldRecord(animal_id=y.animal_id, milked_on=y.milked_on, quantity=float(y.quantity)) for y in rows]

    def recent_milking_records(self, animal_id: int, days_back: int, *, today: date) -> list[YieldRecord]:
        stmt = (
            select(MilkYield)
            .where(
                MilkYield.animal_id == animal_id,
                MilkYield.milked_on.between(today - timedelta(days=days_back), today),
            )
            .order_by(MilkYield.milked_on)
        )
        with _upstream(self.db, "recent milking records"):
            rows = self.db.scalars(stmt).all()
        return [YieldRecord(animal_id=y.animal_id, milked_on=y.milked_on, quantity=float(y.quantity)) for y in rows]

    def recent_weighings(self, animal_id: int, days_back: int, *, today: date) -> list[WeighingRecord]:
        stmt = (
            select(Weighing)
            .where(
                Weighing.animal_id == animal_id,
                Weighing.weighed_on.between(today - timedelta(days=days_back), today),
            )
            .order_by(Weighing.weighed_on, Weighing.id)
        )
        with _upstream(self.db, "recent weighings"):
            rows = self.db.scalars(stmt).all()
        return [WeighingRecord(animal_id=w.animal_id, weighed_on=w.weighed_on, weight=float(w.weight)) for w in rows]


@dataclass
class Gateways:
    """The four gateways an evaluator reads from."""

    herd: HerdGateway
    health: HealthGateway
    reproduction: ReproductionGateway
    production: ProductionGateway

    @classmethod
    def for_session(cls, db: Session) -> "Gateways":
        return cls(
            herd=SqlHerdGateway(db),
            health=SqlHealthGateway(db),
            reproduction=SqlReproductionGateway(db),
            production=SqlProductionGateway(db),
        )
