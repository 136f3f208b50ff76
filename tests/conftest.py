"""Test configuration."""
import os
from collections.abc import AsyncIterator, Iterator
from datetime import date
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# --- Config env par défaut
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("HERD_ENV", "test")
os.environ.setdefault("PROMETHEUS_ENABLED", "false")
os.environ.setdefault("PRIORITY_CLASSIFIER_ENABLED", "false")

from app.main import app  # noqa: E402
from app.db import get_db  # noqa: E402
from app.models import (  # noqa: E402
    Animal,
    AnimalSex,
    Base,
    Breeding,
    BreedingStatus,
    HerdGroup,
    MilkYield,
    Property,
    Treatment,
    Vaccination,
    Weighing,
)
from app.services import priority_classifier  # noqa: E402


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def override_db_dependency(db_session: Session) -> Iterator[None]:
    def _get_db() -> Iterator[Session]:
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture(autouse=True)
def reset_classifier_state(monkeypatch) -> None:
    monkeypatch.setattr(priority_classifier, "_FAILURE_COUNT", 0)
    monkeypatch.setattr(priority_classifier, "_CIRCUIT_OPEN", False)
    monkeypatch.setattr(priority_classifier, "_CALLS", 0)
    monkeypatch.setattr(priority_classifier, "_ERRORS", 0)
    monkeypatch.setattr(priority_classifier, "_OPENED_AT", None)


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as async_client:
        yield async_client


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class HerdFactory:
    """Small builder for herd records; every helper commits."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def property(self, name: str = "Fazenda Boa Vista", **kwargs) -> Property:
        return self._save(Property(name=name, **kwargs))

    def group(self, prop: Property, name: str = "Lactação") -> HerdGroup:
        return self._save(HerdGroup(name=name, property_id=prop.id))

    def animal(
        self,
        prop: Property | None,
        name: str = "Mimosa",
        *,
        sex: AnimalSex = AnimalSex.FEMALE,
        birth_date: date | None = date(2021, 1, 15),
        group: HerdGroup | None = None,
        is_active: bool = True,
    ) -> Animal:
        return self._save(
            Animal(
                name=name,
                sex=sex,
                birth_date=birth_date,
                is_active=is_active,
                property_id=prop.id if prop else None,
                group_id=group.id if group else None,
            )
        )

    def breeding(
        self,
        animal: Animal,
        event_date: date,
        status: BreedingStatus = BreedingStatus.IN_PROGRESS,
        insemination_type: str | None = "IA",
    ) -> Breeding:
        return self._save(
            Breeding(animal_id=animal.id, event_date=event_date, status=status, insemination_type=insemination_type)
        )

    def treatment(
        self,
        animal: Animal,
        event_date: date,
        *,
        return_date: date | None = None,
        diagnosis: str | None = "Mastite",
        intervention_type: str | None = "Antibiótico",
    ) -> Treatment:
        return self._save(
            Treatment(
                animal_id=animal.id,
                event_date=event_date,
                diagnosis=diagnosis,
                intervention_type=intervention_type,
                needs_return=return_date is not None,
                return_date=return_date,
            )
        )

    def vaccination(self, animal: Animal, scheduled_date: date, vaccine_type: str | None = "Brucelose") -> Vaccination:
        return self._save(Vaccination(animal_id=animal.id, scheduled_date=scheduled_date, vaccine_type=vaccine_type))

    def milk(self, animal: Animal, milked_on: date, quantity: float) -> MilkYield:
        return self._save(MilkYield(animal_id=animal.id, milked_on=milked_on, quantity=Decimal(str(quantity))))

    def weighing(self, animal: Animal, weighed_on: date, weight: float) -> Weighing:
        return self._save(Weighing(animal_id=animal.id, weighed_on=weighed_on, weight=Decimal(str(weight))))


@pytest.fixture
def herd(db_session: Session) -> HerdFactory:
    return HerdFactory(db_session)
