from datetime import date, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app.gateways import Gateways, SqlHerdGateway
from app.models.animal import AnimalSex
from app.utils.errors import UpstreamDataError

TODAY = date(2026, 3, 10)


def test_eligible_females_respects_age_cutoff(db_session, herd):
    prop = herd.property()
    old_enough = herd.animal(prop, "Adulta", birth_date=date(2024, 9, 10))
    herd.animal(prop, "Novilha", birth_date=date(2024, 9, 11))
    herd.animal(prop, "Sem data", birth_date=None)
    herd.animal(prop, "Touro", sex=AnimalSex.MALE, birth_date=date(2020, 1, 1))
    herd.animal(prop, "Vendida", birth_date=date(2020, 1, 1), is_active=False)
    other = herd.animal(herd.property("Outra"), "Vizinha", birth_date=date(2020, 1, 1))

    gateway = SqlHerdGateway(db_session)

    assert [a.id for a in gateway.eligible_females(18, prop.id, today=TODAY)] == [old_enough.id]
    assert [a.id for a in gateway.eligible_females(18, None, today=TODAY)] == [old_enough.id, other.id]


def test_animal_profile_carries_labels(db_session, herd):
    prop = herd.property("Fazenda Rio Verde")
    group = herd.group(prop, "Lote 2")
    animal = herd.animal(prop, "Estrela", group=group)
    loose = herd.animal(None, "Sem lote")

    gateway = SqlHerdGateway(db_session)
    profile = gateway.animal_profile(animal.id)

    assert profile.name == "Estrela"
    assert profile.group_name == "Lote 2"
    assert profile.property_name == "Fazenda Rio Verde"
    assert gateway.animal_profile(loose.id).group_name is None
    assert gateway.animal_profile(9999) is None


def test_yield_windows_include_both_ends(db_session, herd):
    prop = herd.property()
    animal = herd.animal(prop)
    for days_ago in (0, 7, 8):
        herd.milk(animal, TODAY - timedelta(days=days_ago), 10.5)

    production = Gateways.for_session(db_session).production
    records = production.recent_milking_records(animal.id, 7, today=TODAY)

    assert [r.milked_on for r in records] == [TODAY - timedelta(days=7), TODAY]
    assert records[0].quantity == pytest.approx(10.5)


def test_store_failures_become_upstream_errors(monkeypatch, db_session):
    def broken_execute(*_args, **_kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "execute", broken_execute)

    with pytest.raises(UpstreamDataError) as excinfo:
        SqlHerdGateway(db_session).active_properties()

    assert excinfo.value.details == {"query": "active properties"}
