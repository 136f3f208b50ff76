from datetime import date, timedelta

import pytest

from app.gateways import YieldRecord
from app.models.alert import Alert, AlertSeverity, OriginEventType
from app.services.alert_rules import ProductionEvaluator
from app.services.alert_rules.production import analyse_milk_drop

TODAY = date(2026, 3, 10)


def _seed(herd, animal, *, recent: list[float], historical: list[float]) -> None:
    for offset, quantity in enumerate(recent, start=1):
        herd.milk(animal, TODAY - timedelta(days=offset), quantity)
    for offset, quantity in enumerate(historical, start=11):
        herd.milk(animal, TODAY - timedelta(days=offset), quantity)


def _never_called(_text):
    raise AssertionError("milk drop severity is rule-based")


@pytest.mark.parametrize(
    "recent, historical, expected",
    [
        (8.0, 12.0, AlertSeverity.MEDIUM),
        (5.5, 10.0, AlertSeverity.HIGH),
    ],
)
def test_milk_drop_severity(db_session, herd, recent, historical, expected):
    prop = herd.property()
    animal = herd.animal(prop, "Leiteira")
    _seed(herd, animal, recent=[recent] * 3, historical=[historical] * 10)

    created = ProductionEvaluator(db_session, classifier=_never_called, today=TODAY).check_milk_drop(prop.id)

    assert created == 1
    alert = db_session.query(Alert).one()
    assert alert.severity == expected
    assert alert.origin_event_type == OriginEventType.MILK_DROP
    assert alert.origin_event_id == str(animal.id)
    assert alert.alert_date == TODAY


def test_small_drop_is_ignored(db_session, herd):
    prop = herd.property()
    _seed(herd, herd.animal(prop), recent=[10.0] * 3, historical=[11.0] * 10)

    assert ProductionEvaluator(db_session, today=TODAY).check_milk_drop(prop.id) == 0


def test_insufficient_samples_suppress_alert(db_session, herd):
    prop = herd.property()
    _seed(herd, herd.animal(prop, "Poucos recentes"), recent=[2.0] * 2, historical=[12.0] * 10)
    _seed(herd, herd.animal(prop, "Pouco historico"), recent=[2.0] * 3, historical=[12.0] * 9)

    assert ProductionEvaluator(db_session, today=TODAY).check_milk_drop(prop.id) == 0
    assert db_session.query(Alert).count() == 0


def test_analysis_windows_and_zero_history():
    records = [YieldRecord(animal_id=1, milked_on=TODAY - timedelta(days=d), quantity=6.0) for d in range(0, 3)]
    records += [YieldRecord(animal_id=1, milked_on=TODAY - timedelta(days=d), quantity=12.0) for d in range(8, 18)]
    # Older than the 30-day historical window: ignored.
    records += [YieldRecord(animal_id=1, milked_on=TODAY - timedelta(days=40), quantity=100.0)]

    analysis = analyse_milk_drop(1, records, TODAY)

    assert analysis is not None
    assert analysis.recent_samples == 3
    assert analysis.historical_samples == 10
    assert analysis.drop_percent == pytest.approx(50.0)

    zeros = [YieldRecord(animal_id=1, milked_on=r.milked_on, quantity=0.0) for r in records]
    assert analyse_milk_drop(1, zeros, TODAY) is None
