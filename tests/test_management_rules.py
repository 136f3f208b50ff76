from datetime import date, timedelta

from app.models.alert import Alert, AlertSeverity, OriginEventType
from app.models.reproduction import BreedingStatus
from app.services.alert_rules import ManagementEvaluator

TODAY = date(2026, 3, 10)


def _pregnant(herd, prop, name, days_to_birth):
    animal = herd.animal(prop, name)
    breeding = herd.breeding(animal, TODAY + timedelta(days=days_to_birth - 315), BreedingStatus.CONFIRMED)
    return animal, breeding


def test_pending_dry_off_severity_by_days_to_birth(db_session, herd):
    prop = herd.property()
    close, close_breeding = _pregnant(herd, prop, "Perto", 40)
    later, later_breeding = _pregnant(herd, prop, "Depois", 50)
    herd.milk(close, TODAY - timedelta(days=1), 8.0)
    herd.milk(later, TODAY - timedelta(days=7), 8.0)

    created = ManagementEvaluator(db_session, today=TODAY).check_pending_dry_off(prop.id)

    assert created == 2
    by_origin = {alert.origin_event_id: alert for alert in db_session.query(Alert).all()}
    assert by_origin[str(close_breeding.id)].severity == AlertSeverity.HIGH
    assert by_origin[str(later_breeding.id)].severity == AlertSeverity.MEDIUM
    assert all(a.origin_event_type == OriginEventType.PENDING_DRY_OFF for a in by_origin.values())
    assert all(a.alert_date == TODAY for a in by_origin.values())


def test_no_dry_off_alert_outside_window_or_without_milking(db_session, herd):
    prop = herd.property()
    far, _ = _pregnant(herd, prop, "Longe", 70)
    herd.milk(far, TODAY, 8.0)
    _pregnant(herd, prop, "Seca", 30)
    stale, _ = _pregnant(herd, prop, "Antiga", 30)
    herd.milk(stale, TODAY - timedelta(days=8), 8.0)
    due_today, _ = _pregnant(herd, prop, "Hoje", 0)
    herd.milk(due_today, TODAY, 8.0)

    assert ManagementEvaluator(db_session, today=TODAY).check_pending_dry_off(prop.id) == 0


def test_dry_off_alert_is_raised_once(db_session, herd):
    prop = herd.property()
    animal, _ = _pregnant(herd, prop, "Perto", 45)
    herd.milk(animal, TODAY, 8.0)

    assert ManagementEvaluator(db_session, today=TODAY).check_pending_dry_off(prop.id) == 1
    tomorrow = ManagementEvaluator(db_session, today=TODAY + timedelta(days=1))
    assert tomorrow.check_pending_dry_off(prop.id) == 0
    assert db_session.query(Alert).one().severity == AlertSeverity.HIGH
