from datetime import date, timedelta

from app.models.alert import Alert, AlertDomain, AlertSeverity, OriginEventType
from app.services.alert_rules import SanitaryEvaluator, base
from app.utils.errors import AlertPersistenceError

TODAY = date(2026, 3, 10)


def _evaluator(db_session, classifier=lambda _text: AlertSeverity.LOW):
    return SanitaryEvaluator(db_session, classifier=classifier, today=TODAY)


def test_treatment_return_within_window_raises_alert(db_session, herd):
    prop = herd.property("Fazenda Santa Rita")
    group = herd.group(prop, "Maternidade")
    animal = herd.animal(prop, "Jabuticaba", group=group)
    treatment = herd.treatment(animal, TODAY - timedelta(days=10), return_date=TODAY + timedelta(days=5))
    herd.treatment(animal, TODAY - timedelta(days=10), return_date=TODAY + timedelta(days=16))
    herd.treatment(animal, TODAY - timedelta(days=10), return_date=TODAY - timedelta(days=1))

    created = _evaluator(db_session).check_treatment_returns(prop.id)

    assert created == 1
    alert = db_session.query(Alert).one()
    assert alert.domain == AlertDomain.SANITARY
    assert alert.origin_event_type == OriginEventType.TREATMENT_RETURN
    assert alert.origin_event_id == str(treatment.id)
    assert alert.alert_date == TODAY + timedelta(days=5)
    assert alert.group_label == "Maternidade"
    assert alert.location_label == "Fazenda Santa Rita"
    assert alert.property_id == prop.id
    assert alert.severity == AlertSeverity.LOW
    assert "15/03/2026" in alert.reason


def test_treatment_returns_are_not_duplicated(db_session, herd):
    prop = herd.property()
    animal = herd.animal(prop)
    herd.treatment(animal, TODAY, return_date=TODAY + timedelta(days=15))

    assert _evaluator(db_session).check_treatment_returns(prop.id) == 1
    assert _evaluator(db_session).check_treatment_returns(prop.id) == 0
    assert db_session.query(Alert).count() == 1


def test_missing_labels_fall_back(db_session, herd):
    prop = herd.property()
    animal = herd.animal(prop, group=None)
    herd.vaccination(animal, TODAY + timedelta(days=30))

    assert _evaluator(db_session).check_vaccinations(prop.id) == 1

    alert = db_session.query(Alert).one()
    assert alert.group_label == "Not informed"
    assert alert.origin_event_type == OriginEventType.VACCINATION


def test_vaccinations_outside_window_or_other_property_are_ignored(db_session, herd):
    prop = herd.property()
    other = herd.property("Outra")
    animal = herd.animal(prop)
    herd.vaccination(animal, TODAY + timedelta(days=31))
    herd.vaccination(herd.animal(other, "Estrela"), TODAY + timedelta(days=2))
    herd.vaccination(herd.animal(prop, "Vendida", is_active=False), TODAY + timedelta(days=2))

    assert _evaluator(db_session).check_vaccinations(prop.id) == 0


def test_evaluate_sums_both_rules(db_session, herd):
    prop = herd.property()
    animal = herd.animal(prop)
    herd.treatment(animal, TODAY, return_date=TODAY + timedelta(days=1))
    herd.vaccination(animal, TODAY)

    assert _evaluator(db_session).evaluate(prop.id) == 2


def test_unavailable_classifier_still_creates_medium_alert(db_session, herd):
    prop = herd.property()
    animal = herd.animal(prop)
    herd.vaccination(animal, TODAY + timedelta(days=3))

    # Default classifier is disabled in tests.
    assert SanitaryEvaluator(db_session, today=TODAY).check_vaccinations(prop.id) == 1
    assert db_session.query(Alert).one().severity == AlertSeverity.MEDIUM


def test_failing_candidate_does_not_stop_the_rule(monkeypatch, db_session, herd):
    prop = herd.property()
    first = herd.animal(prop, "Primeira")
    second = herd.animal(prop, "Segunda")
    herd.vaccination(first, TODAY + timedelta(days=1))
    second_vaccination = herd.vaccination(second, TODAY + timedelta(days=2))
    real_get_or_create = base.get_or_create_alert
    calls = []

    def flaky_get_or_create(db, request, **kwargs):
        calls.append(request.origin_event_id)
        if len(calls) == 1:
            raise AlertPersistenceError("Failed to persist alert.")
        return real_get_or_create(db, request, **kwargs)

    monkeypatch.setattr(base, "get_or_create_alert", flaky_get_or_create)

    created = _evaluator(db_session).check_vaccinations(prop.id)

    assert created == 1
    assert len(calls) == 2
    assert db_session.query(Alert).one().origin_event_id == str(second_vaccination.id)


def test_invalid_candidate_request_is_skipped(db_session, herd):
    prop = herd.property()
    oversized = herd.group(prop, "Lote " + "x" * 150)
    herd.vaccination(herd.animal(prop, "Grupo longo", group=oversized), TODAY + timedelta(days=1))
    valid = herd.vaccination(herd.animal(prop, "Sem grupo"), TODAY + timedelta(days=2))

    created = _evaluator(db_session).check_vaccinations(prop.id)

    assert created == 1
    assert db_session.query(Alert).one().origin_event_id == str(valid.id)
