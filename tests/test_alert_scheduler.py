import logging
import time
from datetime import UTC, date, datetime, timedelta

from apscheduler.schedulers.background import BackgroundScheduler
from prometheus_client import CollectorRegistry
from sqlalchemy.exc import OperationalError

from app.core.logging import setup_logging
from app.gateways import SqlHealthGateway
from app.models.alert import Alert
from app.services import alert_scheduler
from app.services.alert_metrics import PrometheusAlertMetrics
from app.services.alert_rules import SanitaryEvaluator
from app.services.alert_scheduler import ALERT_SCHEDULE, register_alert_jobs, run_alert_job
from app.utils.errors import UpstreamDataError

TODAY = date(2026, 3, 10)


def _metrics():
    registry = CollectorRegistry()
    return registry, PrometheusAlertMetrics(registry)


def test_run_evaluates_every_active_property(db_session, session_factory, herd):
    first = herd.property("Fazenda A")
    second = herd.property("Fazenda B")
    deleted = herd.property("Fazenda Vendida", deleted_at=datetime(2025, 1, 1, tzinfo=UTC))
    herd.vaccination(herd.animal(first, "A1"), TODAY + timedelta(days=2))
    herd.vaccination(herd.animal(second, "B1"), TODAY + timedelta(days=3))
    herd.vaccination(herd.animal(second, "B2"), TODAY + timedelta(days=4))
    herd.vaccination(herd.animal(deleted, "C1"), TODAY + timedelta(days=4))
    registry, metrics = _metrics()

    report = run_alert_job("vaccinations", session_factory=session_factory, metrics=metrics, today=TODAY)

    assert report.total_created == 3
    assert report.per_property == {first.id: 1, second.id: 2}
    assert report.failures == []
    assert db_session.query(Alert).count() == 3
    assert registry.get_sample_value("herd_alerts_created_total", {"rule": "vaccinations"}) == 3
    assert registry.get_sample_value("herd_alert_run_duration_seconds_count", {"rule": "vaccinations"}) == 1


def test_second_run_creates_nothing(session_factory, herd):
    prop = herd.property()
    herd.vaccination(herd.animal(prop), TODAY + timedelta(days=2))

    assert run_alert_job("vaccinations", session_factory=session_factory, today=TODAY).total_created == 1
    assert run_alert_job("vaccinations", session_factory=session_factory, today=TODAY).total_created == 0


def test_failing_property_does_not_abort_the_run(monkeypatch, session_factory, herd):
    broken = herd.property("Quebrada")
    healthy = herd.property("Saudável")

    def fake_evaluate(rule, property_id, factory, classifier, today):
        if property_id == broken.id:
            raise UpstreamDataError("herd store unavailable")
        return 3

    monkeypatch.setattr(alert_scheduler, "_evaluate_in_session", fake_evaluate)
    registry, metrics = _metrics()

    report = run_alert_job("milk_drop", session_factory=session_factory, metrics=metrics, today=TODAY)

    assert report.total_created == 3
    assert report.per_property == {broken.id: 0, healthy.id: 3}
    assert [failure.property_id for failure in report.failures] == [broken.id]
    assert registry.get_sample_value("herd_alert_property_failures_total", {"rule": "milk_drop"}) == 1


def test_slow_property_times_out(monkeypatch, session_factory, herd):
    slow = herd.property("Lenta")
    fast = herd.property("Rápida")

    def fake_evaluate(rule, property_id, factory, classifier, today):
        if property_id == slow.id:
            time.sleep(0.5)
        return 1

    monkeypatch.setattr(alert_scheduler, "_evaluate_in_session", fake_evaluate)

    report = run_alert_job("empty_females", session_factory=session_factory, today=TODAY, timeout_seconds=0.05)

    assert report.per_property == {slow.id: 0, fast.id: 1}
    assert report.failures[0].property_id == slow.id
    assert report.failures[0].error == "timeout"


def test_property_lookup_failure_is_reported(monkeypatch, session_factory):
    def broken(_factory):
        raise UpstreamDataError("properties unavailable")

    monkeypatch.setattr(alert_scheduler, "_load_properties", broken)

    report = run_alert_job("vaccinations", session_factory=session_factory, today=TODAY)

    assert report.total_created == 0
    assert report.failures[0].property_id is None


def test_register_alert_jobs_adds_one_cron_job_per_rule():
    scheduler = BackgroundScheduler(timezone="UTC")

    job_ids = register_alert_jobs(scheduler)

    assert len(job_ids) == len(ALERT_SCHEDULE) == 8
    jobs = {job.id: job for job in scheduler.get_jobs()}
    assert set(jobs) == set(job_ids)
    assert jobs["alerts-predicted-births"].args == ("predicted_births",)
    assert "minute='5'" in str(jobs["alerts-predicted-births"].trigger)
    assert "hour='6'" in str(jobs["alerts-early-clinical-signs"].trigger)


def test_real_evaluation_survives_another_property_failing(monkeypatch, db_session, session_factory, herd):
    healthy = herd.property("Fazenda A")
    broken = herd.property("Fazenda B")
    herd.vaccination(herd.animal(healthy, "A1"), TODAY + timedelta(days=2))
    herd.vaccination(herd.animal(healthy, "A2"), TODAY + timedelta(days=5))
    herd.vaccination(herd.animal(broken, "B1"), TODAY + timedelta(days=3))
    real_vaccinations_due = SqlHealthGateway.vaccinations_due

    def vaccinations_due(self, property_id, from_date, to_date):
        if property_id == broken.id:
            raise UpstreamDataError("Failed to load vaccinations due.")
        return real_vaccinations_due(self, property_id, from_date, to_date)

    monkeypatch.setattr(SqlHealthGateway, "vaccinations_due", vaccinations_due)

    report = run_alert_job("vaccinations", session_factory=session_factory, today=TODAY)

    assert report.per_property == {healthy.id: 2, broken.id: 0}
    assert [failure.property_id for failure in report.failures] == [broken.id]
    persisted = db_session.query(Alert).all()
    assert len(persisted) == 2
    assert {alert.property_id for alert in persisted} == {healthy.id}


def test_runs_with_info_logging_enabled(db_session, session_factory, herd):
    root = logging.getLogger()
    previous_handlers, previous_level = list(root.handlers), root.level
    prop = herd.property()
    herd.vaccination(herd.animal(prop, "A1"), TODAY + timedelta(days=2))
    herd.vaccination(herd.animal(prop, "A2"), TODAY + timedelta(days=4))
    registry, metrics = _metrics()
    try:
        setup_logging("INFO", env="test")

        assert SanitaryEvaluator(db_session, today=TODAY).check_vaccinations(prop.id) == 2
        report = run_alert_job("treatment_returns", session_factory=session_factory, metrics=metrics, today=TODAY)
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in previous_handlers:
            root.addHandler(handler)
        root.setLevel(previous_level)

    assert report.failures == []
    assert registry.get_sample_value("herd_alert_run_duration_seconds_count", {"rule": "treatment_returns"}) == 1


def test_explicit_timeout_is_not_replaced_by_default(monkeypatch, session_factory, herd):
    herd.property()
    seen = []

    def fake_run(fn, timeout_seconds, name):
        seen.append(timeout_seconds)
        return 0

    monkeypatch.setattr(alert_scheduler, "_run_with_timeout", fake_run)

    run_alert_job("vaccinations", session_factory=session_factory, today=TODAY, timeout_seconds=0)

    assert seen == [0]


def test_database_error_while_loading_properties_is_reported(monkeypatch, session_factory):
    def broken(_factory):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(alert_scheduler, "_load_properties", broken)
    registry, metrics = _metrics()

    report = run_alert_job("vaccinations", session_factory=session_factory, metrics=metrics, today=TODAY)

    assert report.total_created == 0
    assert report.failures[0].property_id is None
    assert registry.get_sample_value("herd_alert_run_duration_seconds_count", {"rule": "vaccinations"}) == 1
