"""Scheduled alert runs: each rule, once a day, across every active property."""
from __future__ import annotations

import concurrent.futures
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from functools import partial

from apscheduler.schedulers.base import BaseScheduler
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.db import get_sessionmaker, session_scope
from app.gateways import PropertyRecord, SqlHerdGateway
from app.services.alert_metrics import AlertMetricsSink
from app.services.alert_rules import RULES, AlertRule
from app.services.alerts import Classifier
from app.utils.errors import UpstreamDataError
from app.utils.time import today as current_date

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]

# (rule, hour, minute)
ALERT_SCHEDULE: tuple[tuple[str, int, int], ...] = (
    ("treatment_returns", 0, 0),
    ("predicted_births", 0, 5),
    ("breedings_without_diagnosis", 1, 0),
    ("empty_females", 2, 0),
    ("vaccinations", 3, 0),
    ("milk_drop", 4, 0),
    ("pending_dry_off", 5, 0),
    ("early_clinical_signs", 6, 0),
)


@dataclass
class PropertyFailure:
    property_id: int | None
    error: str


@dataclass
class AlertRunReport:
    rule: str
    today: date
    elapsed_seconds: float = 0.0
    total_created: int = 0
    per_property: dict[int, int] = field(default_factory=dict)
    failures: list[PropertyFailure] = field(default_factory=list)


def _evaluate_in_session(
    rule: AlertRule,
    property_id: int,
    session_factory: SessionFactory,
    classifier: Classifier | None,
    today: date,
) -> int:
    with session_scope(session_factory) as db:
        return rule.run(db, property_id, classifier=classifier, today=today)


def _load_properties(session_factory: SessionFactory) -> list[PropertyRecord]:
    with session_scope(session_factory) as db:
        return SqlHerdGateway(db).active_properties()


def _run_with_timeout(fn: Callable[[], int], timeout_seconds: float, name: str) -> int:
    # A timed-out worker is abandoned, not joined.
    executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)
    try:
        return executor.submit(fn).result(timeout=timeout_seconds)
    finally:
        executor.shutdown(wait=False)


def run_alert_job(
    rule_name: str,
    *,
    session_factory: SessionFactory | None = None,
    metrics: AlertMetricsSink | None = None,
    classifier: Classifier | None = None,
    today: date | None = None,
    timeout_seconds: float | None = None,
) -> AlertRunReport:
    """Evaluate one rule for every active property.

    A failing or slow property is logged and counted as zero; the run goes on.
    """

    rule = RULES[rule_name]
    factory = session_factory or get_sessionmaker()
    run_date = today or current_date()
    timeout = get_settings().ALERT_EVALUATION_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
    report = AlertRunReport(rule=rule_name, today=run_date)
    start = time.monotonic()

    try:
        properties = _load_properties(factory)
    except (UpstreamDataError, SQLAlchemyError) as exc:
        logger.exception("Could not load active properties; skipping run", extra={"rule": rule_name})
        properties = []
        report.failures.append(PropertyFailure(property_id=None, error=str(exc)))

    for prop in properties:
        try:
            created = _run_with_timeout(
                partial(_evaluate_in_session, rule, prop.id, factory, classifier, run_date),
                timeout,
                f"alerts-{rule_name}",
            )
        except concurrent.futures.TimeoutError:
            logger.error(
                "Alert evaluation timed out",
                extra={"rule": rule_name, "property_id": prop.id, "timeout_seconds": timeout},
            )
            created = 0
            report.failures.append(PropertyFailure(property_id=prop.id, error="timeout"))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Alert evaluation failed", extra={"rule": rule_name, "property_id": prop.id})
            created = 0
            report.failures.append(PropertyFailure(property_id=prop.id, error=str(exc)))
        report.per_property[prop.id] = created
        report.total_created += created

    report.elapsed_seconds = time.monotonic() - start
    logger.info(
        "Alert run finished",
        extra={
            "rule": rule_name,
            "properties": len(properties),
            "created_count": report.total_created,
            "failures": len(report.failures),
            "elapsed_seconds": round(report.elapsed_seconds, 3),
        },
    )
    if metrics is not None:
        metrics.observe_run(report)
    return report


def register_alert_jobs(
    scheduler: BaseScheduler,
    *,
    session_factory: SessionFactory | None = None,
    metrics: AlertMetricsSink | None = None,
    classifier: Classifier | None = None,
) -> list[str]:
    """Add one daily cron job per rule; returns the job ids."""

    job_ids = []
    for rule_name, hour, minute in ALERT_SCHEDULE:
        job_id = f"alerts-{rule_name.replace('_', '-')}"
        scheduler.add_job(
            run_alert_job,
            "cron",
            hour=hour,
            minute=minute,
            args=[rule_name],
            kwargs={"session_factory": session_factory, "metrics": metrics, "classifier": classifier},
            id=job_id,
            replace_existing=True,
        )
        job_ids.append(job_id)
    return job_ids


__all__ = [
    "ALERT_SCHEDULE",
    "AlertRunReport",
    "PropertyFailure",
    "register_alert_jobs",
    "run_alert_job",
]
