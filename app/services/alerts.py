"""Alert store: persistence, deduplication and queries."""
from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import date, timedelta

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.alert import Alert, AlertSeverity, dedup_slot_for, is_recurring
from app.schemas.alert import AlertFilters, AlertRequest, PageMeta
from app.services.priority_classifier import classify_priority
from app.utils.errors import AlertNotFoundError, AlertPersistenceError, ClassificationUnavailable
from app.utils.time import today as current_date

logger = logging.getLogger(__name__)

Classifier = Callable[[str], AlertSeverity]

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100


def resolve_severity(request: AlertRequest, classifier: Classifier | None = None) -> AlertSeverity:
    """Use the request severity, else ask the classifier, else MEDIUM."""

    if request.severity is not None:
        return request.severity
    classify = classifier or classify_priority
    try:
        return classify(request.classification_text())
    except ClassificationUnavailable as exc:
        logger.warning(
            "Priority classification unavailable; defaulting to MEDIUM",
            extra={"reason": exc.message, "origin_event_type": _origin_value(request)},
        )
    except Exception:  # noqa: BLE001
        logger.warning(
            "Priority classifier raised; defaulting to MEDIUM",
            exc_info=True,
            extra={"origin_event_type": _origin_value(request)},
        )
    return AlertSeverity.MEDIUM


def _origin_value(request: AlertRequest) -> str | None:
    return request.origin_event_type.value if request.origin_event_type else None


def _build_alert(request: AlertRequest, severity: AlertSeverity) -> Alert:
    return Alert(
        domain=request.domain,
        severity=severity,
        animal_id=request.animal_id,
        property_id=request.property_id,
        group_label=request.group_label,
        location_label=request.location_label,
        reason=request.reason,
        note=request.note,
        clinical_narrative=request.clinical_narrative,
        alert_date=request.alert_date,
        acknowledged=False,
        origin_event_type=request.origin_event_type,
        origin_event_id=request.origin_event_id,
        dedup_slot=dedup_slot_for(request.origin_event_type, request.alert_date),
    )


def _lineage_clause(request: AlertRequest):
    return (
        Alert.origin_event_type == request.origin_event_type,
        Alert.origin_event_id == request.origin_event_id,
        Alert.animal_id.is_(None) if request.animal_id is None else Alert.animal_id == request.animal_id,
        Alert.domain == request.domain,
    )


def _slot_holder(db: Session, request: AlertRequest) -> Alert | None:
    slot = dedup_slot_for(request.origin_event_type, request.alert_date)
    if slot is None:
        return None
    stmt = select(Alert).where(*_lineage_clause(request), Alert.dedup_slot == slot).limit(1)
    return db.scalars(stmt).first()


def _insert(db: Session, request: AlertRequest, severity: AlertSeverity) -> tuple[Alert, bool]:
    alert = _build_alert(request, severity)
    try:
        db.add(alert)
        db.commit()
        db.refresh(alert)
    except IntegrityError as exc:
        db.rollback()
        # Lost the race; return the row holding the slot
        holder = _slot_holder(db, request)
        if holder is None:
            raise AlertPersistenceError("Alert insert violated a constraint.") from exc
        logger.info(
            "Alert insert lost a dedup race; returning existing alert",
            extra={"alert_id": holder.id, "origin_event_type": _origin_value(request)},
        )
        return holder, False
    except SQLAlchemyError as exc:
        db.rollback()
        raise AlertPersistenceError("Failed to persist alert.") from exc

    logger.info(
        "Alert created",
        extra={
            "alert_id": alert.id,
            "domain": alert.domain.value,
            "severity": alert.severity.value,
            "origin_event_type": _origin_value(request),
            "origin_event_id": request.origin_event_id,
        },
    )
    return alert, True


def create_alert(db: Session, request: AlertRequest, *, classifier: Classifier | None = None) -> Alert:
    """Persist an alert without looking at its lineage."""

    alert, _created = _insert(db, request, resolve_severity(request, classifier))
    return alert


def find_lineage(db: Session, request: AlertRequest) -> list[Alert]:
    """Alerts sharing the request's dedup key, newest first."""

    stmt = (
        select(Alert)
        .where(*_lineage_clause(request))
        .order_by(Alert.created_at.desc(), Alert.id.desc())
    )
    try:
        return list(db.scalars(stmt).all())
    except SQLAlchemyError as exc:
        db.rollback()
        raise AlertPersistenceError("Failed to look up existing alerts.") from exc


def get_or_create_alert(
    db: Session, request: AlertRequest, *, classifier: Classifier | None = None
) -> tuple[Alert, bool]:
    """Return the open alert of the request's lineage, creating it when warranted.

    The boolean is True only when a new row was inserted.
    """

    if not request.has_origin:
        return _insert(db, request, resolve_severity(request, classifier))

    lineage = find_lineage(db, request)
    if lineage:
        newest = lineage[0]
        if not newest.acknowledged:
            return newest, False
        if is_recurring(request.origin_event_type):
            for alert in lineage:
                if not alert.acknowledged and alert.alert_date == request.alert_date:
                    return alert, False

    return _insert(db, request, resolve_severity(request, classifier))


def create_alert_if_not_exists(
    db: Session, request: AlertRequest, *, classifier: Classifier | None = None
) -> Alert:
    alert, _created = get_or_create_alert(db, request, classifier=classifier)
    return alert


def get_alert(db: Session, alert_id: int) -> Alert:
    try:
        alert = db.get(Alert, alert_id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise AlertPersistenceError("Failed to load alert.") from exc
    if alert is None:
        raise AlertNotFoundError(alert_id)
    return alert


def set_acknowledged(db: Session, alert_id: int, acknowledged: bool) -> Alert:
    """Toggle the acknowledgment flag.

    Acknowledging frees the lineage slot. Un-acknowledging reclaims it only if
    no newer alert has taken it in the meantime.
    """

    alert = get_alert(db, alert_id)
    if alert.acknowledged == acknowledged:
        return alert

    alert.acknowledged = acknowledged
    alert.dedup_slot = None if acknowledged else dedup_slot_for(alert.origin_event_type, alert.alert_date)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(
            "Alert re-opened while a newer alert holds its slot",
            extra={"alert_id": alert_id},
        )
        alert = get_alert(db, alert_id)
        alert.acknowledged = False
        alert.dedup_slot = None
        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise AlertPersistenceError("Failed to update alert.") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise AlertPersistenceError("Failed to update alert.") from exc
    db.refresh(alert)
    logger.info("Alert acknowledgment updated", extra={"alert_id": alert_id, "acknowledged": acknowledged})
    return alert


def delete_alert(db: Session, alert_id: int) -> None:
    alert = get_alert(db, alert_id)
    try:
        db.delete(alert)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise AlertPersistenceError("Failed to delete alert.") from exc
    logger.info("Alert deleted", extra={"alert_id": alert_id})


def _severity_rank():
    return case(
        (Alert.severity == AlertSeverity.HIGH, 0),
        (Alert.severity == AlertSeverity.MEDIUM, 1),
        else_=2,
    )


def find_alerts(
    db: Session,
    filters: AlertFilters,
    *,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
    today: date | None = None,
) -> tuple[Sequence[Alert], PageMeta]:
    """Filtered page of alerts, soonest first and most severe first within a day."""

    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_LIMIT)

    conditions = []
    if filters.domains:
        conditions.append(Alert.domain.in_(filters.domains))
    if filters.severity is not None:
        conditions.append(Alert.severity == filters.severity)
    if filters.acknowledged is not None:
        conditions.append(Alert.acknowledged.is_(filters.acknowledged))
    if filters.due_within_days is not None:
        start = today or current_date()
        conditions.append(Alert.alert_date.between(start, start + timedelta(days=filters.due_within_days)))
    if filters.property_id is not None:
        conditions.append(Alert.property_id == filters.property_id)

    count_stmt = select(func.count(Alert.id)).where(*conditions)
    stmt = (
        select(Alert)
        .where(*conditions)
        .order_by(Alert.alert_date.asc(), _severity_rank(), Alert.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    try:
        total = db.scalar(count_stmt) or 0
        rows = db.scalars(stmt).all()
    except SQLAlchemyError as exc:
        db.rollback()
        raise AlertPersistenceError("Failed to query alerts.") from exc
    return rows, PageMeta.build(page=page, limit=limit, total=total)


__all__ = [
    "Classifier",
    "resolve_severity",
    "create_alert",
    "create_alert_if_not_exists",
    "get_or_create_alert",
    "find_lineage",
    "find_alerts",
    "get_alert",
    "set_acknowledged",
    "delete_alert",
]
