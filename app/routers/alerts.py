"""Alerts endpoints."""
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.alert import Alert, AlertDomain, AlertSeverity
from app.schemas.alert import AlertFilters, AlertPage, AlertRead, AlertRequest, EvaluationSummary
from app.services import alerts as alerts_service
from app.services.alert_rules import evaluate_property

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.get("", response_model=AlertPage, status_code=status.HTTP_200_OK)
def list_alerts(
    domains: list[AlertDomain] | None = Query(default=None, alias="domain"),
    severity: AlertSeverity | None = Query(default=None),
    acknowledged: bool | None = Query(default=None),
    due_within_days: int | None = Query(default=None, ge=0),
    property_id: int | None = Query(default=None, gt=0),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=alerts_service.DEFAULT_PAGE_LIMIT, ge=1, le=alerts_service.MAX_PAGE_LIMIT),
    db: Session = Depends(get_db),
) -> AlertPage:
    filters = AlertFilters(
        domains=domains or [],
        severity=severity,
        acknowledged=acknowledged,
        due_within_days=due_within_days,
        property_id=property_id,
    )
    rows, meta = alerts_service.find_alerts(db, filters, page=page, limit=limit)
    return AlertPage(data=[AlertRead.model_validate(row) for row in rows], meta=meta)


@router.post("", response_model=AlertRead, status_code=status.HTTP_201_CREATED)
def create_alert(payload: AlertRequest, db: Session = Depends(get_db)) -> Alert:
    return alerts_service.create_alert_if_not_exists(db, payload)


@router.post(
    "/evaluate/{property_id}",
    response_model=EvaluationSummary,
    status_code=status.HTTP_200_OK,
)
def evaluate(
    property_id: int,
    domains: list[AlertDomain] | None = Query(default=None, alias="domain"),
    db: Session = Depends(get_db),
) -> EvaluationSummary:
    results = evaluate_property(db, property_id, domains or None)
    total = sum(sum(counts.values()) for counts in results.values())
    return EvaluationSummary(property_id=property_id, total=total, domains=results)


@router.get("/{alert_id}", response_model=AlertRead)
def get_alert(alert_id: int, db: Session = Depends(get_db)) -> Alert:
    return alerts_service.get_alert(db, alert_id)


@router.patch("/{alert_id}/acknowledge", response_model=AlertRead)
def acknowledge_alert(
    alert_id: int,
    acknowledged: bool = Query(default=True, alias="status"),
    db: Session = Depends(get_db),
) -> Alert:
    return alerts_service.set_acknowledged(db, alert_id, acknowledged)


@router.delete("/{alert_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_alert(alert_id: int, db: Session = Depends(get_db)) -> Response:
    alerts_service.delete_alert(db, alert_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
