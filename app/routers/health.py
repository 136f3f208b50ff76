"""Health check endpoint."""
from __future__ import annotations

from fastapi import APIRouter, Request

from app.config import get_settings
from app.db import ping_database
from app.services.priority_classifier import classifier_enabled, get_classifier_stats

router = APIRouter(prefix="/health", tags=["health"])


def _db_status() -> str:
    return "ok" if ping_database() else "error"


def _scheduler_running(request: Request) -> bool:
    scheduler = getattr(request.app.state, "scheduler", None)
    return bool(scheduler is not None and scheduler.running)


@router.get("", summary="Health check")
def healthcheck(request: Request) -> dict[str, object]:
    """Return a simple health payload with scheduler and classifier telemetry."""

    settings = get_settings()
    db_status = _db_status()
    db_ok = db_status == "ok"
    return {
        "status": "ok" if db_ok else "degraded",
        "db_ok": db_ok,
        "db_status": db_status,
        "scheduler_config_enabled": bool(settings.SCHEDULER_ENABLED),
        "scheduler_running": _scheduler_running(request),
        "alert_jobs": list(getattr(request.app.state, "alert_job_ids", [])),
        "classifier_enabled": classifier_enabled(),
        "classifier_stats": get_classifier_stats(),
    }
