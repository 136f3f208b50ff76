from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import db
import app.models  # registers herd and alert tables
from app.config import AppInfo, Settings, get_settings
from app.core.logging import get_logger, setup_logging
from app.routers import get_api_router
from app.services.alert_metrics import get_default_metrics
from app.services.alert_scheduler import register_alert_jobs
from app.utils.errors import (
    AlertEngineError,
    AlertNotFoundError,
    UpstreamDataError,
    error_response,
)

logger = get_logger(__name__)
ALLOWED_CREATE_ENV = {"dev", "local", "test"}

# Checked in order; first match wins, anything else is a 500.
ERROR_STATUS: tuple[tuple[type[AlertEngineError], int], ...] = (
    (AlertNotFoundError, 404),
    (UpstreamDataError, 502),
)


def _current_settings() -> Settings:
    return get_settings()


def _configure_middlewares(fastapi_app: FastAPI) -> None:
    runtime_settings = _current_settings()
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=runtime_settings.CORS_ALLOW_ORIGINS,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    if runtime_settings.PROMETHEUS_ENABLED:
        # Serves the default registry, which also holds the alert run metrics.
        from starlette_exporter import PrometheusMiddleware, handle_metrics

        fastapi_app.add_middleware(PrometheusMiddleware, app_name=AppInfo().name)
        fastapi_app.add_route("/metrics", handle_metrics)

    if runtime_settings.SENTRY_DSN:
        import sentry_sdk

        sentry_sdk.init(
            dsn=runtime_settings.SENTRY_DSN,
            environment=runtime_settings.app_env,
            traces_sample_rate=0.2,
        )


def _prepare_schema(settings: Settings) -> None:
    if settings.ALLOW_DB_CREATE_ALL and settings.app_env.lower() in ALLOWED_CREATE_ENV:
        logger.warning("Creating tables from ORM metadata", extra={"env": settings.app_env})
        db.create_all()
    else:
        logger.info(
            "Skipping create_all(); run `alembic upgrade head` to manage the schema",
            extra={"env": settings.app_env, "allow_create_all": settings.ALLOW_DB_CREATE_ALL},
        )


def _start_alert_scheduler(fastapi_app: FastAPI, settings: Settings) -> None:
    # Enable SCHEDULER_ENABLED on one replica only; dedup tolerates overlap but wastes work.
    fastapi_app.state.scheduler = None
    fastapi_app.state.alert_job_ids = []
    if not settings.SCHEDULER_ENABLED:
        return
    scheduler = AsyncIOScheduler(timezone=settings.SCHEDULER_TIMEZONE)
    fastapi_app.state.alert_job_ids = register_alert_jobs(scheduler, metrics=get_default_metrics())
    scheduler.start()
    fastapi_app.state.scheduler = scheduler
    logger.info(
        "Alert scheduler started",
        extra={"jobs": fastapi_app.state.alert_job_ids, "timezone": settings.SCHEDULER_TIMEZONE},
    )


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    settings = _current_settings()
    setup_logging(settings.LOG_LEVEL, service=app_info.name, env=settings.app_env)
    logger.info("Application startup", extra={"database": db.describe_database()})

    db.init_engine()
    _prepare_schema(settings)
    _start_alert_scheduler(fastapi_app, settings)
    try:
        yield
    finally:
        scheduler = fastapi_app.state.scheduler
        if scheduler is not None:
            scheduler.shutdown(wait=False)
            fastapi_app.state.scheduler = None
        db.close_engine()
        logger.info("Application shutdown", extra={"env": settings.app_env})


app_info = AppInfo()

app = FastAPI(title=app_info.name, version=app_info.version, lifespan=lifespan)

_configure_middlewares(app)
app.include_router(get_api_router())


def _status_for(exc: AlertEngineError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


@app.exception_handler(AlertEngineError)
async def alert_engine_exception_handler(request: Request, exc: AlertEngineError) -> JSONResponse:
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error("Alert engine error", extra={"code": exc.code, "path": request.url.path}, exc_info=exc)
    return JSONResponse(status_code=status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    payload = error_response(
        "VALIDATION_ERROR",
        "Request validation failed.",
        {"errors": jsonable_encoder(exc.errors())},
    )
    return JSONResponse(status_code=422, content=payload)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception", exc_info=exc)
    payload = error_response("INTERNAL_SERVER_ERROR", "An unexpected error occurred.")
    return JSONResponse(status_code=500, content=payload)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict) and "error" in detail:
        content: dict[str, Any] = detail
    else:
        content = error_response("HTTP_ERROR", str(detail))
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


__all__ = ["app"]
