"""Domain exceptions and helpers for standardized error responses."""
from typing import Any


def error_response(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """Return a standardized error payload."""

    payload: dict[str, Any] = {"error": {"code": code, "message": message}}
    if details:
        payload["error"]["details"] = details
    return payload


class AlertEngineError(Exception):
    """Base class for alert engine failures; ``code`` is exposed in API payloads."""

    code = "ALERT_ENGINE_ERROR"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_payload(self) -> dict[str, Any]:
        return error_response(self.code, self.message, self.details or None)


class AlertNotFoundError(AlertEngineError):
    code = "ALERT_NOT_FOUND"

    def __init__(self, alert_id: int) -> None:
        super().__init__(f"Alert {alert_id} not found.", details={"alert_id": alert_id})
        self.alert_id = alert_id


class AlertPersistenceError(AlertEngineError):
    """The alert store could not read or write a row."""

    code = "ALERT_PERSISTENCE_ERROR"


class UpstreamDataError(AlertEngineError):
    """A herd data gateway query failed."""

    code = "UPSTREAM_DATA_ERROR"


class ClassificationUnavailable(AlertEngineError):
    """The priority classifier could not produce a severity."""

    code = "CLASSIFICATION_UNAVAILABLE"


__all__ = [
    "error_response",
    "AlertEngineError",
    "AlertNotFoundError",
    "AlertPersistenceError",
    "UpstreamDataError",
    "ClassificationUnavailable",
]
