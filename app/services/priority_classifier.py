"""Priority classifier backed by the OpenAI Responses API.

Given the free-text narrative of an alert, the model answers with one of
LOW / MEDIUM / HIGH. Callers treat every failure as
``ClassificationUnavailable`` and fall back to MEDIUM themselves.

The circuit breaker is process-wide. It opens after repeated failures and,
once the recovery window has passed, lets a single trial call through
(half-open); that call closes it again or restarts the window.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from openai import OpenAI

from app.config import Settings, get_settings
from app.models.alert import AlertSeverity
from app.utils.errors import ClassificationUnavailable

# Simple in-memory circuit breaker + metrics
_FAILURE_COUNT: int = 0
_FAILURE_THRESHOLD: int = 5
_CIRCUIT_OPEN: bool = False
_OPENED_AT: float | None = None

_CALLS: int = 0
_ERRORS: int = 0

_clock = time.monotonic

logger = logging.getLogger(__name__)

PRIORITY_CLASSIFIER_PROMPT = """
You triage alerts for a buffalo herd management platform.
You receive the description of a condition detected on a farm (reproduction,
sanitary, production, management or clinical) and decide how urgently a
farmer or veterinarian must act.

Answer with EXACTLY ONE WORD and nothing else:
- HIGH   => risk to the animal's life or health, or loss if not handled within days.
- MEDIUM => needs planning within the coming weeks.
- LOW    => informational, routine follow-up.
""".strip()

_ANSWER_ALIASES = {
    "LOW": AlertSeverity.LOW,
    "BAIXA": AlertSeverity.LOW,
    "MEDIUM": AlertSeverity.MEDIUM,
    "MEDIA": AlertSeverity.MEDIUM,
    "HIGH": AlertSeverity.HIGH,
    "ALTA": AlertSeverity.HIGH,
}


@dataclass(frozen=True)
class ClassifierConfig:
    enabled: bool
    model: str
    timeout_seconds: int
    recovery_seconds: int
    api_key: str | None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClassifierConfig":
        return cls(
            enabled=bool(settings.PRIORITY_CLASSIFIER_ENABLED),
            model=settings.PRIORITY_CLASSIFIER_MODEL,
            timeout_seconds=int(settings.PRIORITY_CLASSIFIER_TIMEOUT_SECONDS),
            recovery_seconds=int(settings.PRIORITY_CLASSIFIER_RECOVERY_SECONDS),
            api_key=settings.OPENAI_API_KEY,
        )


def classifier_config() -> ClassifierConfig:
    """Snapshot of the classifier settings, read on every call."""

    return ClassifierConfig.from_settings(get_settings())


def classifier_enabled() -> bool:
    return classifier_config().enabled


def _record_success() -> None:
    global _FAILURE_COUNT, _CIRCUIT_OPEN, _OPENED_AT
    if _CIRCUIT_OPEN:
        logger.info("Priority classifier circuit closed")
    _FAILURE_COUNT = 0
    _CIRCUIT_OPEN = False
    _OPENED_AT = None


def _record_failure() -> None:
    global _FAILURE_COUNT, _CIRCUIT_OPEN, _OPENED_AT, _ERRORS
    _FAILURE_COUNT += 1
    _ERRORS += 1
    if _FAILURE_COUNT >= _FAILURE_THRESHOLD:
        if not _CIRCUIT_OPEN:
            logger.warning("Priority classifier circuit opened", extra={"failure_count": _FAILURE_COUNT})
        _CIRCUIT_OPEN = True
        _OPENED_AT = _clock()


def _circuit_state(recovery_seconds: int) -> str:
    if not _CIRCUIT_OPEN:
        return "closed"
    if _OPENED_AT is not None and _clock() - _OPENED_AT >= recovery_seconds:
        return "half_open"
    return "open"


def get_classifier_stats() -> dict[str, int]:
    """Expose basic counters for health/observability."""

    return {
        "calls": _CALLS,
        "errors": _ERRORS,
        "failure_count": _FAILURE_COUNT,
        "circuit_open": int(_CIRCUIT_OPEN),
    }


def parse_severity(raw_text: str | None) -> AlertSeverity:
    """Map the model's answer to a severity; raises ValueError when it is not one."""

    words = (raw_text or "").replace(".", " ").replace('"', " ").split()
    if not words:
        raise ValueError("classifier returned no text output")
    try:
        return _ANSWER_ALIASES[words[0].upper()]
    except KeyError:
        raise ValueError(f"unexpected classifier answer: {raw_text!r}") from None


def _classify_once(client: Any, model: str, text: str, timeout_seconds: int) -> AlertSeverity:
    messages = [
        {"role": "system", "content": [{"type": "input_text", "text": PRIORITY_CLASSIFIER_PROMPT}]},
        {"role": "user", "content": [{"type": "input_text", "text": text}]},
    ]
    resp = client.responses.create(model=model, input=messages, timeout=timeout_seconds)
    return parse_severity(getattr(resp, "output_text", None))


def classify_priority(text: str, *, client: Any | None = None) -> AlertSeverity:
    """Classify ``text`` into a severity.

    Raises ``ClassificationUnavailable`` when the feature is disabled, no API
    key is configured, the circuit breaker is open or every attempt fails.
    A half-open circuit gets a single attempt.
    """

    global _CALLS

    start = time.monotonic()
    status = "success"
    try:
        config = classifier_config()
        circuit = _circuit_state(config.recovery_seconds)
        if circuit == "open":
            status = "circuit_breaker_open"
            raise ClassificationUnavailable("Priority classifier circuit breaker is open.")

        if not config.enabled:
            status = "disabled"
            raise ClassificationUnavailable("Priority classifier is disabled.")

        if client is None and not config.api_key:
            status = "missing_api_key"
            raise ClassificationUnavailable("OPENAI_API_KEY is not set.")

        _CALLS += 1
        ai_client = client or OpenAI(api_key=config.api_key)
        attempts = 1 if circuit == "half_open" else 2
        last_exc: Exception | None = None
        for _attempt in range(attempts):
            try:
                severity = _classify_once(ai_client, config.model, text, config.timeout_seconds)
                _record_success()
                return severity
            except Exception as exc:  # noqa: BLE001
                last_exc = exc
                _record_failure()

        status = "error"
        raise ClassificationUnavailable(
            "Priority classifier failed after retries.", details={"error": str(last_exc)}
        ) from last_exc
    finally:
        logger.info(
            "Priority classification finished",
            extra={"status": status, "duration_ms": round((time.monotonic() - start) * 1000, 1)},
        )


__all__ = [
    "ClassifierConfig",
    "PRIORITY_CLASSIFIER_PROMPT",
    "classifier_config",
    "classifier_enabled",
    "classify_priority",
    "get_classifier_stats",
    "parse_severity",
]
