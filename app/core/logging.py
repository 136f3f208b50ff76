"""JSON logging for the herd alert engine."""
from __future__ import annotations

import logging
from typing import Any, Optional

from pythonjsonlogger import jsonlogger

# Third-party loggers that are noisy at INFO (APScheduler logs every job submission).
QUIET_LOGGERS = ("apscheduler", "httpx", "openai")


class AlertJsonFormatter(jsonlogger.JsonFormatter):
    """Stamp every record with the service name and environment."""

    def __init__(self, *args: Any, service: str, env: str, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service = service
        self.env = env

    def add_fields(self, log_record, record, message_dict) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.setdefault("service", self.service)
        log_record.setdefault("env", self.env)


def setup_logging(level: str = "INFO", *, service: str = "herd-alerts", env: str = "dev") -> None:
    """Configure root logging with a JSON formatter."""

    root_logger = logging.getLogger()
    # Remove existing handlers to avoid duplicate logs when reloading.
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    root_logger.setLevel(level.upper())

    handler = logging.StreamHandler()
    handler.setFormatter(
        AlertJsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s", service=service, env=env)
    )
    root_logger.addHandler(handler)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level.upper())
    return logger


__all__ = ["AlertJsonFormatter", "setup_logging", "get_logger"]
