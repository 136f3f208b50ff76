"""Prometheus metrics for scheduled alert runs."""
from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Protocol

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

if TYPE_CHECKING:
    from app.services.alert_scheduler import AlertRunReport


class AlertMetricsSink(Protocol):
    def observe_run(self, report: "AlertRunReport") -> None: ...


class PrometheusAlertMetrics:
    """Records one observation per rule run into the given registry."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        self.alerts_created = Counter(
            "herd_alerts_created_total",
            "Alerts newly created by scheduled rule runs",
            ["rule"],
            registry=registry,
        )
        self.property_failures = Counter(
            "herd_alert_property_failures_total",
            "Properties whose evaluation failed or timed out",
            ["rule"],
            registry=registry,
        )
        self.run_duration = Histogram(
            "herd_alert_run_duration_seconds",
            "Wall time of a scheduled rule run across all properties",
            ["rule"],
            registry=registry,
        )

    def observe_run(self, report: "AlertRunReport") -> None:
        self.alerts_created.labels(rule=report.rule).inc(report.total_created)
        self.property_failures.labels(rule=report.rule).inc(len(report.failures))
        self.run_duration.labels(rule=report.rule).observe(report.elapsed_seconds)


@lru_cache
def get_default_metrics() -> PrometheusAlertMetrics:
    """Process-wide sink bound to the default registry (served on /metrics)."""

    return PrometheusAlertMetrics()


__all__ = ["AlertMetricsSink", "PrometheusAlertMetrics", "get_default_metrics"]
