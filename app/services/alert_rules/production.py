"""Production alerts: significant drops in milk yield."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta

from app.gateways import YieldRecord
from app.models.alert import AlertDomain, AlertSeverity, OriginEventType
from app.schemas.alert import AlertRequest

from .base import AlertEvaluator
from .constants import (
    MILK_DROP_ALERT_PERCENT,
    MILK_DROP_CRITICAL_PERCENT,
    MILK_HISTORICAL_WINDOW_DAYS,
    MILK_RECENT_WINDOW_DAYS,
    MIN_HISTORICAL_MILK_SAMPLES,
    MIN_RECENT_MILK_SAMPLES,
)


@dataclass(frozen=True)
class MilkDropAnalysis:
    animal_id: int
    recent_mean: float
    historical_mean: float
    recent_samples: int
    historical_samples: int

    @property
    def drop_percent(self) -> float:
        return (self.historical_mean - self.recent_mean) / self.historical_mean * 100

    @property
    def severity(self) -> AlertSeverity:
        if self.drop_percent >= MILK_DROP_CRITICAL_PERCENT:
            return AlertSeverity.HIGH
        return AlertSeverity.MEDIUM


def analyse_milk_drop(animal_id: int, records: list[YieldRecord], today: date) -> MilkDropAnalysis | None:
    """Compare the trailing 7-day mean with the 30 days before it.

    Returns None when either window lacks samples, the historical mean is
    zero, or the drop is under the alert threshold.
    """

    recent_start = today - timedelta(days=MILK_RECENT_WINDOW_DAYS)
    historical_start = recent_start - timedelta(days=MILK_HISTORICAL_WINDOW_DAYS)
    recent = [r.quantity for r in records if recent_start <= r.milked_on <= today]
    historical = [r.quantity for r in records if historical_start <= r.milked_on < recent_start]
    if len(recent) < MIN_RECENT_MILK_SAMPLES or len(historical) < MIN_HISTORICAL_MILK_SAMPLES:
        return None
    historical_mean = sum(historical) / len(historical)
    if historical_mean <= 0:
        return None
    analysis = MilkDropAnalysis(
        animal_id=animal_id,
        recent_mean=sum(recent) / len(recent),
        historical_mean=historical_mean,
        recent_samples=len(recent),
        historical_samples=len(historical),
    )
    if analysis.drop_percent < MILK_DROP_ALERT_PERCENT:
        return None
    return analysis


class ProductionEvaluator(AlertEvaluator):
    domain = AlertDomain.PRODUCTION
    rules = ("check_milk_drop",)

    def check_milk_drop(self, property_id: int | None = None) -> int:
        """Animals whose recent milk yield dropped 20% or more."""

        records = self.gateways.production.recent_yields(
            property_id, MILK_RECENT_WINDOW_DAYS + MILK_HISTORICAL_WINDOW_DAYS, today=self.today
        )
        by_animal: dict[int, list[YieldRecord]] = defaultdict(list)
        for record in records:
            by_animal[record.animal_id].append(record)

        drops = [
            analysis
            for animal_id, animal_records in by_animal.items()
            if (analysis := analyse_milk_drop(animal_id, animal_records, self.today)) is not None
        ]
        return self.process("milk_drop", property_id, drops, lambda a: self._milk_drop_request(a, property_id))

    def _milk_drop_request(self, analysis: MilkDropAnalysis, property_id: int | None) -> AlertRequest | None:
        subject = self.subject(analysis.animal_id, property_id)
        if subject is None:
            return None
        return self.request_for(
            subject,
            reason=f"Milk yield of {subject.animal.name} dropped {analysis.drop_percent:.1f}%.",
            note=(
                f"Mean of the last {MILK_RECENT_WINDOW_DAYS} days: {analysis.recent_mean:.2f}L. "
                f"Mean of the previous {MILK_HISTORICAL_WINDOW_DAYS} days: {analysis.historical_mean:.2f}L. "
                "Check health, feeding and handling conditions."
            ),
            severity=analysis.severity,
            alert_date=self.today,
            origin_event_type=OriginEventType.MILK_DROP,
            origin_event_id=str(analysis.animal_id),
        )
