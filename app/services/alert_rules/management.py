"""Management alerts: pregnant females still being milked close to birth."""
from __future__ import annotations

from app.gateways import BreedingRecord
from app.models.alert import AlertDomain, AlertSeverity, OriginEventType
from app.schemas.alert import AlertRequest
from app.utils.time import days_between, format_br

from .base import AlertEvaluator
from .constants import DRY_OFF_CRITICAL_DAYS, DRY_OFF_WINDOW_DAYS, RECENT_MILKING_DAYS
from .reproduction import predicted_birth


class ManagementEvaluator(AlertEvaluator):
    domain = AlertDomain.MANAGEMENT
    rules = ("check_pending_dry_off",)

    def check_pending_dry_off(self, property_id: int | None = None) -> int:
        """Pregnancies due within 60 days whose female was milked in the last 7 days."""

        due = [
            breeding
            for breeding in self.gateways.reproduction.confirmed_pregnancies(property_id)
            if 1 <= days_between(self.today, predicted_birth(breeding)) <= DRY_OFF_WINDOW_DAYS
        ]
        return self.process("pending_dry_off", property_id, due, lambda b: self._dry_off_request(b, property_id))

    def _dry_off_request(self, breeding: BreedingRecord, property_id: int | None) -> AlertRequest | None:
        milkings = self.gateways.production.recent_milking_records(
            breeding.animal_id, RECENT_MILKING_DAYS, today=self.today
        )
        if not milkings:
            return None
        subject = self.subject(breeding.animal_id, property_id)
        if subject is None:
            return None
        birth = predicted_birth(breeding)
        days_left = days_between(self.today, birth)
        severity = AlertSeverity.HIGH if days_left <= DRY_OFF_CRITICAL_DAYS else AlertSeverity.MEDIUM
        name = subject.animal.name
        return self.request_for(
            subject,
            reason=f"Pregnant female {name} must be dried off. Birth predicted in {days_left} days ({format_br(birth)}).",
            note="Dry off 60 days before birth. Reduce milking gradually to prepare the animal.",
            clinical_narrative=(
                f"Buffalo {name} is pregnant with birth predicted for {format_br(birth)} ({days_left} days "
                "from now) but is still being milked. Drying off lets the mammary gland recover before "
                "the next lactation and should happen 45-60 days before birth."
            ),
            severity=severity,
            alert_date=self.today,
            origin_event_type=OriginEventType.PENDING_DRY_OFF,
            origin_event_id=str(breeding.id),
        )
