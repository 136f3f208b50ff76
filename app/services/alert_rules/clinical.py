"""Clinical alerts: early signs from repeated treatments or poor weight gain."""
from __future__ import annotations

from app.models.alert import AlertDomain, OriginEventType
from app.schemas.alert import AlertRequest
from app.utils.time import age_in_months

from .base import AlertEvaluator
from .constants import CLINICAL_WINDOW_DAYS, MIN_TREATMENTS_FOR_SIGNS, MIN_WEIGHINGS, MIN_WEIGHT_GAIN_KG


class ClinicalEvaluator(AlertEvaluator):
    domain = AlertDomain.CLINICAL
    rules = ("check_early_clinical_signs",)

    def has_repeated_treatments(self, animal_id: int) -> bool:
        count = self.gateways.health.recent_treatment_count(animal_id, CLINICAL_WINDOW_DAYS, today=self.today)
        return count >= MIN_TREATMENTS_FOR_SIGNS

    def has_insufficient_gain(self, animal_id: int) -> bool:
        weighings = self.gateways.production.recent_weighings(animal_id, CLINICAL_WINDOW_DAYS, today=self.today)
        if len(weighings) < MIN_WEIGHINGS:
            return False
        return weighings[-1].weight - weighings[0].weight < MIN_WEIGHT_GAIN_KG

    def check_early_clinical_signs(self, property_id: int | None = None) -> int:
        animal_ids = self.gateways.herd.animal_ids(property_id)
        return self.process(
            "early_clinical_signs", property_id, animal_ids, lambda a: self._clinical_request(a, property_id)
        )

    def _clinical_request(self, animal_id: int, property_id: int | None) -> AlertRequest | None:
        repeated = self.has_repeated_treatments(animal_id)
        low_gain = self.has_insufficient_gain(animal_id)
        if not (repeated or low_gain):
            return None
        subject = self.subject(animal_id, property_id)
        if subject is None:
            return None

        signs: list[str] = []
        details: list[str] = []
        if repeated:
            signs.append("multiple recent treatments")
            details.append(
                "received several treatments in a short period, suggesting low immune response or a chronic condition"
            )
        if low_gain:
            signs.append("insufficient weight gain")
            details.append(
                f"gained less than {MIN_WEIGHT_GAIN_KG:g}kg over the last {CLINICAL_WINDOW_DAYS} days, "
                "pointing to a nutritional deficiency or health problem"
            )

        name = subject.animal.name
        age = age_in_months(subject.animal.birth_date, self.today)
        age_text = f"{age} months old" if age is not None else "of unknown age"
        return self.request_for(
            subject,
            reason=f"Early clinical signs in {name}: {', '.join(signs)}.",
            note=(
                f"Age: {age if age is not None else '?'} months. Assess body condition, parasites, feed "
                "quality and general handling. Consider a detailed veterinary examination."
            ),
            clinical_narrative=(
                f"Buffalo {name}, {age_text}, {' and '.join(details)}. These early signs call for a "
                "veterinary assessment before they develop into a more serious condition."
            ),
            alert_date=self.today,
            origin_event_type=OriginEventType.EARLY_CLINICAL_SIGNS,
            origin_event_id=str(animal_id),
        )
