"""Sanitary alerts: treatment follow-ups and scheduled vaccinations."""
from __future__ import annotations

from datetime import timedelta

from app.gateways import TreatmentRecord, VaccinationRecord
from app.models.alert import AlertDomain, OriginEventType
from app.schemas.alert import AlertRequest
from app.utils.time import format_br

from .base import AlertEvaluator
from .constants import NOT_INFORMED, TREATMENT_RETURN_LOOKAHEAD_DAYS, VACCINATION_LOOKAHEAD_DAYS


class SanitaryEvaluator(AlertEvaluator):
    domain = AlertDomain.SANITARY
    rules = ("check_treatment_returns", "check_vaccinations")

    def check_treatment_returns(self, property_id: int | None = None) -> int:
        """Treatments whose follow-up visit falls within the next 15 days."""

        treatments = self.gateways.health.treatments_with_return_due(
            property_id, self.today, self.today + timedelta(days=TREATMENT_RETURN_LOOKAHEAD_DAYS)
        )
        return self.process(
            "treatment_returns",
            property_id,
            treatments,
            lambda treatment: self._treatment_return_request(treatment, property_id),
        )

    def _treatment_return_request(
        self, treatment: TreatmentRecord, property_id: int | None
    ) -> AlertRequest | None:
        subject = self.subject(treatment.animal_id, property_id)
        if subject is None or treatment.return_date is None:
            return None
        when = format_br(treatment.return_date)
        diagnosis = treatment.diagnosis or NOT_INFORMED
        intervention = treatment.intervention_type or NOT_INFORMED
        return self.request_for(
            subject,
            reason=f"Follow-up visit scheduled for {when} - {treatment.intervention_type or 'Intervention'}.",
            note=f"Treatment: {diagnosis}. Separate the animal for veterinary re-evaluation.",
            clinical_narrative=(
                f"Buffalo {subject.animal.name} has a follow-up visit scheduled for {when} for the "
                f"treatment of {treatment.diagnosis or 'an unspecified condition'}. Intervention type: "
                f"{intervention}. The animal must be separated for veterinary re-evaluation and the "
                "progress of the clinical condition checked."
            ),
            alert_date=treatment.return_date,
            origin_event_type=OriginEventType.TREATMENT_RETURN,
            origin_event_id=str(treatment.id),
        )

    def check_vaccinations(self, property_id: int | None = None) -> int:
        """Vaccinations scheduled within the next 30 days."""

        vaccinations = self.gateways.health.vaccinations_due(
            property_id, self.today, self.today + timedelta(days=VACCINATION_LOOKAHEAD_DAYS)
        )
        return self.process(
            "vaccinations",
            property_id,
            vaccinations,
            lambda vaccination: self._vaccination_request(vaccination, property_id),
        )

    def _vaccination_request(
        self, vaccination: VaccinationRecord, property_id: int | None
    ) -> AlertRequest | None:
        subject = self.subject(vaccination.animal_id, property_id)
        if subject is None:
            return None
        when = format_br(vaccination.scheduled_date)
        vaccine = vaccination.vaccine_type or NOT_INFORMED
        return self.request_for(
            subject,
            reason=f"Vaccination of {subject.animal.name} scheduled for {when}.",
            note=f"Vaccine: {vaccine}. Prepare syringes and check the vaccine stock.",
            clinical_narrative=(
                f"Vaccination scheduled for buffalo {subject.animal.name} on {when}. Vaccine: {vaccine}. "
                "Syringes, vaccine stock and storage conditions must be checked, following the herd's "
                "sanitary calendar."
            ),
            alert_date=vaccination.scheduled_date,
            origin_event_type=OriginEventType.VACCINATION,
            origin_event_id=str(vaccination.id),
        )
