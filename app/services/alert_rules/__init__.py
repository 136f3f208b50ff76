"""Per-domain alert rules and the registry the scheduler runs them from."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from app.gateways import Gateways
from app.models.alert import AlertDomain
from app.services.alerts import Classifier

from .base import AlertEvaluator
from .clinical import ClinicalEvaluator
from .management import ManagementEvaluator
from .production import ProductionEvaluator
from .reproduction import ReproductionEvaluator
from .sanitary import SanitaryEvaluator

EVALUATORS: dict[AlertDomain, type[AlertEvaluator]] = {
    AlertDomain.SANITARY: SanitaryEvaluator,
    AlertDomain.REPRODUCTION: ReproductionEvaluator,
    AlertDomain.PRODUCTION: ProductionEvaluator,
    AlertDomain.MANAGEMENT: ManagementEvaluator,
    AlertDomain.CLINICAL: ClinicalEvaluator,
}


@dataclass(frozen=True)
class AlertRule:
    """A single schedulable rule: one evaluator method."""

    name: str
    domain: AlertDomain
    method: str

    def run(
        self,
        db: Session,
        property_id: int | None,
        *,
        gateways: Gateways | None = None,
        classifier: Classifier | None = None,
        today: date | None = None,
    ) -> int:
        evaluator = EVALUATORS[self.domain](db, gateways=gateways, classifier=classifier, today=today)
        return getattr(evaluator, self.method)(property_id)


RULES: dict[str, AlertRule] = {
    rule.name: rule
    for rule in (
        AlertRule("treatment_returns", AlertDomain.SANITARY, "check_treatment_returns"),
        AlertRule("predicted_births", AlertDomain.REPRODUCTION, "check_predicted_births"),
        AlertRule("breedings_without_diagnosis", AlertDomain.REPRODUCTION, "check_breedings_without_diagnosis"),
        AlertRule("empty_females", AlertDomain.REPRODUCTION, "check_empty_females"),
        AlertRule("vaccinations", AlertDomain.SANITARY, "check_vaccinations"),
        AlertRule("milk_drop", AlertDomain.PRODUCTION, "check_milk_drop"),
        AlertRule("pending_dry_off", AlertDomain.MANAGEMENT, "check_pending_dry_off"),
        AlertRule("early_clinical_signs", AlertDomain.CLINICAL, "check_early_clinical_signs"),
    )
}


def evaluate_property(
    db: Session,
    property_id: int,
    domains: Iterable[AlertDomain] | None = None,
    *,
    classifier: Classifier | None = None,
    today: date | None = None,
) -> dict[AlertDomain, dict[str, int]]:
    """Run every rule of the selected domains (all by default) for one property."""

    selected = list(dict.fromkeys(domains)) if domains else list(EVALUATORS)
    results: dict[AlertDomain, dict[str, int]] = {}
    for domain in selected:
        evaluator = EVALUATORS[domain](db, classifier=classifier, today=today)
        results[domain] = evaluator.breakdown(property_id)
    return results


__all__ = [
    "AlertEvaluator",
    "AlertRule",
    "ClinicalEvaluator",
    "EVALUATORS",
    "ManagementEvaluator",
    "ProductionEvaluator",
    "RULES",
    "ReproductionEvaluator",
    "SanitaryEvaluator",
    "evaluate_property",
]
