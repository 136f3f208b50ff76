"""Read-only access to herd, health, reproduction and production records."""
from .protocols import HealthGateway, HerdGateway, ProductionGateway, ReproductionGateway
from .records import (
    AnimalRecord,
    BreedingRecord,
    PropertyRecord,
    TreatmentRecord,
    VaccinationRecord,
    WeighingRecord,
    YieldRecord,
)
from .sql import (
    Gateways,
    SqlHealthGateway,
    SqlHerdGateway,
    SqlProductionGateway,
    SqlReproductionGateway,
)

__all__ = [
    "AnimalRecord",
    "BreedingRecord",
    "Gateways",
    "HealthGateway",
    "HerdGateway",
    "ProductionGateway",
    "PropertyRecord",
    "ReproductionGateway",
    "SqlHealthGateway",
    "SqlHerdGateway",
    "SqlProductionGateway",
    "SqlReproductionGateway",
    "TreatmentRecord",
    "VaccinationRecord",
    "WeighingRecord",
    "YieldRecord",
]
