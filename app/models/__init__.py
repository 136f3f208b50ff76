"""ORM models package."""
from .alert import (
    Alert,
    AlertDomain,
    AlertSeverity,
    OriginEventType,
    RECURRING_ORIGIN_EVENT_TYPES,
    is_recurring,
)
from .animal import Animal, AnimalSex
from .base import Base
from .health import Treatment, Vaccination
from .production import MilkYield, Weighing
from .property import HerdGroup, Property
from .reproduction import Breeding, BreedingStatus

__all__ = [
    "Alert",
    "AlertDomain",
    "AlertSeverity",
    "OriginEventType",
    "RECURRING_ORIGIN_EVENT_TYPES",
    "is_recurring",
    "Animal",
    "AnimalSex",
    "Base",
    "Breeding",
    "BreedingStatus",
    "HerdGroup",
    "MilkYield",
    "Property",
    "Treatment",
    "Vaccination",
    "Weighing",
]
