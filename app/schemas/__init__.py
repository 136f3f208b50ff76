"""Schema package exports."""
from .alert import (
    AlertFilters,
    AlertPage,
    AlertRead,
    AlertRequest,
    EvaluationSummary,
    PageMeta,
)

__all__ = [
    "AlertFilters",
    "AlertPage",
    "AlertRead",
    "AlertRequest",
    "EvaluationSummary",
    "PageMeta",
]
