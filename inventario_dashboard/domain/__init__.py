"""
Domain layer public API

Re-exports the models, exceptions and pure filter helpers so that callers
import from one place.
"""
from __future__ import annotations

from .exceptions import DataLoadError, DomainError, MutationError, ValidationError
from .filters import (
    LIST_FILTER_KEYS,
    apply_list_filters,
    extract_filter_options,
    update_list_filter,
)
from .models import (
    INVENTORY_COLUMNS,
    AssignmentTarget,
    EvolutionBucket,
    EvolutionFilters,
    FilterOptions,
    Granularity,
    Indicators,
    InventoryTable,
    ListFilters,
    Metric,
    OrderReference,
)

__all__ = [
    # Exceptions
    "DomainError",
    "ValidationError",
    "DataLoadError",
    "MutationError",
    # Models
    "INVENTORY_COLUMNS",
    "InventoryTable",
    "Indicators",
    "FilterOptions",
    "ListFilters",
    "EvolutionFilters",
    "EvolutionBucket",
    "Granularity",
    "Metric",
    "AssignmentTarget",
    "OrderReference",
    # Filters
    "LIST_FILTER_KEYS",
    "extract_filter_options",
    "apply_list_filters",
    "update_list_filter",
]
