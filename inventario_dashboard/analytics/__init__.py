"""Analytics layer facade: indicators and chart series."""

from .indicators import calculate_indicators
from .series import (
    DISTRIBUTION_COLUMNS,
    evolution_columns,
    format_distribution,
    format_evolution,
    format_short_date,
)

__all__ = [
    "calculate_indicators",
    "format_evolution",
    "format_distribution",
    "format_short_date",
    "evolution_columns",
    "DISTRIBUTION_COLUMNS",
]
