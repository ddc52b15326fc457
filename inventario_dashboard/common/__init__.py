"""Shared utilities."""

from .performance import PerformanceContext, measure_time_context

__all__ = [
    "measure_time_context",
    "PerformanceContext",
]
