"""Store layer exports: record store, evolution loader and local overrides."""

from .evolution import CachedSeries, EvolutionSeriesLoader, GranularityCache
from .overrides import Assigned, LocalOverride, OverrideLayer, Released
from .store import InventoryStore

__all__ = [
    "InventoryStore",
    "EvolutionSeriesLoader",
    "GranularityCache",
    "CachedSeries",
    "OverrideLayer",
    "LocalOverride",
    "Assigned",
    "Released",
]
