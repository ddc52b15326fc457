"""In-memory inventory source for demos and tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from inventario_dashboard.core.config import CONFIG
from inventario_dashboard.domain.models import EvolutionBucket, Granularity, InventoryTable
from inventario_dashboard.events.bus import EventBus

from .cache import ReadThroughCache


@dataclass
class StaticInventorySource:
    """
    Source that serves fixed lines and evolution buckets.

    Bulk reads go through the same ``ReadThroughCache`` as the REST source,
    so invalidation and coalescing behave the same way. Every call is
    recorded for assertions.
    """

    lines: Union[InventoryTable, pd.DataFrame, Iterable[Mapping[str, Any]]] = ()
    evolution: Dict[Granularity, Sequence[EvolutionBucket]] = field(default_factory=dict)
    bus: Optional[EventBus] = None
    ttl_seconds: float = CONFIG.cache.inventory_ttl_seconds

    line_fetches: int = 0
    evolution_calls: List[Tuple[Granularity, pd.Timestamp, pd.Timestamp]] = field(default_factory=list)
    invalidations: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._cache: ReadThroughCache[InventoryTable] = ReadThroughCache(
            self._read_lines, ttl_seconds=self.ttl_seconds, bus=self.bus, name="static"
        )

    async def _read_lines(self) -> InventoryTable:
        self.line_fetches += 1
        if isinstance(self.lines, InventoryTable):
            return self.lines
        return InventoryTable.from_records(self.lines)

    async def fetch_inventory_lines(self) -> InventoryTable:
        return await self._cache.get()

    def invalidate_inventory_cache(self, origin: str) -> None:
        self.invalidations.append(origin)
        self._cache.invalidate(origin)

    async def fetch_evolution(
        self,
        granularity: Granularity,
        start: pd.Timestamp,
        end: pd.Timestamp,
    ) -> Sequence[EvolutionBucket]:
        granularity = Granularity(granularity)
        self.evolution_calls.append((granularity, start, end))
        return list(self.evolution.get(granularity, ()))
