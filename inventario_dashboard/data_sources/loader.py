"""Collaborator interface consumed by the inventory store."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol, Sequence, Union

import pandas as pd

from inventario_dashboard.domain.models import EvolutionBucket, Granularity, InventoryTable

LinesResult = Union[InventoryTable, pd.DataFrame, Iterable[Mapping[str, Any]]]


class InventorySource(Protocol):
    """Bulk inventory read, evolution read and cache invalidation."""

    async def fetch_inventory_lines(self) -> LinesResult:  # pragma: no cover - interface definition
        ...

    def invalidate_inventory_cache(self, origin: str) -> None:  # pragma: no cover - interface definition
        ...

    async def fetch_evolution(
        self,
        granularity: Granularity,
        start: pd.Timestamp,
        end: pd.Timestamp,
    ) -> Sequence[EvolutionBucket]:  # pragma: no cover - interface definition
        ...
