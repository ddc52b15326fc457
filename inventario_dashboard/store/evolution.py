"""
Evolution series loader

Fetches the time-bucketed series for the active granularity only and keeps
one slot per granularity, each stamped with the time it was fetched. Slots
of inactive granularities keep their last result; they are stale but never
displayed. Two fetches for different granularities that overlap simply
land in their own slots, last write wins per slot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Sequence, Tuple

import pandas as pd

from inventario_dashboard.domain.exceptions import DataLoadError
from inventario_dashboard.domain.models import EvolutionBucket, EvolutionFilters, Granularity

logger = logging.getLogger(__name__)

EvolutionFetcher = Callable[
    [Granularity, pd.Timestamp, pd.Timestamp], Awaitable[Sequence[EvolutionBucket]]
]


@dataclass(frozen=True)
class CachedSeries:
    """Buckets of one granularity and when/for which window they were fetched."""

    buckets: Tuple[EvolutionBucket, ...]
    window: Tuple[pd.Timestamp, pd.Timestamp]
    fetched_at: pd.Timestamp


class GranularityCache:
    """One slot per granularity with an explicit fetch timestamp."""

    def __init__(self) -> None:
        self._slots: Dict[Granularity, CachedSeries] = {}

    def get(self, granularity: Granularity) -> Optional[CachedSeries]:
        return self._slots.get(Granularity(granularity))

    def buckets(self, granularity: Granularity) -> Tuple[EvolutionBucket, ...]:
        slot = self.get(granularity)
        return slot.buckets if slot is not None else ()

    def fetched_at(self, granularity: Granularity) -> Optional[pd.Timestamp]:
        slot = self.get(granularity)
        return slot.fetched_at if slot is not None else None

    def put(
        self,
        granularity: Granularity,
        buckets: Sequence[EvolutionBucket],
        window: Tuple[pd.Timestamp, pd.Timestamp],
        *,
        fetched_at: Optional[pd.Timestamp] = None,
    ) -> CachedSeries:
        slot = CachedSeries(
            buckets=tuple(buckets),
            window=window,
            fetched_at=fetched_at if fetched_at is not None else pd.Timestamp.now(),
        )
        self._slots[Granularity(granularity)] = slot
        return slot

    def clear(self) -> None:
        self._slots.clear()


class EvolutionSeriesLoader:
    """
    Loads evolution buckets for the granularity selected in the filters.

    Args:
        fetch: collaborator call ``(granularity, start, end) -> buckets``
        cache: slot storage; a fresh one is created when omitted
    """

    def __init__(self, fetch: EvolutionFetcher, cache: Optional[GranularityCache] = None) -> None:
        self._fetch = fetch
        self.cache = cache if cache is not None else GranularityCache()

    async def load(self, filters: EvolutionFilters) -> Tuple[EvolutionBucket, ...]:
        """
        Fetch the active granularity and store it in its slot.

        Exactly one collaborator call is made. On failure the slot keeps its
        previous buckets.

        Raises:
            DataLoadError: when the collaborator call fails
        """
        granularity = Granularity(filters.agrupar_por)
        try:
            buckets = await self._fetch(granularity, filters.fecha_inicio, filters.fecha_fin)
        except DataLoadError:
            raise
        except Exception as exc:
            raise DataLoadError(
                f"Error al cargar la evolución {granularity.value}"
            ) from exc

        slot = self.cache.put(granularity, buckets, filters.window)
        logger.debug(f"evolution {granularity.value}: {len(slot.buckets)} bucket(s)")
        return slot.buckets

    def current(self, filters: EvolutionFilters) -> Tuple[EvolutionBucket, ...]:
        return self.cache.buckets(filters.agrupar_por)
