"""
Unified inventory store

Owns the canonical line collection and derives everything else from it:
indicators, filter options, the filtered list view and chart rows. Other
store instances are kept coherent through the event bus; a store reloads
when another origin announces an invalidation or an update and ignores its
own messages.

Flow:
1. ``mount()`` subscribes to the bus and runs the first ``load()``
2. list filter changes re-derive the view without I/O
3. granularity/window changes fetch one evolution series
4. assignments are laid over the collection until the next load
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import replace
from typing import Any, Iterable, Mapping, Optional, Set, Tuple, Union

import pandas as pd

from inventario_dashboard.analytics.indicators import calculate_indicators
from inventario_dashboard.analytics.series import format_distribution, format_evolution
from inventario_dashboard.common.performance import measure_time_context
from inventario_dashboard.core.config import CONFIG, InventoryConfig
from inventario_dashboard.data_sources.loader import InventorySource
from inventario_dashboard.domain.exceptions import DomainError, ValidationError
from inventario_dashboard.domain.filters import (
    apply_list_filters,
    extract_filter_options,
    update_list_filter,
)
from inventario_dashboard.domain.models import (
    AssignmentTarget,
    EvolutionBucket,
    EvolutionFilters,
    FilterOptions,
    Granularity,
    Indicators,
    InventoryTable,
    ListFilters,
    Metric,
)
from inventario_dashboard.events.bus import (
    ACTION_TARIMA_ASSIGNED,
    ACTION_TARIMA_UNASSIGNED,
    EventBus,
    EventKind,
    InventoryEvent,
)

from .evolution import EvolutionSeriesLoader, GranularityCache
from .overrides import OverrideLayer, coerce_target

logger = logging.getLogger(__name__)

EVOLUTION_FILTER_KEYS = ("fecha_inicio", "fecha_fin", "agrupar_por", "metrica")


def _coerce_evolution_change(key: str, value: Any) -> Any:
    try:
        if key == "agrupar_por":
            return Granularity(value)
        if key == "metrica":
            return Metric(value)
    except ValueError as exc:
        raise ValidationError(f"invalid value for {key}: {value!r}") from exc
    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        raise ValidationError(f"invalid date for {key}: {value!r}")
    return ts.normalize()


class InventoryStore:
    """
    Record store and orchestrator of the inventory view.

    Args:
        source: collaborator providing lines, evolution and cache invalidation
        bus: shared event bus of the application
        config: dashboard settings
        store_id: origin tag; a unique one is generated when omitted

    Examples:
        >>> bus = EventBus()
        >>> store = InventoryStore(StaticInventorySource(lines=rows, bus=bus), bus)
        >>> await store.mount()
        >>> store.indicators.tarimas_no_asignadas
        3
        >>> store.unmount()
    """

    def __init__(
        self,
        source: InventorySource,
        bus: EventBus,
        *,
        config: InventoryConfig = CONFIG,
        store_id: Optional[str] = None,
    ) -> None:
        self.store_id = store_id or f"InventoryStore#{uuid.uuid4().hex[:8]}"
        self._source = source
        self._bus = bus
        self._config = config

        self._table = InventoryTable.empty()
        self._overrides = OverrideLayer(config.unassigned_label)
        self._evolution = EvolutionSeriesLoader(source.fetch_evolution)

        self._list_filters = ListFilters()
        self._evolution_filters = EvolutionFilters()

        # Derived views, always recomputed from the canonical table
        self._effective = self._table
        self._filtered = self._table.data.copy()
        self._indicators = Indicators()
        self._filter_options = FilterOptions()

        self._loading = False
        self._refreshing = False
        self._error: Optional[str] = None

        self._unsubscribe = None
        self._pending: Set[asyncio.Task] = set()

    # ========================================
    # Lifecycle
    # ========================================

    async def mount(self) -> None:
        """Subscribe to the bus and run the initial load."""
        if self._unsubscribe is None:
            self._unsubscribe = self._bus.subscribe_many(
                (EventKind.CACHE_INVALIDATED, EventKind.DATA_UPDATED), self._on_event
            )
        await self.load()

    def unmount(self) -> None:
        """Release bus subscriptions and cancel reloads that have not run yet."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for task in self._pending:
            task.cancel()
        self._pending.clear()

    @property
    def mounted(self) -> bool:
        return self._unsubscribe is not None

    async def __aenter__(self) -> "InventoryStore":
        await self.mount()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.unmount()

    # ========================================
    # Loading
    # ========================================

    async def load(self) -> None:
        """
        Replace the canonical collection with a fresh bulk read.

        On success overrides are dropped and every derived view is rebuilt,
        then the active evolution series is fetched. On failure the error
        message is recorded and the previous collection stays in place.
        """
        self._loading = True
        self._error = None
        try:
            with measure_time_context(f"{self.store_id} load"):
                lines = await self._source.fetch_inventory_lines()
            table = lines if isinstance(lines, InventoryTable) else InventoryTable.from_records(lines)

            self._table = table
            self._overrides.clear()
            self._rederive()
            logger.info(f"{self.store_id}: {len(table)} line(s), {len(table.pallet_codes())} pallet(s)")

            await self._load_evolution()
        except Exception as exc:
            self._record_error(exc, "cargar inventario")
        finally:
            self._loading = False

    async def refresh(self) -> None:
        """Invalidate the source cache under this store's origin, then load."""
        self._refreshing = True
        try:
            self._source.invalidate_inventory_cache(self.store_id)
            await self.load()
        finally:
            self._refreshing = False

    async def _load_evolution(self) -> None:
        try:
            await self._evolution.load(self._evolution_filters)
        except Exception as exc:
            self._record_error(exc, "cargar evolución")

    def _record_error(self, exc: Exception, context: str) -> None:
        if isinstance(exc, DomainError):
            message = str(exc)
        else:
            message = f"Error al {context}"
        self._error = message
        logger.exception(f"{self.store_id}: {context} failed: {message}")

    # ========================================
    # Derivation
    # ========================================

    def _rederive(self) -> None:
        self._effective = self._overrides.apply(self._table)
        self._indicators = calculate_indicators(
            self._effective, unassigned_label=self._config.unassigned_label
        )
        self._filter_options = extract_filter_options(self._effective)
        self._filtered = apply_list_filters(self._effective, self._list_filters)

    # ========================================
    # Filters
    # ========================================

    def set_list_filter(self, key: str, value: str) -> None:
        """Update one list filter and re-derive the view; no I/O."""
        self._list_filters = update_list_filter(self._list_filters, key, value)
        self._filtered = apply_list_filters(self._effective, self._list_filters)

    def clear_list_filters(self) -> None:
        self._list_filters = ListFilters()
        self._filtered = apply_list_filters(self._effective, self._list_filters)

    async def set_evolution_filter(self, **changes: Any) -> None:
        """
        Update evolution filters.

        A fetch happens only when the granularity or the date window changed
        and the collection already holds lines; a metric change only
        re-projects the loaded buckets.

        Raises:
            ValidationError: for unknown keys or invalid values
        """
        unknown = set(changes) - set(EVOLUTION_FILTER_KEYS)
        if unknown:
            raise ValidationError(f"unknown evolution filter(s): {', '.join(sorted(unknown))}")

        previous = self._evolution_filters
        coerced = {key: _coerce_evolution_change(key, value) for key, value in changes.items()}
        self._evolution_filters = replace(previous, **coerced)

        if self._evolution_filters.needs_fetch(previous) and not self._table.is_empty:
            await self._load_evolution()

    # ========================================
    # Optimistic mutations
    # ========================================

    def apply_assignment(
        self,
        target: Union[AssignmentTarget, Mapping[str, Any]],
        codes: Iterable[str],
    ) -> None:
        """
        Show pallets as assigned to ``target`` before the next reload.

        Call only after the backend confirmed the assignment.
        """
        target = coerce_target(target)
        applied = self._overrides.assign(target, codes)
        self._rederive()
        self._bus.publish(
            EventKind.DATA_UPDATED,
            {"pedido": target, "codigos": applied},
            origin=self.store_id,
            action=ACTION_TARIMA_ASSIGNED,
        )

    def apply_unassignment(self, codes: Iterable[str]) -> None:
        """
        Show pallets as released before the next reload.

        Call only after the backend confirmed the release.
        """
        applied = self._overrides.release(codes)
        self._rederive()
        self._bus.publish(
            EventKind.DATA_UPDATED,
            {"codigos": applied},
            origin=self.store_id,
            action=ACTION_TARIMA_UNASSIGNED,
        )

    # ========================================
    # Bus
    # ========================================

    def _on_event(self, kind: EventKind, event: InventoryEvent) -> None:
        if event.origin == self.store_id:
            logger.debug(f"{self.store_id}: ignoring own {kind.value}")
            return
        logger.info(f"{self.store_id}: {kind.value} from {event.origin}, reloading")
        self._schedule_reload()

    def _schedule_reload(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self.load())
            return
        task = loop.create_task(self.load())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def wait_pending(self) -> None:
        """Wait for reloads scheduled by bus messages."""
        while self._pending:
            pending = list(self._pending)
            await asyncio.gather(*pending)
            self._pending.difference_update(pending)

    # ========================================
    # Read-only view
    # ========================================

    @property
    def records(self) -> pd.DataFrame:
        """Filtered lines with overrides applied."""
        return self._filtered.copy()

    @property
    def all_records(self) -> pd.DataFrame:
        return self._effective.data.copy()

    @property
    def indicators(self) -> Indicators:
        return self._indicators

    @property
    def filter_options(self) -> FilterOptions:
        return self._filter_options

    @property
    def list_filters(self) -> ListFilters:
        return self._list_filters

    @property
    def evolution_filters(self) -> EvolutionFilters:
        return self._evolution_filters

    @property
    def current_evolution(self) -> Tuple[EvolutionBucket, ...]:
        return self._evolution.current(self._evolution_filters)

    @property
    def evolution_cache(self) -> GranularityCache:
        return self._evolution.cache

    @property
    def formatted_evolution(self) -> pd.DataFrame:
        return format_evolution(
            self.current_evolution,
            self._evolution_filters.metrica,
            box_types=self._config.box_types,
        )

    @property
    def formatted_distribution(self) -> pd.DataFrame:
        return format_distribution(self._effective, box_types=self._config.box_types)

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def refreshing(self) -> bool:
        return self._refreshing

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def has_data(self) -> bool:
        return not self._filtered.empty

    @property
    def total_records(self) -> int:
        return len(self._filtered)

    @property
    def has_active_filters(self) -> bool:
        return self._list_filters.is_active
