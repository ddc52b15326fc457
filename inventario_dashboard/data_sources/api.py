"""
REST inventory source

Reads pallets from the backend, flattens them into one line per
classification and keeps them behind a read-through cache. Evolution
responses are cached per (endpoint, window) with ``st.cache_data`` and a
shorter lifetime.
Blocking ``requests`` calls run in a worker thread so the event loop stays
free while a fetch is in flight.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd
import requests
import streamlit as st

from inventario_dashboard.core.config import CONFIG, InventoryConfig
from inventario_dashboard.domain.exceptions import DataLoadError, MutationError
from inventario_dashboard.domain.models import (
    EvolutionBucket,
    Granularity,
    InventoryTable,
    OrderReference,
)
from inventario_dashboard.events.bus import EventBus

from .cache import ReadThroughCache

logger = logging.getLogger(__name__)


@st.cache_data(ttl=CONFIG.cache.evolution_ttl_seconds, show_spinner=False)
def fetch_evolution_payload(
    _session: requests.Session,
    url: str,
    start: str,
    end: str,
    timeout: float,
) -> Any:
    """GET one evolution endpoint for a window; the session is not part of the cache key."""
    response = _session.get(url, params={"fechaInicio": start, "fechaFin": end}, timeout=timeout)
    response.raise_for_status()
    return response.json()


def _order_reference(link: Mapping[str, Any]) -> OrderReference:
    return OrderReference(
        id=int(link.get("idPedidoCliente") or 0),
        cliente=str(link.get("nombreCliente") or ""),
        sucursal=str(link.get("nombreSucursal") or ""),
        estatus=str(link.get("estatus") or "Activo"),
        fecha_embarque=pd.to_datetime(link.get("fechaEmbarque"), errors="coerce"),
        fecha_registro=pd.to_datetime(link.get("fechaRegistro"), errors="coerce"),
        usuario_registro=str(link.get("usuarioRegistro") or ""),
    )


def flatten_pallets(
    pallets: Iterable[Mapping[str, Any]],
    *,
    unassigned_label: str = CONFIG.unassigned_label,
) -> InventoryTable:
    """
    Turn backend pallets into classification lines.

    Each pallet yields one line per entry of ``tarimasClasificaciones``.
    Client and branch come from the first order link; pallets without one
    carry ``unassigned_label`` in both fields.

    Args:
        pallets: backend payload (list of pallet objects)
        unassigned_label: client sentinel

    Returns:
        Normalized InventoryTable, newest registration first
    """
    lines: List[Dict[str, Any]] = []
    for tarima in pallets:
        links = tarima.get("pedidoTarimas") or []
        first = links[0] if links else None
        for clasificacion in tarima.get("tarimasClasificaciones") or []:
            lines.append(
                {
                    "codigo": tarima.get("codigo"),
                    "tipo": clasificacion.get("tipo"),
                    "peso": clasificacion.get("pesoTotal"),
                    "cliente": (first or {}).get("nombreCliente") or unassigned_label,
                    "sucursal": (first or {}).get("nombreSucursal") or unassigned_label,
                    "lote": clasificacion.get("lote"),
                    "estatus": tarima.get("estatus"),
                    "fecha_registro": tarima.get("fechaRegistro"),
                    "pedido": _order_reference(first) if first else None,
                }
            )
    return InventoryTable.from_records(lines, unassigned_label=unassigned_label)


class ApiInventorySource:
    """
    Inventory collaborator backed by the REST API.

    Args:
        bus: receives "cache-invalidated" when the bulk cache is cleared
        config: settings (base URL, timeout, TTLs)
        session: optional ``requests.Session`` (auth headers, retries)
    """

    def __init__(
        self,
        bus: Optional[EventBus] = None,
        *,
        config: InventoryConfig = CONFIG,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._lines = ReadThroughCache(
            self._fetch_lines,
            ttl_seconds=config.cache.inventory_ttl_seconds,
            bus=bus,
            name="InventarioService",
        )
        self._evolution_paths = dict(config.api.evolution_paths)

    # ========================================
    # HTTP helpers
    # ========================================

    def _url(self, path: str) -> str:
        return self._config.api.base_url.rstrip("/") + path

    def _get_json(self, path: str, params: Optional[Mapping[str, str]] = None) -> Any:
        response = self._session.get(
            self._url(path), params=params, timeout=self._config.api.timeout_seconds
        )
        response.raise_for_status()
        return response.json()

    def _post_json(self, path: str, body: Any) -> Any:
        response = self._session.post(
            self._url(path), json=body, timeout=self._config.api.timeout_seconds
        )
        response.raise_for_status()
        return response.json() if response.content else None

    # ========================================
    # Bulk inventory read
    # ========================================

    async def _fetch_lines(self) -> InventoryTable:
        try:
            payload = await asyncio.to_thread(self._get_json, self._config.api.inventory_path)
        except requests.RequestException as exc:
            raise DataLoadError(f"Error al obtener los datos de inventario: {exc}") from exc
        return flatten_pallets(payload or [], unassigned_label=self._config.unassigned_label)

    async def fetch_inventory_lines(self) -> InventoryTable:
        return await self._lines.get()

    def invalidate_inventory_cache(self, origin: str) -> None:
        fetch_evolution_payload.clear()
        self._lines.invalidate(origin)

    def cache_state(self):
        return self._lines.state()

    # ========================================
    # Evolution series
    # ========================================

    async def fetch_evolution(
        self,
        granularity: Granularity,
        start: pd.Timestamp,
        end: pd.Timestamp,
    ) -> Sequence[EvolutionBucket]:
        granularity = Granularity(granularity)
        start_s = pd.Timestamp(start).strftime("%Y-%m-%d")
        end_s = pd.Timestamp(end).strftime("%Y-%m-%d")

        path = self._evolution_paths[granularity.value]
        try:
            payload = await asyncio.to_thread(
                fetch_evolution_payload,
                self._session,
                self._url(path),
                start_s,
                end_s,
                self._config.api.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise DataLoadError(f"Error al obtener la evolución {granularity.value}: {exc}") from exc

        return [EvolutionBucket.from_payload(item) for item in payload or []]

    # ========================================
    # Backend mutations (called by the UI before the optimistic patch)
    # ========================================

    async def assign_pallets(self, order_id: int, pallet_ids: Sequence[int]) -> Dict[str, str]:
        """Link pallets to a client order; returns the order's client and branch."""
        path = self._config.api.assign_path.format(id=order_id)
        try:
            payload = await asyncio.to_thread(self._post_json, path, {"idTarimas": list(pallet_ids)})
        except requests.RequestException as exc:
            raise MutationError(f"Error al asignar tarimas: {exc}") from exc

        self.invalidate_inventory_cache("ApiInventorySource.assign_pallets")
        payload = payload or {}
        return {
            "cliente": str(payload.get("cliente") or ""),
            "sucursal": str(payload.get("sucursal") or ""),
        }

    async def unassign_pallets(self, patches: Sequence[Mapping[str, Any]]) -> None:
        """Release pallets from their orders."""
        try:
            await asyncio.to_thread(
                self._post_json, self._config.api.unassign_path, [dict(p) for p in patches]
            )
        except requests.RequestException as exc:
            raise MutationError(f"Error al desasignar tarimas: {exc}") from exc

        self.invalidate_inventory_cache("ApiInventorySource.unassign_pallets")
