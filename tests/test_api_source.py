"""
REST inventory source tests (requests.Session is mocked)
"""
from __future__ import annotations

import asyncio
from unittest.mock import Mock

import pandas as pd
import pytest
import requests

from inventario_dashboard.core.config import SIN_ASIGNAR, ApiConfig, InventoryConfig
from inventario_dashboard.data_sources import ApiInventorySource, flatten_pallets
from inventario_dashboard.domain.exceptions import DataLoadError, MutationError
from inventario_dashboard.domain.models import Granularity, OrderReference
from inventario_dashboard.events import EventBus, EventKind

PALLETS = [
    {
        "codigo": "P1",
        "estatus": "Disponible",
        "fechaRegistro": "2024-03-02T10:00:00",
        "tarimasClasificaciones": [
            {"tipo": "XL", "lote": "L-100", "pesoTotal": 10},
            {"tipo": "L", "lote": "L-100", "pesoTotal": 5},
        ],
        "pedidoTarimas": [],
    },
    {
        "codigo": "P2",
        "estatus": "Asignada",
        "fechaRegistro": "2024-03-01T08:00:00",
        "tarimasClasificaciones": [
            {"tipo": "M", "lote": "L-200", "pesoTotal": 7},
        ],
        "pedidoTarimas": [
            {
                "idPedidoCliente": 42,
                "nombreCliente": "Acme",
                "nombreSucursal": "Centro",
                "estatus": "Activo",
                "fechaEmbarque": "2024-03-10",
                "fechaRegistro": "2024-03-01",
                "usuarioRegistro": "ana",
            }
        ],
    },
    {
        "codigo": "P3",
        "estatus": "Disponible",
        "tarimasClasificaciones": [],
    },
]

CONFIG = InventoryConfig(api=ApiConfig(base_url="http://inventario.test/api/", timeout_seconds=5))


def _response(payload, status=200):
    response = Mock()
    response.json.return_value = payload
    response.content = b"{}" if payload is not None else b""
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} Error")
    else:
        response.raise_for_status.return_value = None
    return response


def _source(session, bus=None):
    return ApiInventorySource(bus, config=CONFIG, session=session)


# ============================================================
# flatten_pallets
# ============================================================

def test_flatten_yields_one_line_per_classification():
    table = flatten_pallets(PALLETS)
    frame = table.data

    assert frame["codigo"].tolist() == ["P1", "P1", "P2"]
    assert frame["tipo"].tolist() == ["XL", "L", "M"]
    assert frame["peso"].tolist() == [10.0, 5.0, 7.0]


def test_flatten_uses_first_order_link_or_sentinel():
    frame = flatten_pallets(PALLETS).data

    p1 = frame[frame["codigo"] == "P1"].iloc[0]
    p2 = frame[frame["codigo"] == "P2"].iloc[0]

    assert p1["cliente"] == SIN_ASIGNAR
    assert p1["sucursal"] == SIN_ASIGNAR
    assert p1["pedido"] is None
    assert p2["cliente"] == "Acme"
    assert p2["sucursal"] == "Centro"
    assert isinstance(p2["pedido"], OrderReference)
    assert p2["pedido"].id == 42
    assert p2["pedido"].usuario_registro == "ana"


# ============================================================
# Bulk read
# ============================================================

def test_fetch_inventory_lines_is_cached():
    session = Mock()
    session.get.return_value = _response(PALLETS)
    source = _source(session)

    async def scenario():
        first = await source.fetch_inventory_lines()
        second = await source.fetch_inventory_lines()
        return first, second

    first, second = asyncio.run(scenario())

    assert first is second
    assert session.get.call_count == 1
    url = session.get.call_args[0][0]
    assert url == "http://inventario.test/api/Tarimas/parciales/completas"
    assert session.get.call_args[1]["timeout"] == CONFIG.api.timeout_seconds
    assert source.cache_state().is_valid


def test_network_failure_becomes_data_load_error():
    session = Mock()
    session.get.side_effect = requests.ConnectionError("connection refused")
    source = _source(session)

    with pytest.raises(DataLoadError, match="Error al obtener los datos de inventario"):
        asyncio.run(source.fetch_inventory_lines())


def test_invalidate_publishes_and_refetches():
    bus = EventBus()
    seen = []
    bus.subscribe(EventKind.CACHE_INVALIDATED, seen.append)
    session = Mock()
    session.get.return_value = _response(PALLETS)
    source = _source(session, bus)

    async def scenario():
        await source.fetch_inventory_lines()
        source.invalidate_inventory_cache("InventoryStore#1234abcd")
        await source.fetch_inventory_lines()

    asyncio.run(scenario())

    assert session.get.call_count == 2
    assert [event.origin for event in seen] == ["InventoryStore#1234abcd"]


# ============================================================
# Evolution
# ============================================================

def test_fetch_evolution_parses_buckets_and_caches_window():
    session = Mock()
    session.get.return_value = _response([
        {"fecha": "2024-01-01", "pesoPorTipo": {"XL": 100.5}, "tarimasPorTipo": {"XL": 2}},
        {"fecha": "2024-01-08", "pesoPorTipo": {}, "tarimasPorTipo": {}},
    ])
    source = _source(session)
    start, end = pd.Timestamp("2024-01-01"), pd.Timestamp("2024-01-31")

    async def scenario():
        first = await source.fetch_evolution(Granularity.SEMANA, start, end)
        second = await source.fetch_evolution("semana", start, end)
        return first, second

    first, second = asyncio.run(scenario())

    assert first == second
    assert first[0].peso_total == pytest.approx(100.5)
    assert first[1].total_tarimas == 0
    assert session.get.call_count == 1
    args, kwargs = session.get.call_args
    assert args[0].endswith("/Tarimas/graficas/evolucion-semanal")
    assert kwargs["params"] == {"fechaInicio": "2024-01-01", "fechaFin": "2024-01-31"}


def test_invalidate_clears_cached_evolution():
    session = Mock()
    session.get.return_value = _response([{"fecha": "2024-01-01", "pesoPorTipo": {"L": 4}}])
    source = _source(session)
    start, end = pd.Timestamp("2024-01-01"), pd.Timestamp("2024-01-31")

    async def scenario():
        await source.fetch_evolution(Granularity.DIA, start, end)
        source.invalidate_inventory_cache("ApiInventorySource.assign_pallets")
        return await source.fetch_evolution(Granularity.DIA, start, end)

    buckets = asyncio.run(scenario())

    assert session.get.call_count == 2
    assert buckets[0].peso_por_tipo == {"L": 4.0}


def test_fetch_evolution_http_error():
    session = Mock()
    session.get.return_value = _response(None, status=500)
    source = _source(session)

    with pytest.raises(DataLoadError, match="evolución mes"):
        asyncio.run(
            source.fetch_evolution(
                Granularity.MES, pd.Timestamp("2024-01-01"), pd.Timestamp("2024-06-30")
            )
        )


# ============================================================
# Mutations
# ============================================================

def test_assign_pallets_posts_ids_and_invalidates():
    bus = EventBus()
    seen = []
    bus.subscribe(EventKind.CACHE_INVALIDATED, seen.append)
    session = Mock()
    session.post.return_value = _response({"cliente": "Beta", "sucursal": "Norte"})
    source = _source(session, bus)

    result = asyncio.run(source.assign_pallets(42, [1, 2]))

    assert result == {"cliente": "Beta", "sucursal": "Norte"}
    args, kwargs = session.post.call_args
    assert args[0].endswith("/PedidosCliente/42/tarimas")
    assert kwargs["json"] == {"idTarimas": [1, 2]}
    assert [event.origin for event in seen] == ["ApiInventorySource.assign_pallets"]


def test_failed_assignment_raises_and_keeps_cache():
    bus = EventBus()
    seen = []
    bus.subscribe(EventKind.CACHE_INVALIDATED, seen.append)
    session = Mock()
    session.post.return_value = _response({"error": "pedido cerrado"}, status=409)
    source = _source(session, bus)

    with pytest.raises(MutationError, match="Error al asignar tarimas"):
        asyncio.run(source.assign_pallets(42, [1]))

    assert seen == []


def test_unassign_pallets_posts_patches():
    session = Mock()
    session.post.return_value = _response(None)
    source = _source(session)

    asyncio.run(source.unassign_pallets([{"idTarima": 1, "idPedidoCliente": 42}]))

    args, kwargs = session.post.call_args
    assert args[0].endswith("/PedidosCliente/tarimas/desasignar")
    assert kwargs["json"] == [{"idTarima": 1, "idPedidoCliente": 42}]
