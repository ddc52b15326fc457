import os
import sys
from pathlib import Path

import pandas as pd
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def pytest_configure(config):
    """Point the REST settings at a dummy host before the package is imported."""
    if not os.getenv("INVENTARIO_API_URL"):
        os.environ["INVENTARIO_API_URL"] = "http://inventario.test/api"


@pytest.fixture(autouse=True)
def clear_evolution_cache():
    """Evolution responses are cached process-wide by st.cache_data."""
    from inventario_dashboard.data_sources import fetch_evolution_payload

    fetch_evolution_payload.clear()
    yield
    fetch_evolution_payload.clear()


@pytest.fixture
def scenario_lines():
    """P1 (XL 10 + L 5, no client) and P2 (M 7, Acme)."""
    return [
        {
            "codigo": "P1",
            "tipo": "XL",
            "pesoTotalPorTipo": 10,
            "cliente": "Sin asignar",
            "sucursal": "Sin asignar",
            "lote": "L-100",
            "estatus": "Disponible",
            "fechaRegistro": "2024-03-02T10:00:00",
        },
        {
            "codigo": "P1",
            "tipo": "L",
            "pesoTotalPorTipo": 5,
            "cliente": "Sin asignar",
            "sucursal": "Sin asignar",
            "lote": "L-100",
            "estatus": "Disponible",
            "fechaRegistro": "2024-03-02T10:00:00",
        },
        {
            "codigo": "P2",
            "tipo": "M",
            "pesoTotalPorTipo": 7,
            "cliente": "Acme",
            "sucursal": "Centro",
            "lote": "L-200",
            "estatus": "Asignada",
            "fechaRegistro": "2024-03-01T08:00:00",
        },
    ]


@pytest.fixture
def scenario_table(scenario_lines):
    from inventario_dashboard.domain.models import InventoryTable

    return InventoryTable.from_records(scenario_lines)


@pytest.fixture
def daily_buckets():
    from inventario_dashboard.domain.models import EvolutionBucket

    return [
        EvolutionBucket(
            fecha=pd.Timestamp("2024-01-05"),
            peso_por_tipo={"XL": 1200.5, "L": 800.25},
            tarimas_por_tipo={"XL": 10, "L": 5},
            peso_total=2000.75,
            total_tarimas=15,
        ),
        EvolutionBucket(
            fecha=pd.Timestamp("2024-09-06"),
            peso_por_tipo={"M": 300.0},
            tarimas_por_tipo={"M": 3},
            peso_total=300.0,
            total_tarimas=3,
        ),
    ]
