"""
Indicator and chart series tests
"""
from __future__ import annotations

import pandas as pd
import pytest

from inventario_dashboard.analytics import (
    calculate_indicators,
    evolution_columns,
    format_distribution,
    format_evolution,
    format_short_date,
)
from inventario_dashboard.domain.models import InventoryTable, Metric


# ============================================================
# Indicators
# ============================================================

def test_indicators_for_scenario(scenario_table):
    indicators = calculate_indicators(scenario_table)

    assert indicators.as_dict() == {
        "peso_total_inventario": 22.0,
        "tarimas_asignadas": 1,
        "tarimas_no_asignadas": 1,
        "peso_total_sin_asignar": 15.0,
    }
    assert indicators.total_tarimas == len(scenario_table.pallet_codes())


def test_indicators_empty_collection():
    indicators = calculate_indicators(InventoryTable.empty())

    assert indicators.peso_total_inventario == 0.0
    assert indicators.total_tarimas == 0


def test_indicators_round_weights_to_two_decimals():
    table = InventoryTable.from_records([
        {"codigo": "A", "tipo": "XL", "peso": 0.105},
        {"codigo": "A", "tipo": "L", "peso": 0.2},
        {"codigo": "B", "tipo": "M", "peso": 1.3333, "cliente": "Acme"},
    ])

    indicators = calculate_indicators(table)

    assert indicators.peso_total_inventario == pytest.approx(1.64)
    assert indicators.peso_total_sin_asignar == pytest.approx(0.3, abs=0.01)
    assert indicators.tarimas_asignadas == 1
    assert indicators.tarimas_no_asignadas == 1


def test_assigned_plus_unassigned_equals_unique_pallets():
    table = InventoryTable.from_records([
        {"codigo": "T-01", "tipo": "XL", "peso": 120.5, "cliente": "Acme"},
        {"codigo": "T-01", "tipo": "M", "peso": 30},
        {"codigo": "T-02", "tipo": "S", "peso": 12.25},
        {"codigo": "T-03", "tipo": "L", "peso": 40, "cliente": "Beta"},
        {"codigo": "T-03", "tipo": "L", "peso": 41, "cliente": "Beta"},
        {"codigo": "T-03", "tipo": "S", "peso": 0, "cliente": "Beta"},
        {"codigo": "T-04", "tipo": "", "peso": 0},
    ])

    indicators = calculate_indicators(table)

    assert indicators.total_tarimas == len(table.pallet_codes()) == 4
    # a pallet follows the client of its first line
    assert indicators.tarimas_asignadas == 2
    assert indicators.peso_total_sin_asignar == pytest.approx(12.25)
    assert indicators.peso_total_inventario == pytest.approx(243.75)


def test_indicators_use_custom_sentinel():
    table = InventoryTable.from_records(
        [{"codigo": "A", "peso": 4, "cliente": "N/A"}], unassigned_label="N/A"
    )

    indicators = calculate_indicators(table, unassigned_label="N/A")

    assert indicators.tarimas_no_asignadas == 1
    assert indicators.peso_total_sin_asignar == 4.0


# ============================================================
# Evolution rows
# ============================================================

def test_format_short_date_uses_spanish_months():
    assert format_short_date(pd.Timestamp("2024-01-05")) == "5 ene"
    assert format_short_date(pd.Timestamp("2024-09-06")) == "6 sept"
    assert format_short_date(pd.Timestamp("2024-12-31")) == "31 dic"


def test_format_evolution_by_weight(daily_buckets):
    rows = format_evolution(daily_buckets, Metric.PESO)

    assert list(rows.columns) == evolution_columns()
    assert rows["fecha_formateada"].tolist() == ["5 ene", "6 sept"]
    assert rows.loc[0, "XL"] == pytest.approx(1200.5)
    assert rows.loc[0, "L"] == pytest.approx(800.25)
    assert rows.loc[0, "M"] == 0
    assert rows.loc[1, "M"] == pytest.approx(300.0)


def test_format_evolution_by_pallet_count(daily_buckets):
    rows = format_evolution(daily_buckets, "tarimas")

    assert rows.loc[0, ["XL", "L", "M", "S"]].tolist() == [10, 5, 0, 0]
    assert rows.loc[1, "M"] == 3


def test_format_evolution_empty():
    rows = format_evolution([], Metric.PESO)

    assert rows.empty
    assert list(rows.columns) == ["fecha", "fecha_formateada", "XL", "L", "M", "S"]


# ============================================================
# Distribution rows
# ============================================================

def test_distribution_for_scenario(scenario_table):
    rows = format_distribution(scenario_table)

    assert rows["tipo"].tolist() == ["XL", "L", "M"]
    assert rows["cantidad"].tolist() == [10.0, 5.0, 7.0]
    assert rows["porcentaje"].tolist() == [45.45, 22.73, 31.82]
    assert rows["porcentaje"].sum() == pytest.approx(100.0, abs=0.05)


def test_distribution_orders_unknown_types_after_priority():
    table = InventoryTable.from_records([
        {"codigo": "A", "tipo": "S", "peso": 1},
        {"codigo": "B", "tipo": "ZZ", "peso": 1},
        {"codigo": "C", "tipo": "", "peso": 1},
        {"codigo": "D", "tipo": "XL", "peso": 1},
        {"codigo": "E", "tipo": "AA", "peso": 1},
    ])

    rows = format_distribution(table)

    assert rows["tipo"].tolist() == ["XL", "S", "AA", "Sin Tipo", "ZZ"]
    assert rows["porcentaje"].tolist() == [20.0] * 5


def test_distribution_ignores_non_positive_weight():
    table = InventoryTable.from_records([
        {"codigo": "A", "tipo": "XL", "peso": 0},
        {"codigo": "B", "tipo": "L", "peso": -3},
        {"codigo": "C", "tipo": "M", "peso": 2},
    ])

    rows = format_distribution(table)

    assert rows["tipo"].tolist() == ["M"]
    assert rows["porcentaje"].tolist() == [100.0]


def test_distribution_empty_when_no_weight():
    assert format_distribution(InventoryTable.empty()).empty
    zero = InventoryTable.from_records([{"codigo": "A", "tipo": "XL", "peso": 0}])
    assert format_distribution(zero).empty
