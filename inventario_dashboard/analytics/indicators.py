"""Inventory indicator calculation."""

from __future__ import annotations

import pandas as pd

from inventario_dashboard.core.config import CONFIG
from inventario_dashboard.domain.models import Indicators, InventoryTable


def calculate_indicators(
    table: InventoryTable,
    *,
    unassigned_label: str = CONFIG.unassigned_label,
) -> Indicators:
    """Aggregate weight and pallet counters from the line collection.

    Lines are grouped by pallet code first so that a pallet with several box
    types is counted once, while its weight is the sum of all its lines. A
    pallet is assigned when its client is not ``unassigned_label``.

    Args:
        table: canonical (or override-patched) collection
        unassigned_label: client sentinel of pallets without an order

    Returns:
        Indicators with weights rounded to two decimals; zeros when empty
    """
    frame = table.data
    if frame.empty:
        return Indicators()

    lines = pd.DataFrame(
        {
            "codigo": frame["codigo"].astype(str),
            "peso": pd.to_numeric(frame["peso"], errors="coerce").fillna(0.0),
            "cliente": frame["cliente"],
        }
    )

    # One row per pallet: summed weight, client of its first line
    pallets = lines.groupby("codigo", sort=False).agg(
        peso=("peso", "sum"),
        cliente=("cliente", "first"),
    )
    assigned = pallets["cliente"] != unassigned_label

    return Indicators(
        peso_total_inventario=round(float(pallets["peso"].sum()), 2),
        tarimas_asignadas=int(assigned.sum()),
        tarimas_no_asignadas=int((~assigned).sum()),
        peso_total_sin_asignar=round(float(pallets.loc[~assigned, "peso"].sum()), 2),
    )
