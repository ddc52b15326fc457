"""Chart-ready series built from evolution buckets and the line collection.

Both formatters are recomputed on every render from the current state; they
never throw for empty input and return an empty frame with the final
columns instead.
"""

from __future__ import annotations

from typing import List, Sequence, Union

import numpy as np
import pandas as pd

from inventario_dashboard.core.config import CONFIG, MESES_CORTOS, SIN_TIPO
from inventario_dashboard.domain.models import EvolutionBucket, InventoryTable, Metric

DISTRIBUTION_COLUMNS = ["tipo", "cantidad", "porcentaje"]


def evolution_columns(box_types: Sequence[str] = CONFIG.box_types) -> List[str]:
    return ["fecha", "fecha_formateada", *box_types]


def format_short_date(value: pd.Timestamp) -> str:
    """Day and short Spanish month, e.g. ``"5 ene"``."""
    ts = pd.Timestamp(value)
    return f"{ts.day} {MESES_CORTOS[ts.month - 1]}"


def format_evolution(
    buckets: Sequence[EvolutionBucket],
    metric: Union[Metric, str],
    *,
    box_types: Sequence[str] = CONFIG.box_types,
) -> pd.DataFrame:
    """
    Project evolution buckets into one chart row per time slot.

    Each row holds the slot date, its display label and one numeric column
    per box type, taken from the weight or the pallet-count sub-field
    according to ``metric``. Types missing from a bucket are 0.

    Args:
        buckets: buckets of the active granularity
        metric: "peso" or "tarimas"
        box_types: columns to emit, in order

    Returns:
        DataFrame with columns fecha, fecha_formateada, *box_types
    """
    metric = Metric(metric)
    columns = evolution_columns(box_types)
    if not buckets:
        return pd.DataFrame(columns=columns)

    rows = []
    for bucket in buckets:
        row = {
            "fecha": bucket.fecha,
            "fecha_formateada": format_short_date(bucket.fecha),
        }
        for tipo in box_types:
            row[tipo] = bucket.value_for(tipo, metric)
        rows.append(row)

    return pd.DataFrame(rows, columns=columns)


def format_distribution(
    table: InventoryTable,
    *,
    box_types: Sequence[str] = CONFIG.box_types,
) -> pd.DataFrame:
    """
    Weight per box type and its share of the grand total.

    Lines with non-positive weight are ignored and a missing type is reported
    as ``"Sin Tipo"``. Rows follow the fixed ``box_types`` priority; types
    outside it come afterwards in lexicographic order.

    Args:
        table: canonical (or override-patched) collection
        box_types: fixed priority list

    Returns:
        DataFrame with columns tipo, cantidad (weight), porcentaje (0-100,
        two decimals). Empty when there is no positive weight.

    Examples:
        >>> format_distribution(table).to_dict("records")
        [{'tipo': 'XL', 'cantidad': 10.0, 'porcentaje': 45.45}, ...]
    """
    frame = table.data
    if frame.empty:
        return pd.DataFrame(columns=DISTRIBUTION_COLUMNS)

    lines = pd.DataFrame(
        {
            "tipo": frame["tipo"].fillna("").astype(str).replace("", SIN_TIPO),
            "peso": pd.to_numeric(frame["peso"], errors="coerce").fillna(0.0),
        }
    )
    lines = lines[lines["peso"] > 0]
    if lines.empty:
        return pd.DataFrame(columns=DISTRIBUTION_COLUMNS)

    per_type = lines.groupby("tipo", sort=False)["peso"].sum()
    total = float(per_type.sum())
    if total <= 0:
        return pd.DataFrame(columns=DISTRIBUTION_COLUMNS)

    # ========================================
    # Fixed priority first, then lexicographic
    # ========================================
    rank = {tipo: i for i, tipo in enumerate(box_types)}
    order = sorted(per_type.index, key=lambda tipo: (rank.get(tipo, len(rank)), tipo))
    per_type = per_type.reindex(order)

    return pd.DataFrame(
        {
            "tipo": [str(tipo) for tipo in per_type.index],
            "cantidad": per_type.to_numpy(dtype=float),
            "porcentaje": np.round(per_type.to_numpy(dtype=float) / total * 100, 2),
        },
        columns=DISTRIBUTION_COLUMNS,
    )
