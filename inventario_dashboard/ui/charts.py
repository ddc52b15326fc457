"""
Plotly figures for the inventory dashboard.

Both builders take the rows produced by ``analytics.series`` and never touch
the store, so they can be rendered by Streamlit or exported as-is.
"""

from __future__ import annotations

from typing import Dict, Sequence

import pandas as pd
import plotly.graph_objects as go

from inventario_dashboard.core.config import CONFIG, SIN_TIPO
from inventario_dashboard.domain.models import Metric

# Box types keep the same colour in every chart
BOX_TYPE_COLORS: Dict[str, str] = {
    "XL": "#1f77b4",
    "L": "#ff7f0e",
    "M": "#2ca02c",
    "S": "#d62728",
}
_FALLBACK_PALETTE = ["#9467bd", "#8c564b", "#e377c2", "#7f7f7f", "#bcbd22", "#17becf"]

_METRIC_LABELS = {
    Metric.PESO: "Peso (kg)",
    Metric.TARIMAS: "Tarimas",
}


def box_type_color_map(tipos: Sequence[str]) -> Dict[str, str]:
    """Fixed colours for known box types, cycling a fallback palette for the rest."""
    colors: Dict[str, str] = {}
    extra = 0
    for tipo in tipos:
        if tipo in BOX_TYPE_COLORS:
            colors[tipo] = BOX_TYPE_COLORS[tipo]
        elif tipo == SIN_TIPO:
            colors[tipo] = "#c7c7c7"
        else:
            colors[tipo] = _FALLBACK_PALETTE[extra % len(_FALLBACK_PALETTE)]
            extra += 1
    return colors


def build_evolution_figure(
    rows: pd.DataFrame,
    metric: Metric = Metric.PESO,
    *,
    box_types: Sequence[str] = CONFIG.box_types,
    title: str = "Evolución del inventario",
) -> go.Figure:
    """
    Stacked bars per box type over the formatted evolution rows.

    Args:
        rows: output of ``format_evolution`` (``fecha_formateada`` plus one
            column per box type)
        metric: metric the rows were projected with, used for the axis label
        box_types: stacking order
        title: figure title
    """
    fig = go.Figure()
    y_label = _METRIC_LABELS[Metric(metric)]
    fig.update_layout(
        title=title,
        barmode="stack",
        xaxis_title="Fecha",
        yaxis_title=y_label,
        legend_title="Tipo",
    )
    if rows is None or rows.empty:
        return fig

    colors = box_type_color_map(box_types)
    for tipo in box_types:
        if tipo not in rows.columns:
            continue
        fig.add_trace(
            go.Bar(
                name=tipo,
                x=rows["fecha_formateada"],
                y=rows[tipo],
                marker_color=colors[tipo],
                hovertemplate=(
                    "Fecha: %{x}<br>"
                    f"{y_label}: " "%{y:,.2f}<br>"
                    "%{fullData.name}"
                    "<extra></extra>"
                ),
            )
        )
    return fig


def build_distribution_figure(
    rows: pd.DataFrame,
    *,
    title: str = "Distribución por tipo",
) -> go.Figure:
    """Pie of weight share per box type from ``format_distribution`` rows."""
    fig = go.Figure()
    fig.update_layout(title=title, legend_title="Tipo")
    if rows is None or rows.empty:
        return fig

    tipos = [str(t) for t in rows["tipo"]]
    colors = box_type_color_map(tipos)
    fig.add_trace(
        go.Pie(
            labels=tipos,
            values=rows["cantidad"],
            marker=dict(colors=[colors[t] for t in tipos]),
            customdata=rows["porcentaje"],
            sort=False,
            hovertemplate=(
                "%{label}<br>"
                "Peso: %{value:,.2f} kg<br>"
                "%{customdata:.2f}%"
                "<extra></extra>"
            ),
        )
    )
    return fig
