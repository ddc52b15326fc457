"""
Inventario dashboard entry point

Run with ``streamlit run inventario_app.py``. The page reads everything from
the session's InventoryStore: indicators, the filtered pallet-line table,
the evolution chart and the box-type distribution.
"""

from __future__ import annotations

import logging

import pandas as pd
import streamlit as st

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

from inventario_dashboard.domain import Granularity, Metric
from inventario_dashboard.store import InventoryStore
from inventario_dashboard.ui import (
    build_distribution_figure,
    build_evolution_figure,
    get_store,
    handle_domain_errors,
    request_refresh,
    run_store,
)

_GRANULARITY_LABELS = {
    Granularity.DIA: "Día",
    Granularity.SEMANA: "Semana",
    Granularity.MES: "Mes",
}
_METRIC_LABELS = {
    Metric.PESO: "Peso",
    Metric.TARIMAS: "Tarimas",
}
_ALL = "Todos"


def _render_sidebar(store: InventoryStore) -> None:
    with st.sidebar:
        if st.button("🔄 Actualizar", key="sidebar_refresh", use_container_width=True):
            request_refresh()
            st.rerun()

        st.divider()
        st.header("Filtros")

        options = store.filter_options
        filters = store.list_filters

        busqueda = st.text_input("Buscar (código, lote, tipo)", value=filters.busqueda)
        estatus_choices = [_ALL, *options.estatuses]
        estatus = st.selectbox(
            "Estatus",
            estatus_choices,
            index=estatus_choices.index(filters.estatus) if filters.estatus in estatus_choices else 0,
        )
        cliente_choices = [_ALL, *options.clientes]
        cliente = st.selectbox(
            "Cliente",
            cliente_choices,
            index=cliente_choices.index(filters.cliente) if filters.cliente in cliente_choices else 0,
        )

        with handle_domain_errors():
            store.set_list_filter("busqueda", busqueda)
            store.set_list_filter("estatus", "" if estatus == _ALL else estatus)
            store.set_list_filter("cliente", "" if cliente == _ALL else cliente)

        if store.has_active_filters and st.button("Limpiar filtros", key="clear_filters"):
            store.clear_list_filters()
            st.rerun()


def _render_indicators(store: InventoryStore) -> None:
    ind = store.indicators
    cols = st.columns(4)
    cols[0].metric("Peso total", f"{ind.peso_total_inventario:,.2f} kg")
    cols[1].metric("Tarimas asignadas", f"{ind.tarimas_asignadas:,}")
    cols[2].metric("Tarimas sin asignar", f"{ind.tarimas_no_asignadas:,}")
    cols[3].metric("Peso sin asignar", f"{ind.peso_total_sin_asignar:,.2f} kg")


def _render_evolution(store: InventoryStore) -> None:
    st.subheader("Evolución")
    current = store.evolution_filters

    c1, c2, c3 = st.columns([2, 1, 1])
    window = c1.date_input(
        "Periodo",
        value=(current.fecha_inicio.date(), current.fecha_fin.date()),
        key="evolution_window",
    )
    granularities = list(_GRANULARITY_LABELS)
    agrupar_por = c2.selectbox(
        "Agrupar por",
        granularities,
        index=granularities.index(current.agrupar_por),
        format_func=lambda g: _GRANULARITY_LABELS[g],
    )
    metrics = list(_METRIC_LABELS)
    metrica = c3.radio(
        "Métrica",
        metrics,
        index=metrics.index(current.metrica),
        format_func=lambda m: _METRIC_LABELS[m],
        horizontal=True,
    )

    changes = {"agrupar_por": agrupar_por, "metrica": metrica}
    # date_input returns a single date while the user is still picking the range
    if isinstance(window, (tuple, list)) and len(window) == 2:
        changes["fecha_inicio"] = pd.Timestamp(window[0])
        changes["fecha_fin"] = pd.Timestamp(window[1])

    with handle_domain_errors():
        run_store(store, store.set_evolution_filter(**changes))

    st.plotly_chart(
        build_evolution_figure(store.formatted_evolution, store.evolution_filters.metrica),
        use_container_width=True,
    )


def _render_table(store: InventoryStore) -> None:
    st.subheader(f"Tarimas ({store.total_records})")
    if not store.has_data:
        st.info("No hay tarimas que coincidan con los filtros.")
        return
    view = store.records.drop(columns=["pedido"])
    view["fecha_registro"] = view["fecha_registro"].dt.strftime("%Y-%m-%d %H:%M")
    st.dataframe(view, use_container_width=True, hide_index=True)


def main() -> None:
    st.set_page_config(page_title="Inventario", layout="wide")
    st.title("Inventario de tarimas")

    store = get_store()
    if store.error:
        st.error(f"❌ {store.error}")

    _render_sidebar(store)
    _render_indicators(store)

    left, right = st.columns([3, 2])
    with left:
        _render_evolution(store)
    with right:
        st.subheader("Distribución por tipo")
        st.plotly_chart(
            build_distribution_figure(store.formatted_distribution),
            use_container_width=True,
        )

    _render_table(store)


if __name__ == "__main__":
    main()
