"""
Filter option extraction and list filtering

Both helpers are pure: they read the canonical collection and return new
objects, so the store can re-derive its views on every change.
"""

from __future__ import annotations

from dataclasses import fields, replace
from typing import Iterable, Tuple

import pandas as pd

from .exceptions import ValidationError
from .models import FilterOptions, InventoryTable, ListFilters

# Columns matched by the free-text search
SEARCH_COLUMNS = ("codigo", "lote", "tipo")

LIST_FILTER_KEYS = tuple(f.name for f in fields(ListFilters))


def _distinct_sorted(values: Iterable[object]) -> Tuple[str, ...]:
    """Distinct non-empty strings, lexicographically sorted."""
    seen = {str(v) for v in values if isinstance(v, str) and v}
    return tuple(sorted(seen))


def extract_filter_options(table: InventoryTable) -> FilterOptions:
    """
    Collect the status labels and client names offered as filter choices.

    Duplicates and empty values are dropped; both lists are sorted.

    Args:
        table: canonical inventory collection

    Returns:
        FilterOptions; empty tuples for an empty table

    Examples:
        >>> extract_filter_options(table).clientes
        ('Acme', 'Sin asignar')
    """
    if table.is_empty:
        return FilterOptions()

    frame = table.data
    return FilterOptions(
        estatuses=_distinct_sorted(frame["estatus"].tolist()),
        clientes=_distinct_sorted(frame["cliente"].tolist()),
    )


def update_list_filter(filters: ListFilters, key: str, value: str) -> ListFilters:
    """
    Return a copy of ``filters`` with one field replaced.

    Raises:
        ValidationError: if ``key`` is not a list filter field
    """
    if key not in LIST_FILTER_KEYS:
        raise ValidationError(
            f"unknown list filter '{key}', expected one of {', '.join(LIST_FILTER_KEYS)}"
        )
    return replace(filters, **{key: "" if value is None else str(value)})


def apply_list_filters(table: InventoryTable, filters: ListFilters) -> pd.DataFrame:
    """
    Filter the collection by free text, status and client.

    - busqueda: case-insensitive substring match on codigo, lote or tipo
    - estatus / cliente: exact equality

    Empty filter values are ignored. Applying the same filters twice yields
    the same view.

    Args:
        table: canonical (or override-patched) collection
        filters: current list filters

    Returns:
        Filtered DataFrame (copy)
    """
    frame = table.data
    if frame.empty or not filters.is_active:
        return frame.copy()

    mask = pd.Series(True, index=frame.index)

    if filters.busqueda:
        needle = filters.busqueda.lower()
        text_match = pd.Series(False, index=frame.index)
        for column in SEARCH_COLUMNS:
            text_match |= (
                frame[column].astype(str).str.lower().str.contains(needle, regex=False)
            )
        mask &= text_match

    if filters.estatus:
        mask &= frame["estatus"] == filters.estatus

    if filters.cliente:
        mask &= frame["cliente"] == filters.cliente

    return frame[mask].copy()
