"""
UI layer public API

Plotly figures and the Streamlit session binding of the inventory store.
"""

from .adapters import handle_domain_errors
from .charts import (
    BOX_TYPE_COLORS,
    box_type_color_map,
    build_distribution_figure,
    build_evolution_figure,
)
from .session import get_store, refresh_clicked, request_refresh, reset_session, run_store

__all__ = (
    # Charts
    "BOX_TYPE_COLORS",
    "box_type_color_map",
    "build_evolution_figure",
    "build_distribution_figure",
    # Session
    "get_store",
    "refresh_clicked",
    "request_refresh",
    "reset_session",
    "run_store",
    # Adapters
    "handle_domain_errors",
)
