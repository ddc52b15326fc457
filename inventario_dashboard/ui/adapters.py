"""
Domain exceptions to Streamlit messages

Keeps the domain and store layers free of Streamlit while still showing a
readable message when an operation triggered from the UI fails.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator

import streamlit as st

from inventario_dashboard.domain.exceptions import (
    DataLoadError,
    MutationError,
    ValidationError,
)

logger = logging.getLogger(__name__)


@contextmanager
def handle_domain_errors() -> Generator[None, None, None]:
    """
    Catch domain exceptions and render them with ``st.error``/``st.warning``.

    Examples:
        >>> with handle_domain_errors():
        ...     store.set_list_filter("estatus", value)
    """
    try:
        yield

    except ValidationError as e:
        st.warning(f"⚠️ Dato inválido: {e}")

    except DataLoadError as e:
        st.error(f"❌ {e}")

    except MutationError as e:
        st.error(f"❌ No se pudo actualizar el pedido: {e}")

    except Exception as e:
        logger.exception("unexpected error in UI action")
        st.error(f"❌ Error inesperado: {type(e).__name__}: {e}")
        st.exception(e)
