"""
Session state binding

Each Streamlit session gets its own event bus, data source and inventory
store, kept in ``st.session_state`` across reruns. Store coroutines are run
to completion on every rerun with ``asyncio.run``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import streamlit as st

from inventario_dashboard.data_sources import ApiInventorySource, InventorySource
from inventario_dashboard.events import EventBus
from inventario_dashboard.store import InventoryStore

logger = logging.getLogger(__name__)

BUS_KEY = "_inventario_bus"
SOURCE_KEY = "_inventario_source"
STORE_KEY = "_inventario_store"
REFRESH_KEY = "_trigger_refresh"

SourceFactory = Callable[[EventBus], InventorySource]


def run_store(store: InventoryStore, coro: Awaitable[Any]) -> Any:
    """Run ``coro`` and any reload it triggered before the rerun continues."""

    async def _runner() -> Any:
        result = await coro
        await store.wait_pending()
        return result

    return asyncio.run(_runner())


def get_bus() -> EventBus:
    bus: Optional[EventBus] = st.session_state.get(BUS_KEY)
    if bus is None:
        bus = EventBus()
        st.session_state[BUS_KEY] = bus
    return bus


def get_store(source_factory: SourceFactory = ApiInventorySource) -> InventoryStore:
    """
    Return the session's store, creating and mounting it on first use.

    A pending refresh request (see ``request_refresh``) is honoured here, so
    the page always renders data that is at most one rerun old.

    Session State Keys:
        - _inventario_bus: EventBus of the session
        - _inventario_source: InventorySource bound to that bus
        - _inventario_store: mounted InventoryStore
        - _trigger_refresh: set by the refresh button
    """
    store: Optional[InventoryStore] = st.session_state.get(STORE_KEY)

    if store is None:
        bus = get_bus()
        source = source_factory(bus)
        store = InventoryStore(source, bus)
        with st.spinner("Cargando inventario..."):
            run_store(store, store.mount())
        st.session_state[SOURCE_KEY] = source
        st.session_state[STORE_KEY] = store
        logger.info(f"session store {store.store_id} mounted")
        # The first load is fresh; a queued refresh would only repeat it
        refresh_clicked()
        return store

    if refresh_clicked():
        with st.spinner("Actualizando inventario..."):
            run_store(store, store.refresh())

    return store


def get_source() -> Optional[InventorySource]:
    return st.session_state.get(SOURCE_KEY)


def request_refresh() -> None:
    st.session_state[REFRESH_KEY] = True


def refresh_clicked() -> bool:
    """Consume the refresh flag; True once per click."""
    clicked = bool(st.session_state.get(REFRESH_KEY, False))
    if clicked:
        st.session_state[REFRESH_KEY] = False
    return clicked


def reset_session() -> None:
    """Unmount and forget the session's store."""
    store: Optional[InventoryStore] = st.session_state.get(STORE_KEY)
    if store is not None:
        store.unmount()
    for key in (STORE_KEY, SOURCE_KEY, BUS_KEY, REFRESH_KEY):
        st.session_state.pop(key, None)
