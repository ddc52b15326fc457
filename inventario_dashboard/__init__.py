"""
Inventario dashboard package

Keeps a pallet-line inventory in sync across the views of a warehouse
dashboard:
- one canonical line collection per store, with every view derived from it
- optimistic assignment/release overlays until the next reload
- cross-store coherence through an injectable event bus
- Streamlit/plotly adapters isolated in the ``ui`` layer
"""

from __future__ import annotations

__version__ = "1.0.0"
