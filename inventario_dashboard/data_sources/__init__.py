"""
Data source layer

Collaborators that feed the inventory store: the REST backend, an
in-memory source and the read-through cache they share.
"""

from .api import ApiInventorySource, fetch_evolution_payload, flatten_pallets
from .cache import CacheState, ReadThroughCache
from .loader import InventorySource
from .static import StaticInventorySource

__all__ = [
    # Protocol
    "InventorySource",
    # Sources
    "ApiInventorySource",
    "StaticInventorySource",
    "flatten_pallets",
    "fetch_evolution_payload",
    # Cache
    "ReadThroughCache",
    "CacheState",
]
