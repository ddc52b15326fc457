"""Core settings of the inventory dashboard."""

from .config import CONFIG, InventoryConfig

__all__ = ["CONFIG", "InventoryConfig"]
