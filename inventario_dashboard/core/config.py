"""Configuration and constants for the inventory dashboard core.

Box-type ordering, the unassigned sentinel, cache lifetimes and the REST
backend location live here so that every layer reads the same values.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Tuple

# ============================================================
# Domain constants
# ============================================================

# Client value carried by pallets without an order link
SIN_ASIGNAR = "Sin asignar"

# Type label used when a classification line arrives without one
SIN_TIPO = "Sin Tipo"

# Fixed box-type priority used by charts and the distribution ordering
TIPOS_CAJA: Tuple[str, ...] = ("XL", "L", "M", "S")

# Short Spanish month names for chart labels (es-MX)
MESES_CORTOS: Tuple[str, ...] = (
    "ene",
    "feb",
    "mar",
    "abr",
    "may",
    "jun",
    "jul",
    "ago",
    "sept",
    "oct",
    "nov",
    "dic",
)


# ============================================================
# Cache settings
# ============================================================

@dataclass(frozen=True)
class CacheConfig:
    """Read-through cache lifetimes (seconds)"""

    # Bulk inventory read
    inventory_ttl_seconds: float = 300.0

    # Evolution series per (granularity, window)
    evolution_ttl_seconds: float = 120.0


# ============================================================
# Evolution series settings
# ============================================================

@dataclass(frozen=True)
class EvolutionConfig:
    """Defaults for the time-series panel"""

    # Default window length ending today (days)
    default_window_days: int = 30

    # Default bucket size: "dia" | "semana" | "mes"
    default_granularity: str = "dia"

    # Default metric: "peso" | "tarimas"
    default_metric: str = "peso"


# ============================================================
# REST backend settings
# ============================================================

@dataclass(frozen=True)
class ApiConfig:
    """Backend location, overridable through the environment"""

    base_url: str = field(
        default_factory=lambda: os.getenv("INVENTARIO_API_URL", "http://localhost:5000/api")
    )

    timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("INVENTARIO_API_TIMEOUT", "30"))
    )

    inventory_path: str = "/Tarimas/parciales/completas"
    evolution_paths: Tuple[Tuple[str, str], ...] = (
        ("dia", "/Tarimas/graficas/evolucion-diaria"),
        ("semana", "/Tarimas/graficas/evolucion-semanal"),
        ("mes", "/Tarimas/graficas/evolucion-mensual"),
    )
    assign_path: str = "/PedidosCliente/{id}/tarimas"
    unassign_path: str = "/PedidosCliente/tarimas/desasignar"


@dataclass(frozen=True)
class InventoryConfig:
    """Global inventory dashboard settings"""

    cache: CacheConfig = field(default_factory=CacheConfig)
    evolution: EvolutionConfig = field(default_factory=EvolutionConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    unassigned_label: str = SIN_ASIGNAR
    box_types: Tuple[str, ...] = TIPOS_CAJA


# ============================================================
# Global settings instance
# ============================================================

# Immutable global configuration
CONFIG = InventoryConfig()
