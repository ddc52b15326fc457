"""
Domain models: the core data structures of the inventory dashboard.

The canonical collection is a flat table of classification lines (one line
per pallet x box type). Every derived structure (indicators, filter options,
chart rows) is computed from it and never stored on its own. All models are
frozen dataclasses so that consumers cannot patch them in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

import pandas as pd

from inventario_dashboard.core.config import CONFIG

from .exceptions import ValidationError

# Canonical column order of the inventory table
INVENTORY_COLUMNS = [
    "codigo",
    "tipo",
    "peso",
    "cliente",
    "sucursal",
    "lote",
    "estatus",
    "fecha_registro",
    "pedido",
]

# Accepted source names per canonical column (first match wins)
_COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "codigo": ("codigo", "code", "codigoTarima"),
    "tipo": ("tipo", "type"),
    "peso": ("peso", "pesoTotalPorTipo", "peso_total_por_tipo", "pesoTotal"),
    "cliente": ("cliente", "nombreCliente"),
    "sucursal": ("sucursal", "nombreSucursal"),
    "lote": ("lote",),
    "estatus": ("estatus", "status"),
    "fecha_registro": ("fecha_registro", "fechaRegistro"),
    "pedido": ("pedido",),
}


class Granularity(str, Enum):
    """Bucket size of the evolution series."""

    DIA = "dia"
    SEMANA = "semana"
    MES = "mes"


class Metric(str, Enum):
    """Which sub-field of an evolution bucket is projected into charts."""

    PESO = "peso"
    TARIMAS = "tarimas"


@dataclass(frozen=True)
class InventoryTable:
    """
    Canonical flat collection of inventory classification lines.

    Several lines may share one ``codigo`` (one per box type present on the
    pallet); aggregations must group by pallet code before counting pallets.

    Attributes:
        data: DataFrame with the columns listed in ``INVENTORY_COLUMNS``

    Examples:
        >>> table = InventoryTable.from_records([
        ...     {"codigo": "P1", "tipo": "XL", "pesoTotalPorTipo": 10},
        ... ])
        >>> table.pallet_codes()
        ('P1',)
    """

    data: pd.DataFrame

    @classmethod
    def empty(cls) -> "InventoryTable":
        """Return a table without lines."""
        return cls(pd.DataFrame(columns=INVENTORY_COLUMNS))

    @classmethod
    def from_records(
        cls,
        records: Union[pd.DataFrame, Iterable[Mapping[str, Any]]],
        *,
        unassigned_label: str = CONFIG.unassigned_label,
    ) -> "InventoryTable":
        """
        Build a normalized table from raw line records.

        Source names are mapped to the canonical schema:
        - codigo: pallet code (str, required)
        - tipo / sucursal / lote / estatus: str, missing -> ""
        - peso: float, non-numeric -> 0.0
        - cliente: str, missing or blank -> ``unassigned_label``
        - fecha_registro: datetime64, invalid -> NaT
        - pedido: optional order reference, missing -> None

        Lines are ordered by registration date, newest first.

        Args:
            records: DataFrame or iterable of mappings
            unassigned_label: sentinel stored for pallets without a client

        Returns:
            Normalized table instance

        Raises:
            ValidationError: when no pallet code column is present
        """
        if isinstance(records, pd.DataFrame):
            frame = records.copy()
        else:
            frame = pd.DataFrame(list(records))

        if frame.empty:
            return cls.empty()

        # ========================================
        # Column name normalization
        # ========================================
        rename: Dict[str, str] = {}
        for target, aliases in _COLUMN_ALIASES.items():
            for alias in aliases:
                if alias in frame.columns:
                    rename[alias] = target
                    break
        frame = frame.rename(columns=rename)

        if "codigo" not in frame.columns:
            raise ValidationError("inventory lines must include a pallet code (codigo)")

        # ========================================
        # Column type normalization
        # ========================================
        frame["codigo"] = frame["codigo"].astype(str)

        for column in ("tipo", "sucursal", "lote", "estatus"):
            if column not in frame.columns:
                frame[column] = ""
            frame[column] = frame[column].fillna("").astype(str)

        if "cliente" not in frame.columns:
            frame["cliente"] = ""
        frame["cliente"] = frame["cliente"].fillna("").astype(str)
        frame.loc[frame["cliente"].str.strip() == "", "cliente"] = unassigned_label

        if "peso" not in frame.columns:
            frame["peso"] = 0.0
        frame["peso"] = pd.to_numeric(frame["peso"], errors="coerce").fillna(0.0).astype(float)

        if "fecha_registro" not in frame.columns:
            frame["fecha_registro"] = pd.NaT
        frame["fecha_registro"] = pd.to_datetime(frame["fecha_registro"], errors="coerce")

        if "pedido" not in frame.columns:
            frame["pedido"] = None

        # Newest first; stable so equal dates keep source order
        frame = frame.sort_values(
            "fecha_registro", ascending=False, kind="mergesort", na_position="last"
        )

        return cls(frame[INVENTORY_COLUMNS].reset_index(drop=True))

    @property
    def is_empty(self) -> bool:
        return self.data.empty

    def __len__(self) -> int:
        return len(self.data)

    def pallet_codes(self) -> Tuple[str, ...]:
        """Distinct pallet codes in first-seen order."""
        if self.data.empty:
            return ()
        return tuple(pd.unique(self.data["codigo"].astype(str)))

    def with_data(self, data: pd.DataFrame) -> "InventoryTable":
        return replace(self, data=data)


@dataclass(frozen=True)
class Indicators:
    """
    Aggregate counters derived from the canonical collection.

    Weights are rounded to two decimals. Instances are recomputed after every
    load and every optimistic patch; they are never mutated.
    """

    peso_total_inventario: float = 0.0
    tarimas_asignadas: int = 0
    tarimas_no_asignadas: int = 0
    peso_total_sin_asignar: float = 0.0

    @property
    def total_tarimas(self) -> int:
        return self.tarimas_asignadas + self.tarimas_no_asignadas

    def as_dict(self) -> Dict[str, float]:
        return {
            "peso_total_inventario": self.peso_total_inventario,
            "tarimas_asignadas": self.tarimas_asignadas,
            "tarimas_no_asignadas": self.tarimas_no_asignadas,
            "peso_total_sin_asignar": self.peso_total_sin_asignar,
        }


@dataclass(frozen=True)
class FilterOptions:
    """Distinct, sorted values offered by the list filter selectors."""

    estatuses: Tuple[str, ...] = ()
    clientes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ListFilters:
    """
    View filters over the in-memory collection (no server round-trip).

    An empty string disables the corresponding filter.
    """

    busqueda: str = ""
    estatus: str = ""
    cliente: str = ""

    @property
    def is_active(self) -> bool:
        return any((self.busqueda, self.estatus, self.cliente))


def _default_window_start() -> pd.Timestamp:
    days = CONFIG.evolution.default_window_days
    return pd.Timestamp.today().normalize() - pd.Timedelta(days=days)


def _today() -> pd.Timestamp:
    return pd.Timestamp.today().normalize()


@dataclass(frozen=True)
class EvolutionFilters:
    """
    Date window, bucket size and projected metric of the evolution panel.

    Changing the granularity or the window requires a fetch; changing the
    metric only re-projects buckets that are already loaded.
    """

    fecha_inicio: pd.Timestamp = field(default_factory=_default_window_start)
    fecha_fin: pd.Timestamp = field(default_factory=_today)
    agrupar_por: Granularity = Granularity(CONFIG.evolution.default_granularity)
    metrica: Metric = Metric(CONFIG.evolution.default_metric)

    @property
    def window(self) -> Tuple[pd.Timestamp, pd.Timestamp]:
        return (self.fecha_inicio, self.fecha_fin)

    def needs_fetch(self, previous: "EvolutionFilters") -> bool:
        """True when the change against ``previous`` affects the fetched buckets."""
        return self.agrupar_por != previous.agrupar_por or self.window != previous.window


@dataclass(frozen=True)
class EvolutionBucket:
    """
    One time slot of the evolution series.

    Attributes:
        fecha: start of the slot
        peso_por_tipo: weight per box type, e.g. {"XL": 1200.5, "L": 800.25}
        tarimas_por_tipo: pallet count per box type, e.g. {"XL": 10, "L": 5}
        peso_total: weight across every type
        total_tarimas: pallets across every type
    """

    fecha: pd.Timestamp
    peso_por_tipo: Mapping[str, float] = field(default_factory=dict)
    tarimas_por_tipo: Mapping[str, int] = field(default_factory=dict)
    peso_total: float = 0.0
    total_tarimas: int = 0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "EvolutionBucket":
        """Parse one backend JSON bucket (camelCase keys)."""
        fecha = pd.to_datetime(payload.get("fecha"), errors="coerce")
        if pd.isna(fecha):
            raise ValidationError(f"evolution bucket without a valid date: {payload!r}")

        peso = {
            str(tipo): float(valor or 0)
            for tipo, valor in (payload.get("pesoPorTipo") or {}).items()
        }
        tarimas = {
            str(tipo): int(valor or 0)
            for tipo, valor in (payload.get("tarimasPorTipo") or {}).items()
        }
        return cls(
            fecha=fecha,
            peso_por_tipo=peso,
            tarimas_por_tipo=tarimas,
            peso_total=float(payload.get("pesoTotal") or sum(peso.values())),
            total_tarimas=int(payload.get("totalTarimas") or sum(tarimas.values())),
        )

    def value_for(self, tipo: str, metric: Metric) -> float:
        source = self.peso_por_tipo if metric == Metric.PESO else self.tarimas_por_tipo
        return source.get(tipo, 0) or 0


@dataclass(frozen=True)
class AssignmentTarget:
    """Client order that an optimistic assignment moves pallets into."""

    id: int
    cliente: str
    sucursal: str = ""


@dataclass(frozen=True)
class OrderReference:
    """
    Synthetic order link attached to optimistically assigned lines.

    Only used for display continuity until the next full reload replaces it
    with the backend's own record.
    """

    id: int
    cliente: str
    sucursal: str
    estatus: str = "Activo"
    fecha_embarque: Optional[pd.Timestamp] = None
    fecha_registro: Optional[pd.Timestamp] = None
    usuario_registro: str = "Sistema"

    @classmethod
    def for_target(
        cls, target: AssignmentTarget, *, now: Optional[pd.Timestamp] = None
    ) -> "OrderReference":
        stamp = now if now is not None else pd.Timestamp.now()
        return cls(
            id=target.id,
            cliente=target.cliente,
            sucursal=target.sucursal,
            fecha_embarque=stamp,
            fecha_registro=stamp,
        )
