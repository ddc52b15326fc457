"""
Optimistic local overrides

Assignments and releases confirmed by the backend are recorded here as
tagged variants keyed by pallet code and laid over the canonical collection
until the next successful load replaces it. The layer never talks to the
network and never retries: it assumes the caller's backend call succeeded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

import pandas as pd

from inventario_dashboard.core.config import CONFIG
from inventario_dashboard.domain.exceptions import ValidationError
from inventario_dashboard.domain.models import AssignmentTarget, InventoryTable, OrderReference


@dataclass(frozen=True)
class Assigned:
    """Pallet moved into a client order."""

    target: AssignmentTarget
    reference: OrderReference


@dataclass(frozen=True)
class Released:
    """Pallet released from its order."""


LocalOverride = Union[Assigned, Released]


def coerce_target(target: Union[AssignmentTarget, Mapping[str, Any]]) -> AssignmentTarget:
    """Accept an AssignmentTarget or a mapping with id/cliente/sucursal."""
    if isinstance(target, AssignmentTarget):
        return target
    if isinstance(target, Mapping) and target.get("cliente"):
        return AssignmentTarget(
            id=int(target.get("id") or 0),
            cliente=str(target["cliente"]),
            sucursal=str(target.get("sucursal") or ""),
        )
    raise ValidationError(f"assignment target needs at least a client: {target!r}")


def coerce_codes(codes: Iterable[str]) -> Tuple[str, ...]:
    """Distinct pallet codes in input order; rejects empty or bare-string input."""
    if isinstance(codes, (str, bytes)):
        raise ValidationError("pallet codes must be a collection, not a single string")
    result = tuple(dict.fromkeys(str(code) for code in codes if code is not None and code != ""))
    if not result:
        raise ValidationError("an optimistic patch needs at least one pallet code")
    return result


class OverrideLayer:
    """Pallet-code keyed overrides, latest patch wins."""

    def __init__(self, unassigned_label: str = CONFIG.unassigned_label) -> None:
        self._unassigned_label = unassigned_label
        self._overrides: Dict[str, LocalOverride] = {}

    def __len__(self) -> int:
        return len(self._overrides)

    def get(self, code: str) -> Optional[LocalOverride]:
        return self._overrides.get(code)

    def assign(
        self,
        target: Union[AssignmentTarget, Mapping[str, Any]],
        codes: Iterable[str],
        *,
        now: Optional[pd.Timestamp] = None,
    ) -> Tuple[str, ...]:
        target = coerce_target(target)
        codes = coerce_codes(codes)
        override = Assigned(target=target, reference=OrderReference.for_target(target, now=now))
        for code in codes:
            self._overrides[code] = override
        return codes

    def release(self, codes: Iterable[str]) -> Tuple[str, ...]:
        codes = coerce_codes(codes)
        for code in codes:
            self._overrides[code] = Released()
        return codes

    def clear(self) -> None:
        self._overrides.clear()

    def apply(self, table: InventoryTable) -> InventoryTable:
        """Return ``table`` with every override applied; the input is untouched."""
        if not self._overrides or table.is_empty:
            return table

        frame = table.data.copy()
        clientes = frame["cliente"].tolist()
        sucursales = frame["sucursal"].tolist()
        pedidos = frame["pedido"].tolist()

        for i, code in enumerate(frame["codigo"].astype(str)):
            override = self._overrides.get(code)
            if override is None:
                continue
            if isinstance(override, Assigned):
                clientes[i] = override.target.cliente
                sucursales[i] = override.target.sucursal
                pedidos[i] = override.reference
            else:
                clientes[i] = self._unassigned_label
                sucursales[i] = ""
                pedidos[i] = None

        frame["cliente"] = clientes
        frame["sucursal"] = sucursales
        frame["pedido"] = pd.Series(pedidos, index=frame.index, dtype=object)
        return table.with_data(frame)
