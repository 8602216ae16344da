"""
================================================================================
Expense Domain Payload Models
================================================================================

Request/response payloads for the expense tracking API:
    - GastoUnico        one-off expense
    - GastoRecurrente   recurring expense template
    - DebitoAutomatico  automatic debit
    - User              API test user

Each model serialises to the API's snake_case JSON with ``to_payload()``.
Fields owned by the server (ids, generation dates, timestamps) are read back
by ``from_response()`` but never sent.

================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal
from typing import Any, ClassVar, Dict, FrozenSet, Optional


def _to_json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def _parse_date(value: Any) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    # Accept "2024-01-01" and "2024-01-01T00:00:00.000Z"
    return date.fromisoformat(str(value)[:10])


def _parse_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


class PayloadModel:
    """Shared serialisation for the dataclass models below."""

    # Fields the server owns: read from responses, never sent.
    READ_ONLY_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"id"})
    DATE_FIELDS: ClassVar[FrozenSet[str]] = frozenset()
    DECIMAL_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"monto"})

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for create/update calls; ``None`` fields are omitted."""
        payload = {}
        for f in fields(self):
            if f.name in self.READ_ONLY_FIELDS:
                continue
            value = getattr(self, f.name)
            if value is None:
                continue
            payload[f.name] = _to_json_value(value)
        return payload

    @classmethod
    def from_response(cls, data: Dict[str, Any]):
        """Build a model from a response ``data`` object, ignoring unknown keys."""
        kwargs = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if f.name in cls.DATE_FIELDS:
                value = _parse_date(value)
            elif f.name in cls.DECIMAL_FIELDS:
                value = _parse_decimal(value)
            kwargs[f.name] = value
        return cls(**kwargs)


@dataclass
class GastoUnico(PayloadModel):
    descripcion: Optional[str] = None
    monto: Optional[Decimal] = None
    fecha: Optional[date] = None
    categoria_gasto_id: Optional[int] = None
    importancia_gasto_id: Optional[int] = None
    tipo_pago_id: Optional[int] = None
    tarjeta_id: Optional[int] = None
    procesado: Optional[bool] = None
    id: Optional[Any] = None

    READ_ONLY_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"id", "procesado"})
    DATE_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"fecha"})


@dataclass
class GastoRecurrente(PayloadModel):
    descripcion: Optional[str] = None
    monto: Optional[Decimal] = None
    dia_de_pago: Optional[int] = None
    fecha_inicio: Optional[date] = None
    frecuencia_gasto_id: Optional[int] = None
    categoria_gasto_id: Optional[int] = None
    importancia_gasto_id: Optional[int] = None
    tipo_pago_id: Optional[int] = None
    tarjeta_id: Optional[int] = None
    activo: Optional[bool] = None
    ultima_fecha_generado: Optional[date] = None
    id: Optional[Any] = None

    READ_ONLY_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"id", "ultima_fecha_generado"})
    DATE_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"fecha_inicio", "ultima_fecha_generado"})


@dataclass
class DebitoAutomatico(PayloadModel):
    descripcion: Optional[str] = None
    monto: Optional[Decimal] = None
    dia_de_pago: Optional[int] = None
    mes_de_pago: Optional[int] = None
    categoria_gasto_id: Optional[int] = None
    importancia_gasto_id: Optional[int] = None
    frecuencia_gasto_id: Optional[int] = None
    tipo_pago_id: Optional[int] = None
    tarjeta_id: Optional[int] = None
    activo: Optional[bool] = True
    ultima_fecha_generado: Optional[str] = None
    id: Optional[Any] = None

    # mes_de_pago is derived by the API from the frequency
    READ_ONLY_FIELDS: ClassVar[FrozenSet[str]] = frozenset(
        {"id", "mes_de_pago", "ultima_fecha_generado"}
    )


@dataclass
class User(PayloadModel):
    nombre: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    id: Optional[Any] = None

    DECIMAL_FIELDS: ClassVar[FrozenSet[str]] = frozenset()

    def login_payload(self) -> Dict[str, Any]:
        return {"email": self.email, "password": self.password}

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, nombre={self.nombre!r}, email={self.email!r})"


__all__ = [
    "DebitoAutomatico",
    "GastoRecurrente",
    "GastoUnico",
    "PayloadModel",
    "User",
]
