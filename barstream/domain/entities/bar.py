"""
BarStream – Domain Entity: Bar
===============================
Barra OHLC canónica de un bucket temporal.

Decisiones de diseño:
- frozen=True → una barra entregada no se puede alterar. La barra "viva"
  del bucket abierto se reconstruye en cada actualización; la barra sellada
  al cerrar el bucket es definitiva.
- Se usa dataclass por rendimiento (más ligera que Pydantic para hot-path).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Bar:
    """Barra OHLC con timestamp de apertura del bucket."""

    time: float      # epoch de apertura del bucket
    open: float
    high: float
    low: float
    close: float

    def field(self, name: str) -> float:
        """Valor de un campo OHLC por nombre ("open", "high", "low", "close")."""
        if name not in BAR_FIELDS:
            raise KeyError(name)
        return getattr(self, name)

    def to_dict(self) -> dict:
        """Serialización para la capa de render / suscripciones."""
        return {
            "time": self.time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
        }


BAR_FIELDS = ("open", "high", "low", "close")
