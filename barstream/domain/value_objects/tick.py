"""
BarStream – Domain Value Object: Tick
======================================
Trade individual ya normalizado por el colaborador de red (una fuente =
un exchange conectado).

- frozen=True → inmutable, seguro para pasarlo entre componentes.
- slots=True  → menor footprint de memoria en hot-path.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from barstream.domain.exceptions.domain_errors import InvalidTickError

BUY = "buy"
SELL = "sell"


@dataclass(frozen=True, slots=True)
class Tick:
    """Trade atómico de una fuente para un mercado."""

    market: str       # e.g. "BTCUSD"
    source: str       # identificador de la fuente, e.g. "BINANCE:btcusdt"
    time: float       # timestamp UNIX (segundos)
    price: float
    volume: float = 0.0
    side: str = BUY   # "buy" | "sell"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Tick":
        """Construir un Tick desde un evento del productor upstream."""
        try:
            tick = cls(
                market=str(data["market"]),
                source=str(data["source"]),
                time=float(data.get("time", data.get("timestamp"))),
                price=float(data["price"]),
                volume=float(data.get("volume", 0.0)),
                side=str(data.get("side", BUY)).lower(),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidTickError(f"Evento de trade inválido: {exc}", payload=dict(data)) from exc

        if tick.side not in (BUY, SELL):
            raise InvalidTickError(f"Lado de trade desconocido: {tick.side!r}", payload=dict(data))
        if not (math.isfinite(tick.price) and math.isfinite(tick.time)):
            raise InvalidTickError("Precio o timestamp no finito", payload=dict(data))
        return tick

    def to_dict(self) -> dict:
        return {
            "market": self.market,
            "source": self.source,
            "time": self.time,
            "price": self.price,
            "volume": self.volume,
            "side": self.side,
        }
