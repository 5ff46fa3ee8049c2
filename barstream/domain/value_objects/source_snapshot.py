"""
BarStream – Domain Value Objects: SourceSnapshot / CandleVolume
================================================================
SourceSnapshot: barra parcial de UNA fuente para el bucket en curso.
    open is None → la fuente no tuvo actividad en este bucket y el
    agregador la ignora.

CandleVolume: volumen comprador / vendedor del bucket sumado sobre todas
    las fuentes. Lo consume el money-flow-index.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True, slots=True)
class SourceSnapshot:
    """Barra parcial por fuente (solo lectura para el agregador)."""

    open: Optional[float]
    high: float = 0.0
    low: float = 0.0
    close: float = 0.0

    @property
    def is_active(self) -> bool:
        return self.open is not None

    @classmethod
    def inactive(cls) -> "SourceSnapshot":
        return cls(open=None)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SourceSnapshot":
        open_ = data.get("open")
        return cls(
            open=None if open_ is None else float(open_),
            high=float(data.get("high") or 0.0),
            low=float(data.get("low") or 0.0),
            close=float(data.get("close") or 0.0),
        )

    def to_dict(self) -> dict:
        return {"open": self.open, "high": self.high, "low": self.low, "close": self.close}


@dataclass(frozen=True, slots=True)
class CandleVolume:
    """Volumen del bucket separado por lado."""

    vbuy: float = 0.0
    vsell: float = 0.0

    @property
    def delta(self) -> float:
        return self.vbuy - self.vsell

    def to_dict(self) -> dict:
        return {"vbuy": self.vbuy, "vsell": self.vsell}
