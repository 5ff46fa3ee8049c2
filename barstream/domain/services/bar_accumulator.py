"""
BarStream – Domain Service: Tick Accumulator
=============================================
Pliega un flujo escalar de precios en una barra OHLC de un bucket.

MODOS:
  ohlc      → primer valor: open = high = low = value.
              Cada valor: high = max, low = min, close = value.
  cum_ohlc  → el primer valor fija `open`; los siguientes son DELTAS:
              effective = open + value, luego el mismo update que ohlc.
              Útil para series que son totales acumulados dentro del
              bucket (volumen acumulado) y no precios instantáneos.
  cum       → escalar: close = open + value, `open` fijado en el primer
              valor. No sigue high/low.

El estado (AccumulatorState) vive UN bucket: al cerrar el bucket se
descarta y el siguiente arranca con uno nuevo. Sin ventana, sin count.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from barstream.domain.entities.bar import Bar


class AccumulatorMode(str, Enum):
    OHLC = "ohlc"
    CUM_OHLC = "cum_ohlc"
    CUM = "cum"


@dataclass
class AccumulatorState:
    """Barra mutable en construcción (solo uso dentro del bucket)."""

    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    close: Optional[float] = None

    @property
    def is_open(self) -> bool:
        return self.open is not None


class TickAccumulator:
    """Funciones de acumulación por bucket. Mutan solo el AccumulatorState recibido."""

    @staticmethod
    def ohlc(state: AccumulatorState, value: float, time: float) -> Bar:
        if state.open is None:
            state.open = value
            state.high = value
            state.low = value

        state.high = max(state.high, value)
        state.low = min(state.low, value)
        state.close = value

        return Bar(time=time, open=state.open, high=state.high, low=state.low, close=state.close)

    @staticmethod
    def cum_ohlc(state: AccumulatorState, value: float, time: float) -> Bar:
        if state.open is None:
            state.open = value
            state.high = value
            state.low = value
        else:
            value = state.open + value

        state.high = max(state.high, value)
        state.low = min(state.low, value)
        state.close = value

        return Bar(time=time, open=state.open, high=state.high, low=state.low, close=state.close)

    @staticmethod
    def cum(state: AccumulatorState, value: float) -> float:
        if state.open is None:
            state.open = value

        state.close = state.open + value
        return state.close

    @classmethod
    def accumulate(
        cls,
        mode: AccumulatorMode,
        state: AccumulatorState,
        value: float,
        time: float,
    ) -> Bar:
        """Punto de entrada por modo para los modos que producen barra."""
        if mode is AccumulatorMode.OHLC:
            return cls.ohlc(state, value, time)
        if mode is AccumulatorMode.CUM_OHLC:
            return cls.cum_ohlc(state, value, time)
        raise ValueError(f"El modo {mode.value!r} no produce una barra OHLC")
