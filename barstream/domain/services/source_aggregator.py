"""
BarStream – Domain Service: Source Aggregator
==============================================
Fusiona las barras parciales de N fuentes activas en UNA barra por bucket.

POLÍTICAS:
  avg_ohlc   → `open` = media de los open activos, capturada UNA vez por
               bucket (no se recalcula en ticks posteriores).
               high / low / close = media de las fuentes activas en CADA
               llamada.
  avg_close  → mismo filtro de actividad, solo la media del close (escalar).
  sum_ohlc   → política acumulativa: igual que avg_ohlc pero sumando en
               lugar de promediar (series aditivas como el volumen).

ACTIVIDAD:
  Una fuente cuenta si su `open` no es None en este bucket.

SIN FUENTES ACTIVAS:
  El divisor se fuerza a 1 en lugar de lanzar error → la barra sale en
  ceros y NO arrastra el valor anterior. Se conserva tal cual.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from barstream.domain.entities.bar import Bar
from barstream.domain.value_objects.source_snapshot import SourceSnapshot
from barstream.shared.logging.logger import get_logger

logger = get_logger("source_aggregator")


class MergePolicy(str, Enum):
    AVG_OHLC = "avg_ohlc"
    AVG_CLOSE = "avg_close"
    SUM_OHLC = "sum_ohlc"


@dataclass
class AggregatorState:
    """Estado del agregador para el bucket abierto."""

    open: Optional[float] = None
    high: float = 0.0
    low: float = 0.0
    close: float = 0.0


class SourceAggregator:
    """
    Agregador multi-fuente.

    Uso:
        state = AggregatorState()           # uno por bucket
        bar = SourceAggregator.avg_ohlc(state, sources, time)
    """

    @staticmethod
    def avg_ohlc(
        state: AggregatorState,
        sources: Mapping[str, SourceSnapshot],
        time: float,
    ) -> Bar:
        return SourceAggregator._merge_ohlc(state, sources, time, average=True)

    @staticmethod
    def sum_ohlc(
        state: AggregatorState,
        sources: Mapping[str, SourceSnapshot],
        time: float,
    ) -> Bar:
        return SourceAggregator._merge_ohlc(state, sources, time, average=False)

    @staticmethod
    def avg_close(state: AggregatorState, sources: Mapping[str, SourceSnapshot]) -> float:
        nb_sources = 0
        state.close = 0.0

        for snapshot in sources.values():
            if not snapshot.is_active:
                continue
            state.close += snapshot.close
            nb_sources += 1

        if not nb_sources:
            logger.debug("avg_close sin fuentes activas (%d registradas)", len(sources))
            nb_sources = 1

        state.close /= nb_sources
        return state.close

    @staticmethod
    def _merge_ohlc(
        state: AggregatorState,
        sources: Mapping[str, SourceSnapshot],
        time: float,
        average: bool,
    ) -> Bar:
        nb_sources = 0
        set_open = state.open is None
        open_ = 0.0

        state.high = 0.0
        state.low = 0.0
        state.close = 0.0

        for snapshot in sources.values():
            if not snapshot.is_active:
                continue
            if set_open:
                open_ += snapshot.open
            state.high += snapshot.high
            state.low += snapshot.low
            state.close += snapshot.close
            nb_sources += 1

        if not nb_sources:
            logger.debug("Agregación sin fuentes activas (%d registradas)", len(sources))
            nb_sources = 1

        divisor = nb_sources if average else 1

        if set_open:
            state.open = open_ / divisor

        state.high /= divisor
        state.low /= divisor
        state.close /= divisor

        return Bar(time=time, open=state.open, high=state.high, low=state.low, close=state.close)
