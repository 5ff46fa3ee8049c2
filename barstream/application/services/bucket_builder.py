"""
BarStream – Bucket Builder
===========================
Mantiene el bucket abierto de UN mercado: una barra parcial por fuente
más el volumen comprador / vendedor del bucket.

ALGORITMO:
  1. El primer tick abre un bucket alineado: floor(time / interval) · interval.
  2. Cada tick con time < close_time actualiza la barra parcial de su
     fuente (TickAccumulator) y el volumen del bucket.
  3. Un tick con time ≥ close_time cierra el bucket: se devuelve un
     ClosedBucket congelado y se abre uno nuevo alineado al tick.

FUENTES INACTIVAS:
  Una fuente vista en buckets anteriores y sin trades en el actual aparece
  como SourceSnapshot(open=None): el agregador la ignora.

SNAPSHOTS EXTERNOS:
  replace_snapshots() permite que el colaborador upstream entregue ya
  las barras parciales por fuente en lugar de ticks.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Set

from barstream.domain.services.bar_accumulator import (
    AccumulatorMode,
    AccumulatorState,
    TickAccumulator,
)
from barstream.domain.value_objects.source_snapshot import CandleVolume, SourceSnapshot
from barstream.domain.value_objects.tick import SELL, Tick
from barstream.shared.logging.logger import get_logger

logger = get_logger("bucket_builder")


@dataclass(frozen=True)
class ClosedBucket:
    """Bucket cerrado: snapshots finales por fuente + volumen."""

    open_time: float
    close_time: float
    snapshots: Dict[str, SourceSnapshot]
    volume: CandleVolume
    tick_count: int


@dataclass
class _OpenBucket:
    """Bucket mutable en construcción (solo uso interno)."""

    open_time: float
    close_time: float
    accumulators: Dict[str, AccumulatorState] = field(default_factory=dict)
    external: Optional[Dict[str, SourceSnapshot]] = None
    vbuy: float = 0.0
    vsell: float = 0.0
    tick_count: int = 0


class BucketBuilder:
    """
    Construye los snapshots por fuente de un mercado a partir de ticks.

    Uso:
        builder = BucketBuilder(interval=60)
        closed = builder.add_tick(tick)
        if closed:
            # bucket completado → agregar, evaluar indicadores
    """

    def __init__(
        self,
        interval: float,
        mode: AccumulatorMode = AccumulatorMode.OHLC,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval debe ser positivo")
        self._interval = interval
        self._mode = AccumulatorMode(mode)
        self._bucket: Optional[_OpenBucket] = None
        self._known_sources: Set[str] = set()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def open_time(self) -> Optional[float]:
        return self._bucket.open_time if self._bucket else None

    def _align_time(self, epoch: float) -> float:
        """Alinear un timestamp al inicio de su bucket."""
        return math.floor(epoch / self._interval) * self._interval

    def _open(self, epoch: float) -> _OpenBucket:
        open_time = self._align_time(epoch)
        self._bucket = _OpenBucket(open_time=open_time, close_time=open_time + self._interval)
        return self._bucket

    def roll(self, epoch: float) -> Optional[ClosedBucket]:
        """
        Asegurar que el bucket abierto contiene `epoch`.

        Retorna el bucket cerrado si `epoch` cae fuera del bucket actual.
        """
        bucket = self._bucket
        if bucket is None:
            self._open(epoch)
            return None
        if epoch < bucket.close_time:
            return None

        closed = self._freeze(bucket)
        self._open(epoch)
        return closed

    def add_tick(self, tick: Tick) -> Optional[ClosedBucket]:
        """Procesar un tick. Retorna ClosedBucket si el bucket se cerró."""
        closed = self.roll(tick.time)
        bucket = self._bucket

        state = bucket.accumulators.get(tick.source)
        if state is None:
            state = AccumulatorState()
            bucket.accumulators[tick.source] = state
        self._known_sources.add(tick.source)

        TickAccumulator.accumulate(self._mode, state, tick.price, bucket.open_time)

        if tick.side == SELL:
            bucket.vsell += tick.volume
        else:
            bucket.vbuy += tick.volume
        bucket.tick_count += 1

        return closed

    def replace_snapshots(
        self,
        epoch: float,
        snapshots: Mapping[str, SourceSnapshot],
        volume: Optional[CandleVolume] = None,
    ) -> Optional[ClosedBucket]:
        """Fijar los snapshots por fuente entregados por el colaborador upstream."""
        closed = self.roll(epoch)
        bucket = self._bucket
        bucket.external = dict(snapshots)
        self._known_sources.update(snapshots)
        if volume is not None:
            bucket.vbuy = volume.vbuy
            bucket.vsell = volume.vsell
        bucket.tick_count += 1
        return closed

    def flush(self) -> Optional[ClosedBucket]:
        """Cerrar el bucket abierto sin abrir otro (fin de stream)."""
        if self._bucket is None:
            return None
        closed = self._freeze(self._bucket)
        self._bucket = None
        return closed

    def snapshots(self) -> Dict[str, SourceSnapshot]:
        """Snapshots del bucket abierto (preview en tiempo real)."""
        if self._bucket is None:
            return {}
        return self._snapshots_of(self._bucket)

    def volume(self) -> CandleVolume:
        if self._bucket is None:
            return CandleVolume()
        return CandleVolume(vbuy=self._bucket.vbuy, vsell=self._bucket.vsell)

    def _snapshots_of(self, bucket: _OpenBucket) -> Dict[str, SourceSnapshot]:
        if bucket.external is not None:
            return dict(bucket.external)

        result: Dict[str, SourceSnapshot] = {}
        for source in sorted(self._known_sources):
            state = bucket.accumulators.get(source)
            if state is None or not state.is_open:
                result[source] = SourceSnapshot.inactive()
            else:
                result[source] = SourceSnapshot(
                    open=state.open, high=state.high, low=state.low, close=state.close,
                )
        return result

    def _freeze(self, bucket: _OpenBucket) -> ClosedBucket:
        closed = ClosedBucket(
            open_time=bucket.open_time,
            close_time=bucket.close_time,
            snapshots=self._snapshots_of(bucket),
            volume=CandleVolume(vbuy=bucket.vbuy, vsell=bucket.vsell),
            tick_count=bucket.tick_count,
        )
        logger.debug(
            "Bucket cerrado t=%.0f fuentes=%d ticks=%d vbuy=%.4f vsell=%.4f",
            closed.open_time,
            len(closed.snapshots),
            closed.tick_count,
            closed.volume.vbuy,
            closed.volume.vsell,
        )
        return closed
