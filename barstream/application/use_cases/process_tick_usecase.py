"""
BarStream – Process Tick Use Case (pipeline por mercado)
=========================================================
Caso de uso central: consume ticks (o snapshots por fuente) de UN
mercado, mantiene la barra unificada viva y, en cada cierre de bucket,
evalúa la cadena de indicadores.

FLUJO:
  tick
   │
   ├── BucketBuilder.add_tick(tick)        → barra parcial de la fuente
   │       │
   │       └── Si bucket cerrado:
   │               ├── SourceAggregator  → barra canónica sellada
   │               ├── IndicatorService.update(bar)  (orden fijo)
   │               └── PipelineOutput {bar, outputs, states}
   │
   └── SourceAggregator → barra viva del bucket abierto (current_bar)

CONCURRENCIA:
- Síncrono, sin await, sin I/O. Cada mercado tiene su propia instancia y
  no comparte estado mutable con otros mercados.
- Los ticks de un mercado deben llegar a UNA sola instancia, en orden.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Union

from barstream.application.dto.indicator_config import PipelineConfig
from barstream.application.dto.pipeline_output import PipelineOutput
from barstream.application.services.bucket_builder import BucketBuilder, ClosedBucket
from barstream.application.services.indicator_service import IndicatorService
from barstream.domain.entities.bar import Bar
from barstream.domain.services.bar_accumulator import AccumulatorState, TickAccumulator
from barstream.domain.services.source_aggregator import (
    AggregatorState,
    MergePolicy,
    SourceAggregator,
)
from barstream.domain.value_objects.source_snapshot import CandleVolume, SourceSnapshot
from barstream.domain.value_objects.tick import Tick
from barstream.shared.logging.logger import get_logger

logger = get_logger("process_tick")

SnapshotLike = Union[SourceSnapshot, Mapping[str, Any]]


class ProcessTickUseCase:
    """
    Pipeline de barras + indicadores de UN mercado.

    Uso:
        pipeline = ProcessTickUseCase("BTCUSD", PipelineConfig(interval=60))
        output = pipeline.process_tick(tick)
        if output:
            # bucket cerrado → output.bar, output.outputs
    """

    def __init__(self, market: str, config: Optional[PipelineConfig] = None) -> None:
        self._market = market
        self._config = config or PipelineConfig()
        self._builder = BucketBuilder(self._config.interval, self._config.accumulator_mode)
        self._indicators = IndicatorService(self._config.indicators)
        self._agg_state = AggregatorState()
        self._close_state = AccumulatorState()
        self._live_bar: Optional[Bar] = None
        self._closed_count = 0

        logger.info(
            "Pipeline '%s' inicializada (intervalo=%ss, política=%s, indicadores=%d)",
            market,
            self._config.interval,
            self._config.merge_policy.value,
            len(self._indicators),
        )

    @property
    def market(self) -> str:
        return self._market

    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def indicators(self) -> IndicatorService:
        return self._indicators

    @property
    def closed_count(self) -> int:
        return self._closed_count

    # ════════════════════════════════════════════════════════════════
    #  ENTRADAS
    # ════════════════════════════════════════════════════════════════

    def process_tick(self, tick: Tick) -> Optional[PipelineOutput]:
        """Procesar un trade. Retorna PipelineOutput si cerró un bucket."""
        closed = self._builder.add_tick(tick)
        return self._after_update(closed)

    def process_ticks(self, ticks: Iterable[Tick]) -> list[PipelineOutput]:
        """Procesar ticks en orden; retorna los buckets cerrados."""
        outputs = []
        for tick in ticks:
            output = self.process_tick(tick)
            if output is not None:
                outputs.append(output)
        return outputs

    def process_snapshots(
        self,
        time: float,
        snapshots: Mapping[str, SnapshotLike],
        volume: Optional[CandleVolume] = None,
    ) -> Optional[PipelineOutput]:
        """Recibir los snapshots por fuente ya construidos por el colaborador upstream."""
        parsed = {
            source: snap if isinstance(snap, SourceSnapshot) else SourceSnapshot.from_dict(snap)
            for source, snap in snapshots.items()
        }
        closed = self._builder.replace_snapshots(time, parsed, volume)
        return self._after_update(closed)

    def flush(self) -> Optional[PipelineOutput]:
        """Cerrar el bucket abierto (fin de stream)."""
        closed = self._builder.flush()
        if closed is None:
            return None
        output = self._seal(closed)
        self._reset_bucket_state()
        return output

    def current_bar(self) -> Optional[Bar]:
        """Barra unificada viva del bucket abierto."""
        return self._live_bar

    # ════════════════════════════════════════════════════════════════
    #  INTERNOS
    # ════════════════════════════════════════════════════════════════

    def _after_update(self, closed: Optional[ClosedBucket]) -> Optional[PipelineOutput]:
        output = None
        if closed is not None:
            # El estado del agregador aún es el del bucket que cierra
            output = self._seal(closed)
            self._reset_bucket_state()

        self._live_bar = self._aggregate(
            self._builder.snapshots(), self._builder.open_time,
        )
        return output

    def _aggregate(self, snapshots: Mapping[str, SourceSnapshot], time: float) -> Bar:
        policy = self._config.merge_policy
        if policy is MergePolicy.AVG_OHLC:
            return SourceAggregator.avg_ohlc(self._agg_state, snapshots, time)
        if policy is MergePolicy.SUM_OHLC:
            return SourceAggregator.sum_ohlc(self._agg_state, snapshots, time)
        close = SourceAggregator.avg_close(self._agg_state, snapshots)
        return TickAccumulator.ohlc(self._close_state, close, time)

    def _seal(self, closed: ClosedBucket) -> PipelineOutput:
        bar = self._aggregate(closed.snapshots, closed.open_time)
        outputs = self._indicators.update(bar, closed.snapshots, closed.volume)
        self._closed_count += 1

        active = sum(1 for snap in closed.snapshots.values() if snap.is_active)
        if not active:
            logger.debug("Bucket %.0f de '%s' cerrado sin fuentes activas", closed.open_time, self._market)

        logger.debug(
            "Barra cerrada: %s t=%.0f O=%.5f H=%.5f L=%.5f C=%.5f fuentes=%d",
            self._market, bar.time, bar.open, bar.high, bar.low, bar.close, active,
        )

        return PipelineOutput(
            market=self._market,
            bar=bar,
            volume=closed.volume,
            outputs=outputs,
            states=self._indicators.snapshot(),
            active_sources=active,
        )

    def _reset_bucket_state(self) -> None:
        self._agg_state = AggregatorState()
        self._close_state = AccumulatorState()
        self._live_bar = None
