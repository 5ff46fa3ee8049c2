"""
BarStream – Market State Manager
=================================
Registro de pipelines: UNA ProcessTickUseCase por mercado.

AISLAMIENTO:
- Cada mercado tiene su propia pipeline con su propio BucketBuilder,
  agregador e IndicatorService. No hay estado mutable compartido entre
  mercados, así que se pueden procesar en paralelo sin locks siempre que
  los ticks de un mercado lleguen a una sola instancia y en orden.

PROTECCIÓN DE MEMORIA:
- El historial de barras cerradas usa deque(maxlen) → descarta
  automáticamente las más antiguas.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional

from barstream.application.dto.indicator_config import PipelineConfig
from barstream.application.dto.pipeline_output import PipelineOutput
from barstream.application.use_cases.process_tick_usecase import ProcessTickUseCase
from barstream.domain.value_objects.tick import Tick
from barstream.shared.logging.logger import get_logger

logger = get_logger("market_state")


@dataclass
class MarketState:
    """Estado de UN mercado: su pipeline + historial de barras cerradas."""

    market: str
    pipeline: ProcessTickUseCase
    history: Deque[PipelineOutput] = field(default_factory=deque)
    total_ticks: int = 0
    last_price: Optional[float] = None


class MarketStateManager:
    """
    Gestor centralizado de pipelines por mercado.

    Acceso: manager.get_or_create(market) → MarketState
    """

    def __init__(
        self,
        default_config: Optional[PipelineConfig] = None,
        max_outputs: int = 500,
    ) -> None:
        self._default_config = default_config or PipelineConfig()
        self._max_outputs = max_outputs
        self._states: Dict[str, MarketState] = {}

    def get_or_create(
        self, market: str, config: Optional[PipelineConfig] = None,
    ) -> MarketState:
        """Obtener el estado de un mercado; crearlo si no existe."""
        state = self._states.get(market)
        if state is None:
            pipeline = ProcessTickUseCase(market, config or self._default_config)
            state = MarketState(
                market=market,
                pipeline=pipeline,
                history=deque(maxlen=self._max_outputs),
            )
            self._states[market] = state
            logger.info("Estado creado para mercado '%s' (max_outputs=%d)",
                        market, self._max_outputs)
        return state

    def get(self, market: str) -> Optional[MarketState]:
        return self._states.get(market)

    def remove(self, market: str) -> None:
        """Eliminar un mercado junto con su pipeline e indicadores."""
        if self._states.pop(market, None) is not None:
            logger.info("Mercado '%s' eliminado", market)

    def process_tick(self, tick: Tick) -> Optional[PipelineOutput]:
        """Enrutar un tick a la pipeline de su mercado."""
        state = self.get_or_create(tick.market)
        state.total_ticks += 1
        state.last_price = tick.price

        output = state.pipeline.process_tick(tick)
        if output is not None:
            state.history.append(output)
        return output

    def flush(self) -> List[PipelineOutput]:
        """Cerrar los buckets abiertos de todos los mercados."""
        outputs = []
        for state in self._states.values():
            output = state.pipeline.flush()
            if output is not None:
                state.history.append(output)
                outputs.append(output)
        return outputs

    def get_history(self, market: str, count: int | None = None) -> List[PipelineOutput]:
        """Últimas N barras cerradas de un mercado."""
        state = self._states.get(market)
        if state is None:
            return []
        if count is None:
            return list(state.history)
        if count <= 0:
            return []
        return list(state.history)[-count:]

    def get_all_markets(self) -> List[str]:
        return list(self._states.keys())

    def snapshot(self) -> dict:
        """Snapshot completo para diagnóstico."""
        result = {}
        for market, s in self._states.items():
            live = s.pipeline.current_bar()
            result[market] = {
                "last_price": s.last_price,
                "total_ticks": s.total_ticks,
                "closed_bars": s.pipeline.closed_count,
                "bars_in_buffer": len(s.history),
                "live_bar": live.to_dict() if live else None,
                "indicators": s.pipeline.indicators.ids,
            }
        return result
