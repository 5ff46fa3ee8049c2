"""
BarStream – Indicator State Management
=======================================
Factory de estado + wrapper de contabilidad por instancia de indicador.

DISEÑO:
- Cada instancia de indicador tiene su propio IndicatorState, creado por
  create_indicator_state(). No hay plantillas globales compartidas: dos
  instancias del mismo tipo (o dos mercados) nunca comparten memoria.
- IndicatorInstance es el ÚNICO que muta el estado:
    1. llama a la fórmula pura con la historia anterior a la barra actual
    2. DESPUÉS aplica la contabilidad: output, append a points (el deque
       recorta la ventana), sum, money flow, count += 1
  Así ninguna fórmula ve su propia muestra actual dentro de la historia.

WARM-UP:
- `count` cuenta barras observadas desde la creación.
- state.is_warm indica ventana completa (count ≥ ventana).
"""

from __future__ import annotations

from collections import deque
from typing import Optional

from barstream.application.dto.indicator_config import IndicatorConfig
from barstream.domain.entities.indicator import (
    IndicatorInputs,
    IndicatorKind,
    IndicatorResult,
    IndicatorState,
    MoneyFlowState,
    MoneyFlowStep,
    SUM_KINDS,
    rolls_sum,
    window_size,
)
from barstream.domain.services.indicator_calculator import IndicatorCalculator
from barstream.shared.logging.logger import get_logger

logger = get_logger("indicator_state")


def create_indicator_state(config: IndicatorConfig) -> IndicatorState:
    """Estado nuevo e independiente para una instancia de indicador."""
    return IndicatorState(
        kind=config.kind,
        length=config.length,
        points=deque(maxlen=window_size(config.kind, config.length)),
        money_flow=MoneyFlowState() if config.kind is IndicatorKind.MFI else None,
    )


class IndicatorInstance:
    """
    Dueño exclusivo de un IndicatorState.

    Uso:
        instance = IndicatorInstance(IndicatorConfig(id="ema9", kind="ema", length=9))
        output = instance.update(IndicatorInputs(value=bar.close))
    """

    def __init__(self, config: IndicatorConfig) -> None:
        self._config = config
        self._state = create_indicator_state(config)
        self._tracks_sum = config.kind in SUM_KINDS
        self._rolls_sum = rolls_sum(config.kind, config.length)

    @property
    def id(self) -> str:
        return self._config.id

    @property
    def config(self) -> IndicatorConfig:
        return self._config

    @property
    def state(self) -> IndicatorState:
        return self._state

    @property
    def output(self) -> Optional[float]:
        return self._state.output

    def update(self, inputs: IndicatorInputs) -> Optional[float]:
        """Evaluar la fórmula para la barra actual y luego aplicar la contabilidad."""
        result = IndicatorCalculator.evaluate(
            self._config.kind, self._state, inputs, self._config.length,
        )
        self._commit(result)
        return result.output

    def _commit(self, result: IndicatorResult) -> None:
        state = self._state
        state.output = result.output

        if result.money_flow is not None:
            self._apply_money_flow(result.money_flow)

        if result.record is not None:
            points = state.points
            evicted = points[0] if len(points) == points.maxlen else None
            points.append(result.record)
            if self._tracks_sum:
                state.sum += result.record
                if self._rolls_sum and evicted is not None:
                    state.sum -= evicted

        state.count += 1

    def _apply_money_flow(self, step: MoneyFlowStep) -> None:
        flow = self._state.money_flow
        length = self._config.length

        if step.positive:
            flow.pmf1[step.index] = step.raw_money_flow
        else:
            flow.nmf1[step.index] = step.raw_money_flow

        flow.pmf14 = step.pmf14
        flow.nmf14 = step.nmf14
        flow.prev_typical_price = step.typical_price

        # La próxima barra retira el índice (index + 1 − length): todo lo
        # anterior ya no forma parte de la ventana.
        oldest = step.index - length
        for buffer in (flow.pmf1, flow.nmf1):
            for index in [i for i in buffer if i <= oldest]:
                del buffer[index]

    def __repr__(self) -> str:
        return (
            f"IndicatorInstance(id={self.id!r}, kind={self._config.kind.value}, "
            f"count={self._state.count})"
        )
