"""
BarStream – Domain Service: Indicator Calculator
=================================================
Catálogo de fórmulas de indicadores. Funciones puras, sin dependencias
externas (no TA-Lib, no numpy, solo math puro).

CONTRATO:
  fórmula(state, inputs, length) → IndicatorResult(output, record, money_flow)

  - `state` refleja TODAS las barras estrictamente anteriores a la actual.
  - La fórmula NO muta `state`. La contabilidad (append a points, count,
    sum, recorte de ventana) la hace IndicatorInstance después.
  - `record` es la muestra que se añadirá a `points`.

═══════════════════════════════════════════════════════════════════
                    NOTAS SOBRE LAS FÓRMULAS
═══════════════════════════════════════════════════════════════════

─── highest / lowest ───────────────────────────────────────────
  max/min sobre `points` (barras anteriores). El valor actual entra
  en la ventana en la contabilidad, así que el resultado va UNA muestra
  por detrás de la expectativa ingenua. Se conserva.

─── linreg ─────────────────────────────────────────────────────
  Mínimos cuadrados completos en cada llamada sobre points + [value]
  (value añadido virtualmente, no persistido), x = 1..n:
      slope     = (n·Σxy − Σx·Σy) / (n·Σx² − (Σx)²)
      average   = Σy / n
      intercept = average − slope·Σx/length + slope
      output    = intercept + slope·(n − 1)
  O(ventana) por llamada, sin atajos incrementales.

─── mfi ────────────────────────────────────────────────────────
  typical = high + low + close / 3   (literal: solo el close se divide)
  raw     = typical · |vbuy − vsell|
  Dirección: primera muestra → positiva si open < close;
             después → positiva si typical ≥ typical anterior.
  La contribución se guarda en el índice ABSOLUTO `count`.
  count <  length → 0
  count ≥ length → pmf14 / nmf14 = math.fsum de los índices
                   count−length+1 … count (recalculado, O(ventana))
  MFI = 100 − 100 / (1 + pmf14/nmf14); nmf14 == 0 → 100
"""

from __future__ import annotations

import math
from typing import Callable, Dict, Optional, Sequence

from barstream.domain.entities.indicator import (
    IndicatorInputs,
    IndicatorKind,
    IndicatorResult,
    IndicatorState,
    MoneyFlowStep,
)
from barstream.domain.exceptions.domain_errors import InvalidIndicatorInputError


class IndicatorCalculator:
    """
    Calculadora de indicadores (stateless).

    Para la actualización con estado ver IndicatorInstance en
    application/state/indicator_state.py.
    """

    # ════════════════════════════════════════════════════════════════
    #  PROMEDIOS Y SUMAS
    # ════════════════════════════════════════════════════════════════

    @staticmethod
    def avg(values: Sequence[Optional[float]]) -> float:
        """Media de los valores no-None. Todos None → divisor 1 → 0.0."""
        count = 0
        total = 0.0

        for value in values:
            if value is None:
                continue
            total += value
            count += 1

        if not count:
            count = 1

        return total / count

    @staticmethod
    def sum(state: IndicatorState, value: float, length: Optional[int] = None) -> IndicatorResult:
        total = state.sum + value
        if length and len(state.points) >= length:
            # El punto más antiguo sale de la ventana en esta barra
            total -= state.points[0]
        return IndicatorResult(output=total, record=value)

    @staticmethod
    def sma(state: IndicatorState, value: float, length: int) -> IndicatorResult:
        """
        (sum + value) / (count + 1)

        Con la ventana llena, el punto más antiguo se descuenta para que
        la media cubra exactamente `length` muestras.
        """
        total = state.sum
        count = len(state.points)
        if count >= length:
            total -= state.points[0]
            count = length - 1
        return IndicatorResult(output=(total + value) / (count + 1), record=value)

    @staticmethod
    def cma(state: IndicatorState, value: float) -> IndicatorResult:
        """Media acumulada sobre toda la vida del indicador."""
        return IndicatorResult(output=(state.sum + value) / (state.count + 1), record=value)

    @staticmethod
    def ema(state: IndicatorState, value: float, length: int) -> IndicatorResult:
        k = 2.0 / (length + 1)

        if state.count and state.points:
            last = state.points[-1]
            output = (value - last) * k + last
        else:
            output = value  # seed

        # Se guarda la propia EMA: `last` es siempre la EMA anterior
        return IndicatorResult(output=output, record=output)

    # ════════════════════════════════════════════════════════════════
    #  EXTREMOS
    # ════════════════════════════════════════════════════════════════

    @staticmethod
    def highest(state: IndicatorState, value: float) -> IndicatorResult:
        if state.count and state.points:
            return IndicatorResult(output=max(state.points), record=value)
        return IndicatorResult(output=value, record=value)

    @staticmethod
    def lowest(state: IndicatorState, value: float) -> IndicatorResult:
        if state.count and state.points:
            return IndicatorResult(output=min(state.points), record=value)
        return IndicatorResult(output=value, record=value)

    # ════════════════════════════════════════════════════════════════
    #  REGRESIÓN LINEAL
    # ════════════════════════════════════════════════════════════════

    @staticmethod
    def linreg(state: IndicatorState, value: float, length: int) -> IndicatorResult:
        if state.count < 1:
            return IndicatorResult(output=None, record=value)

        count = 0
        sum_x = 0.0
        sum_y = 0.0
        sum_x_sqr = 0.0
        sum_xy = 0.0

        series = list(state.points)
        series.append(value)

        for i, val in enumerate(series):
            per = i + 1
            sum_x += per
            sum_y += val
            sum_x_sqr += per * per
            sum_xy += val * per
            count += 1

        slope = (count * sum_xy - sum_x * sum_y) / (count * sum_x_sqr - sum_x * sum_x)
        average = sum_y / count
        intercept = average - (slope * sum_x) / length + slope

        return IndicatorResult(output=intercept + slope * (count - 1), record=value)

    # ════════════════════════════════════════════════════════════════
    #  MONEY FLOW INDEX
    # ════════════════════════════════════════════════════════════════

    @staticmethod
    def typical_price(high: float, low: float, close: float) -> float:
        # Fórmula literal: solo el close se divide entre 3
        return high + low + close / 3

    @staticmethod
    def money_flow_index(pmf14: float, nmf14: float) -> float:
        if nmf14 == 0:
            return 100.0
        ratio = pmf14 / nmf14
        return 100.0 - (100.0 / (1.0 + ratio))

    @staticmethod
    def mfi(state: IndicatorState, inputs: IndicatorInputs, length: int) -> IndicatorResult:
        bar = inputs.bar
        volume = inputs.volume
        flow = state.money_flow
        if bar is None or volume is None or flow is None:
            raise InvalidIndicatorInputError("mfi necesita barra, volumen y MoneyFlowState", kind="mfi")

        typical = IndicatorCalculator.typical_price(bar.high, bar.low, bar.close)
        raw_money_flow = typical * abs(volume.vbuy - volume.vsell)

        if flow.prev_typical_price is None:
            positive = bar.open < bar.close
        else:
            positive = not (flow.prev_typical_price > typical)

        index = state.count
        current_p = raw_money_flow if positive else 0.0
        current_n = 0.0 if positive else raw_money_flow
        pmf14 = flow.pmf14
        nmf14 = flow.nmf14

        if index < length:
            output = 0.0
        else:
            # Suma exacta de los índices index−length+1 … index; sin residuos
            # de sumas y restas sucesivas.
            first = index - length + 1
            pmf14 = math.fsum([current_p, *(v for i, v in flow.pmf1.items() if i >= first)])
            nmf14 = math.fsum([current_n, *(v for i, v in flow.nmf1.items() if i >= first)])
            output = IndicatorCalculator.money_flow_index(pmf14, nmf14)

        step = MoneyFlowStep(
            index=index,
            positive=positive,
            raw_money_flow=raw_money_flow,
            typical_price=typical,
            pmf14=pmf14,
            nmf14=nmf14,
        )
        return IndicatorResult(output=output, record=output, money_flow=step)

    # ════════════════════════════════════════════════════════════════
    #  DISPATCH
    # ════════════════════════════════════════════════════════════════

    @classmethod
    def evaluate(
        cls,
        kind: IndicatorKind,
        state: IndicatorState,
        inputs: IndicatorInputs,
        length: Optional[int] = None,
    ) -> IndicatorResult:
        """Punto de entrada único: despacha según el tipo de indicador."""
        return _DISPATCH[kind](state, inputs, length)


_Formula = Callable[[IndicatorState, IndicatorInputs, Optional[int]], IndicatorResult]


def _avg(state: IndicatorState, inputs: IndicatorInputs, length: Optional[int]) -> IndicatorResult:
    output = IndicatorCalculator.avg(inputs.values)
    return IndicatorResult(output=output, record=output)


_DISPATCH: Dict[IndicatorKind, _Formula] = {
    IndicatorKind.AVG: _avg,
    IndicatorKind.SUM: lambda s, i, n: IndicatorCalculator.sum(s, i.value, n),
    IndicatorKind.SMA: lambda s, i, n: IndicatorCalculator.sma(s, i.value, n),
    IndicatorKind.CMA: lambda s, i, n: IndicatorCalculator.cma(s, i.value),
    IndicatorKind.EMA: lambda s, i, n: IndicatorCalculator.ema(s, i.value, n),
    IndicatorKind.HIGHEST: lambda s, i, n: IndicatorCalculator.highest(s, i.value),
    IndicatorKind.LOWEST: lambda s, i, n: IndicatorCalculator.lowest(s, i.value),
    IndicatorKind.LINREG: lambda s, i, n: IndicatorCalculator.linreg(s, i.value, n),
    IndicatorKind.MFI: IndicatorCalculator.mfi,
}
