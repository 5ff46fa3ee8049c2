"""
BarStream – Domain Entity: Indicator state
===========================================
Memoria por instancia de indicador.

DISEÑO:
- IndicatorState pertenece a UNA sola instancia de indicador. Nunca se
  comparte entre instancias ni entre mercados: cada instancia recibe un
  estado nuevo del factory (ver application/state/indicator_state.py).
- `points` es un deque(maxlen=window): el recorte de ventana lo hace el
  propio deque al añadir el punto nuevo.
- `count` cuenta las barras observadas desde la creación; distingue el
  warm-up (count < ventana) del régimen estable y puede superar
  len(points).

CONTRATO CON EL CATÁLOGO:
- Las fórmulas reciben el estado con la historia de las barras
  ESTRICTAMENTE anteriores a la actual y devuelven un IndicatorResult.
- La mutación (append / count / sum / money flow) la aplica el wrapper
  IndicatorInstance después de que la fórmula retorna.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Dict, Optional, Sequence

from barstream.domain.entities.bar import Bar
from barstream.domain.value_objects.source_snapshot import CandleVolume


class IndicatorKind(str, Enum):
    """Catálogo cerrado de tipos de indicador."""

    AVG = "avg"
    SUM = "sum"
    SMA = "sma"
    CMA = "cma"
    EMA = "ema"
    HIGHEST = "highest"
    LOWEST = "lowest"
    LINREG = "linreg"
    MFI = "mfi"


# Tipos que exigen `length`
WINDOWED_KINDS = frozenset({
    IndicatorKind.SMA,
    IndicatorKind.EMA,
    IndicatorKind.HIGHEST,
    IndicatorKind.LOWEST,
    IndicatorKind.LINREG,
    IndicatorKind.MFI,
})

# Tipos que mantienen `sum`
SUM_KINDS = frozenset({IndicatorKind.SUM, IndicatorKind.SMA, IndicatorKind.CMA})


def window_size(kind: IndicatorKind, length: Optional[int]) -> int:
    """Tamaño máximo de `points` para un tipo de indicador."""
    if kind in WINDOWED_KINDS or (kind is IndicatorKind.SUM and length):
        return int(length)
    return 1


def rolls_sum(kind: IndicatorKind, length: Optional[int]) -> bool:
    """¿`sum` debe restar el punto que sale de la ventana?"""
    return kind is IndicatorKind.SMA or (kind is IndicatorKind.SUM and bool(length))


@dataclass
class MoneyFlowState:
    """
    Acumuladores del money-flow-index.

    pmf1 / nmf1 están indexados por `count` ABSOLUTO (no por posición en el
    buffer): la compactación borra claves antiguas sin desplazar las demás.
    Invariante: pmf14 / nmf14 = suma de las entradas de los últimos
    `length` índices absolutos.
    """

    pmf1: Dict[int, float] = field(default_factory=dict)
    nmf1: Dict[int, float] = field(default_factory=dict)
    pmf14: float = 0.0
    nmf14: float = 0.0
    prev_typical_price: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "pmf1": dict(self.pmf1),
            "nmf1": dict(self.nmf1),
            "pmf14": self.pmf14,
            "nmf14": self.nmf14,
            "prev_typical_price": self.prev_typical_price,
        }


@dataclass
class IndicatorState:
    """Estado persistente de UNA instancia de indicador."""

    kind: IndicatorKind
    length: Optional[int] = None
    output: Optional[float] = None
    count: int = 0
    sum: float = 0.0
    points: Deque[float] = field(default_factory=lambda: deque(maxlen=1))
    money_flow: Optional[MoneyFlowState] = None

    @property
    def window(self) -> int:
        return self.points.maxlen or 0

    @property
    def is_warm(self) -> bool:
        """¿Ventana completa?"""
        return self.count >= self.window

    def to_dict(self) -> dict:
        """Estado opaco para que el host pinte series sin recalcular."""
        data = {
            "kind": self.kind.value,
            "length": self.length,
            "output": self.output,
            "count": self.count,
            "sum": self.sum,
            "points": list(self.points),
        }
        if self.money_flow is not None:
            data["money_flow"] = self.money_flow.to_dict()
        return data


@dataclass(frozen=True, slots=True)
class IndicatorInputs:
    """
    Muestra de la barra actual para una fórmula.

    - value:  escalar (close u output de un indicador anterior)
    - values: valores concurrentes por fuente (None = fuente inactiva), para `avg`
    - bar / volume: barra completa y volumen comprador/vendedor, para `mfi`
    """

    value: Optional[float] = None
    values: Sequence[Optional[float]] = ()
    bar: Optional[Bar] = None
    volume: Optional[CandleVolume] = None


@dataclass(frozen=True, slots=True)
class MoneyFlowStep:
    """Contribución de money flow calculada para la barra actual."""

    index: int
    positive: bool
    raw_money_flow: float
    typical_price: float
    pmf14: float
    nmf14: float


@dataclass(frozen=True, slots=True)
class IndicatorResult:
    """
    Salida de una fórmula.

    output: valor para la barra actual (None = sin valor aún).
    record: muestra que la contabilidad añade a `points` (None = no añadir).
    """

    output: Optional[float]
    record: Optional[float]
    money_flow: Optional[MoneyFlowStep] = None
