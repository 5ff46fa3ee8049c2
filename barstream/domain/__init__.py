"""
BarStream – Domain Layer
=========================
Núcleo puro del sistema. CERO dependencias de frameworks.

Este módulo contiene:
- entities/: Bar, IndicatorState y tipos del catálogo
- value_objects/: Tick, SourceSnapshot, CandleVolume
- services/: TickAccumulator, SourceAggregator, IndicatorCalculator
- exceptions/: Excepciones de dominio

REGLA DE DEPENDENCIA:
Este módulo NO puede importar de application/ ni de frameworks
externos (pydantic, etc.).
"""

from barstream.domain.entities.bar import Bar
from barstream.domain.entities.indicator import IndicatorKind, IndicatorState
from barstream.domain.value_objects.tick import Tick
from barstream.domain.value_objects.source_snapshot import SourceSnapshot, CandleVolume

__all__ = [
    "Bar",
    "IndicatorKind",
    "IndicatorState",
    "Tick",
    "SourceSnapshot",
    "CandleVolume",
]
