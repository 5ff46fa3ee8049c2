"""Domain entities."""
from barstream.domain.entities.bar import Bar, BAR_FIELDS
from barstream.domain.entities.indicator import (
    IndicatorInputs,
    IndicatorKind,
    IndicatorResult,
    IndicatorState,
    MoneyFlowState,
    MoneyFlowStep,
)

__all__ = [
    "Bar",
    "BAR_FIELDS",
    "IndicatorInputs",
    "IndicatorKind",
    "IndicatorResult",
    "IndicatorState",
    "MoneyFlowState",
    "MoneyFlowStep",
]
