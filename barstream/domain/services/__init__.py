"""Domain services - Pure aggregation and indicator logic with no external dependencies."""
from barstream.domain.services.bar_accumulator import AccumulatorMode, AccumulatorState, TickAccumulator
from barstream.domain.services.source_aggregator import AggregatorState, MergePolicy, SourceAggregator
from barstream.domain.services.indicator_calculator import IndicatorCalculator

__all__ = [
    "AccumulatorMode",
    "AccumulatorState",
    "TickAccumulator",
    "AggregatorState",
    "MergePolicy",
    "SourceAggregator",
    "IndicatorCalculator",
]
