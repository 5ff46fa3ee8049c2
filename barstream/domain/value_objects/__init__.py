"""Domain value objects."""
from barstream.domain.value_objects.tick import Tick, BUY, SELL
from barstream.domain.value_objects.source_snapshot import SourceSnapshot, CandleVolume

__all__ = ["Tick", "BUY", "SELL", "SourceSnapshot", "CandleVolume"]
