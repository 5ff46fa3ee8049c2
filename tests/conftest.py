"""
Configuración pytest y fixtures compartidas.
"""

from __future__ import annotations

from typing import Callable

import pytest

from barstream.application.dto.indicator_config import IndicatorConfig
from barstream.application.state.indicator_state import IndicatorInstance
from barstream.domain.entities.bar import Bar
from barstream.domain.value_objects.source_snapshot import SourceSnapshot
from barstream.domain.value_objects.tick import Tick


@pytest.fixture
def make_tick() -> Callable[..., Tick]:
    """Fábrica de ticks con valores por defecto razonables."""

    def _make(
        time: float,
        price: float,
        source: str = "BINANCE",
        market: str = "BTCUSD",
        volume: float = 1.0,
        side: str = "buy",
    ) -> Tick:
        return Tick(market=market, source=source, time=time, price=price, volume=volume, side=side)

    return _make


@pytest.fixture
def make_instance() -> Callable[..., IndicatorInstance]:
    """Fábrica de instancias de indicador con estado nuevo."""

    def _make(kind: str, length: int | None = None, id: str | None = None, **kwargs) -> IndicatorInstance:
        config = IndicatorConfig.parse({"id": id or kind, "kind": kind, "length": length, **kwargs})
        return IndicatorInstance(config)

    return _make


@pytest.fixture
def bar() -> Callable[..., Bar]:
    def _make(open: float, high: float, low: float, close: float, time: float = 0.0) -> Bar:
        return Bar(time=time, open=open, high=high, low=low, close=close)

    return _make


@pytest.fixture
def two_sources() -> dict:
    """Dos fuentes activas con closes 10 y 20."""
    return {
        "A": SourceSnapshot(open=10.0, high=12.0, low=9.0, close=10.0),
        "B": SourceSnapshot(open=20.0, high=22.0, low=19.0, close=20.0),
    }
