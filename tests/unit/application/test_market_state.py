"""
Tests del MarketStateManager: enrutado por mercado, historial acotado
y aislamiento entre mercados.
"""

from barstream.application.dto.indicator_config import PipelineConfig
from barstream.application.state.market_state import MarketStateManager


def _manager(max_outputs=500, **kwargs):
    config = PipelineConfig(interval=60, indicators=[{"id": "c", "kind": "cma"}], **kwargs)
    return MarketStateManager(default_config=config, max_outputs=max_outputs)


class TestRouting:
    def test_creates_pipeline_per_market(self, make_tick):
        manager = _manager()
        manager.process_tick(make_tick(0.0, 1.0, market="BTCUSD"))
        manager.process_tick(make_tick(0.0, 2.0, market="ETHUSD"))

        assert manager.get_all_markets() == ["BTCUSD", "ETHUSD"]
        assert manager.get("BTCUSD").pipeline is not manager.get("ETHUSD").pipeline

    def test_markets_are_isolated(self, make_tick):
        manager = _manager()
        manager.process_tick(make_tick(0.0, 10.0, market="BTCUSD"))
        manager.process_tick(make_tick(0.0, 2.0, market="ETHUSD"))

        btc = manager.process_tick(make_tick(60.0, 11.0, market="BTCUSD"))
        eth = manager.process_tick(make_tick(60.0, 3.0, market="ETHUSD"))

        assert btc.outputs == {"c": 10.0}
        assert eth.outputs == {"c": 2.0}

    def test_tracks_ticks_and_last_price(self, make_tick):
        manager = _manager()
        manager.process_tick(make_tick(0.0, 1.0))
        manager.process_tick(make_tick(1.0, 5.0))

        state = manager.get("BTCUSD")
        assert state.total_ticks == 2
        assert state.last_price == 5.0

    def test_explicit_config_per_market(self):
        manager = _manager()
        state = manager.get_or_create("X", PipelineConfig(interval=300))

        assert state.pipeline.config.interval == 300
        assert len(state.pipeline.indicators) == 0
        assert manager.get_or_create("X") is state

    def test_remove(self, make_tick):
        manager = _manager()
        manager.process_tick(make_tick(0.0, 1.0))
        manager.remove("BTCUSD")
        manager.remove("unknown")

        assert manager.get("BTCUSD") is None
        assert manager.get_all_markets() == []


class TestHistory:
    def test_history_is_bounded(self, make_tick):
        manager = _manager(max_outputs=2)
        for i in range(5):
            manager.process_tick(make_tick(i * 60.0, float(i)))

        history = manager.get_history("BTCUSD")
        assert [o.bar.close for o in history] == [2.0, 3.0]

    def test_history_count(self, make_tick):
        manager = _manager()
        for i in range(4):
            manager.process_tick(make_tick(i * 60.0, float(i)))

        assert [o.bar.close for o in manager.get_history("BTCUSD", 1)] == [2.0]
        assert manager.get_history("BTCUSD", 0) == []
        assert manager.get_history("BTCUSD", -2) == []
        assert manager.get_history("nope") == []

    def test_flush_all_markets(self, make_tick):
        manager = _manager()
        manager.process_tick(make_tick(0.0, 1.0, market="A"))
        manager.process_tick(make_tick(0.0, 2.0, market="B"))

        outputs = manager.flush()
        assert sorted(o.market for o in outputs) == ["A", "B"]
        assert len(manager.get_history("A")) == 1
        assert manager.flush() == []

    def test_snapshot(self, make_tick):
        manager = _manager()
        manager.process_tick(make_tick(0.0, 1.0))
        manager.process_tick(make_tick(60.0, 2.0))

        snapshot = manager.snapshot()["BTCUSD"]
        assert snapshot["total_ticks"] == 2
        assert snapshot["closed_bars"] == 1
        assert snapshot["live_bar"]["close"] == 2.0
        assert snapshot["indicators"] == ["c"]
