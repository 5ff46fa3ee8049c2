"""
Tests de integración de la pipeline por mercado (ProcessTickUseCase):
ticks → buckets → barra canónica → cadena de indicadores.
"""

import pytest

from barstream.application.dto.indicator_config import PipelineConfig
from barstream.application.use_cases.process_tick_usecase import ProcessTickUseCase
from barstream.domain.value_objects.source_snapshot import CandleVolume, SourceSnapshot


def _pipeline(**kwargs):
    return ProcessTickUseCase("BTCUSD", PipelineConfig(**kwargs))


class TestTickFlow:
    def test_no_output_until_bucket_closes(self, make_tick):
        pipeline = _pipeline(interval=60)

        assert pipeline.process_tick(make_tick(1.0, 100.0)) is None
        assert pipeline.closed_count == 0
        assert pipeline.current_bar().close == 100.0

    def test_two_sources_averaged(self, make_tick):
        pipeline = _pipeline(interval=60, indicators=[{"id": "ema9", "kind": "ema", "length": 9}])
        pipeline.process_tick(make_tick(1.0, 10.0, source="A"))
        pipeline.process_tick(make_tick(2.0, 20.0, source="B"))

        output = pipeline.process_tick(make_tick(61.0, 30.0, source="A"))

        assert output.market == "BTCUSD"
        assert output.bar.time == 0.0
        assert output.bar.close == 15.0
        assert output.active_sources == 2
        assert output.outputs == {"ema9": 15.0}
        assert output.states["ema9"]["count"] == 1

    def test_inactive_source_ignored_in_next_bucket(self, make_tick):
        pipeline = _pipeline(interval=60)
        pipeline.process_tick(make_tick(1.0, 10.0, source="A"))
        pipeline.process_tick(make_tick(2.0, 50.0, source="B"))
        pipeline.process_tick(make_tick(61.0, 12.0, source="A"))

        output = pipeline.process_tick(make_tick(121.0, 13.0, source="A"))

        assert output.bar.close == 12.0
        assert output.active_sources == 1

    def test_open_fixed_by_first_preview(self, make_tick):
        pipeline = _pipeline(interval=60)
        pipeline.process_tick(make_tick(1.0, 10.0, source="A"))
        pipeline.process_tick(make_tick(2.0, 30.0, source="B"))

        output = pipeline.process_tick(make_tick(60.0, 1.0, source="A"))

        assert output.bar.open == 10.0
        assert output.bar.close == 20.0

    def test_ema_sequence_over_buckets(self, make_tick):
        pipeline = _pipeline(interval=60, indicators=[{"id": "ema9", "kind": "ema", "length": 9}])
        outputs = pipeline.process_ticks([
            make_tick(0.0, 100.0),
            make_tick(60.0, 110.0),
            make_tick(120.0, 110.0),
        ])

        assert [o.outputs["ema9"] for o in outputs] == [100.0, pytest.approx(102.0)]

    def test_flush_emits_open_bucket(self, make_tick):
        pipeline = _pipeline(interval=60, indicators=[{"id": "c", "kind": "cma"}])
        pipeline.process_tick(make_tick(0.0, 4.0))

        output = pipeline.flush()
        assert output.bar.close == 4.0
        assert output.outputs == {"c": 4.0}
        assert pipeline.flush() is None
        assert pipeline.current_bar() is None

    def test_volume_reaches_output(self, make_tick):
        pipeline = _pipeline(interval=60)
        pipeline.process_tick(make_tick(0.0, 1.0, volume=2.0))
        pipeline.process_tick(make_tick(1.0, 1.0, volume=1.0, side="sell"))

        output = pipeline.flush()
        assert output.volume == CandleVolume(vbuy=2.0, vsell=1.0)

    def test_separate_pipelines_do_not_share_indicator_state(self, make_tick):
        config = PipelineConfig(interval=60, indicators=[{"id": "c", "kind": "cma"}])
        first = ProcessTickUseCase("A", config)
        second = ProcessTickUseCase("B", config)

        first.process_ticks([make_tick(0.0, 10.0), make_tick(60.0, 10.0)])
        second.process_tick(make_tick(0.0, 2.0))

        assert second.flush().outputs == {"c": 2.0}


class TestReplay:
    def test_same_ticks_give_identical_outputs(self, make_tick):
        """Reproducir el mismo stream en pipelines nuevas da el mismo resultado exacto."""
        config = PipelineConfig(
            interval=60,
            indicators=[
                {"id": "sma", "kind": "sma", "length": 3},
                {"id": "ema", "kind": "ema", "length": 5, "source": "sma"},
                {"id": "hi", "kind": "highest", "length": 4, "source": "high"},
                {"id": "lr", "kind": "linreg", "length": 4},
                {"id": "mfi", "kind": "mfi", "length": 3},
            ],
        )
        ticks = [
            make_tick(
                i * 7.0,
                100.0 + (i % 11) - (i % 5) * 0.5,
                source="AB"[i % 2],
                volume=1.0 + (i % 3),
                side="sell" if i % 4 == 0 else "buy",
            )
            for i in range(200)
        ]

        def replay():
            pipeline = ProcessTickUseCase("BTCUSD", config)
            outputs = pipeline.process_ticks(ticks)
            outputs.append(pipeline.flush())
            return [o.to_dict() for o in outputs]

        first = replay()
        assert len(first) > 10
        assert first == replay()


class TestMergePolicies:
    def test_avg_close_builds_bar_from_mean_close(self, make_tick):
        pipeline = _pipeline(interval=60, merge_policy="avg_close")
        pipeline.process_tick(make_tick(1.0, 10.0, source="A"))
        pipeline.process_tick(make_tick(2.0, 30.0, source="B"))
        pipeline.process_tick(make_tick(3.0, 14.0, source="A"))

        output = pipeline.flush()
        # closes medios sucesivos: 10, 20, 22
        assert output.bar.open == 10.0
        assert output.bar.high == 22.0
        assert output.bar.low == 10.0
        assert output.bar.close == 22.0

    def test_sum_ohlc(self, make_tick):
        pipeline = _pipeline(interval=60, merge_policy="sum_ohlc")
        pipeline.process_tick(make_tick(1.0, 10.0, source="A"))
        pipeline.process_tick(make_tick(2.0, 20.0, source="B"))

        output = pipeline.flush()
        assert output.bar.close == 30.0
        assert output.bar.high == 30.0


class TestSnapshotInput:
    def test_process_snapshots(self):
        pipeline = _pipeline(interval=60, indicators=[{"id": "s", "kind": "sum"}])
        pipeline.process_snapshots(
            5.0,
            {
                "A": {"open": 1.0, "high": 3.0, "low": 1.0, "close": 2.0},
                "B": SourceSnapshot(open=3.0, high=5.0, low=3.0, close=4.0),
                "C": {"open": None},
            },
            CandleVolume(vbuy=1.0),
        )
        assert pipeline.current_bar().close == 3.0

        output = pipeline.process_snapshots(65.0, {"A": {"open": 2.0, "high": 2.0, "low": 2.0, "close": 2.0}})
        assert output.bar.close == 3.0
        assert output.bar.high == 4.0
        assert output.active_sources == 2
        assert output.volume == CandleVolume(vbuy=1.0)
        assert output.outputs == {"s": 3.0}

    def test_to_dict_is_json_ready(self, make_tick):
        pipeline = _pipeline(interval=60, indicators=[{"id": "c", "kind": "cma"}])
        pipeline.process_tick(make_tick(0.0, 4.0))
        data = pipeline.flush().to_dict()

        assert data["bar"]["close"] == 4.0
        assert data["outputs"] == {"c": 4.0}
        assert data["states"]["c"]["points"] == [4.0]
        assert data["volume"] == {"vbuy": 1.0, "vsell": 0.0}
