"""
Tests del BucketBuilder: alineación, cierre de bucket, fuentes inactivas
y volumen por lado.
"""

import pytest

from barstream.application.services.bucket_builder import BucketBuilder
from barstream.domain.services.bar_accumulator import AccumulatorMode
from barstream.domain.value_objects.source_snapshot import CandleVolume, SourceSnapshot


class TestAlignment:
    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            BucketBuilder(0)

    def test_first_tick_opens_aligned_bucket(self, make_tick):
        builder = BucketBuilder(60)
        assert builder.open_time is None

        builder.add_tick(make_tick(125.0, 1.0))
        assert builder.open_time == 120.0

    def test_tick_inside_bucket_does_not_close(self, make_tick):
        builder = BucketBuilder(60)
        builder.add_tick(make_tick(120.0, 1.0))

        assert builder.add_tick(make_tick(179.9, 2.0)) is None

    def test_close_time_boundary_closes(self, make_tick):
        builder = BucketBuilder(60)
        builder.add_tick(make_tick(120.0, 1.0))

        closed = builder.add_tick(make_tick(180.0, 2.0))
        assert closed is not None
        assert (closed.open_time, closed.close_time) == (120.0, 180.0)
        assert builder.open_time == 180.0

    def test_gap_realigns_to_tick(self, make_tick):
        builder = BucketBuilder(60)
        builder.add_tick(make_tick(0.0, 1.0))
        builder.add_tick(make_tick(610.0, 1.0))

        assert builder.open_time == 600.0


class TestSnapshots:
    def test_partial_bar_per_source(self, make_tick):
        builder = BucketBuilder(60)
        for price in (10.0, 12.0, 9.0, 11.0):
            builder.add_tick(make_tick(1.0, price, source="A"))
        builder.add_tick(make_tick(2.0, 20.0, source="B"))

        snapshots = builder.snapshots()
        assert snapshots["A"] == SourceSnapshot(open=10.0, high=12.0, low=9.0, close=11.0)
        assert snapshots["B"] == SourceSnapshot(open=20.0, high=20.0, low=20.0, close=20.0)

    def test_silent_source_becomes_inactive(self, make_tick):
        builder = BucketBuilder(60)
        builder.add_tick(make_tick(1.0, 10.0, source="A"))
        builder.add_tick(make_tick(2.0, 20.0, source="B"))
        closed = builder.add_tick(make_tick(61.0, 11.0, source="A"))

        assert set(closed.snapshots) == {"A", "B"}
        assert builder.snapshots()["A"].is_active
        assert not builder.snapshots()["B"].is_active

    def test_cumulative_mode(self, make_tick):
        builder = BucketBuilder(60, mode=AccumulatorMode.CUM_OHLC)
        for value in (5.0, 3.0, -2.0):
            builder.add_tick(make_tick(1.0, value))

        snapshot = builder.snapshots()["BINANCE"]
        assert (snapshot.open, snapshot.high, snapshot.low, snapshot.close) == (5.0, 8.0, 3.0, 3.0)

    def test_replace_snapshots(self):
        builder = BucketBuilder(60)
        snapshots = {"A": SourceSnapshot(open=1.0, high=2.0, low=0.5, close=1.5)}
        builder.replace_snapshots(10.0, snapshots, CandleVolume(vbuy=4.0, vsell=1.0))

        assert builder.snapshots() == snapshots
        assert builder.volume() == CandleVolume(vbuy=4.0, vsell=1.0)


class TestVolumeAndFlush:
    def test_volume_split_by_side(self, make_tick):
        builder = BucketBuilder(60)
        builder.add_tick(make_tick(1.0, 10.0, volume=2.0, side="buy"))
        builder.add_tick(make_tick(2.0, 10.0, volume=0.5, side="sell"))
        builder.add_tick(make_tick(3.0, 10.0, volume=1.0, source="B", side="buy"))

        assert builder.volume() == CandleVolume(vbuy=3.0, vsell=0.5)

    def test_closed_bucket_carries_volume_and_count(self, make_tick):
        builder = BucketBuilder(60)
        builder.add_tick(make_tick(1.0, 10.0, volume=2.0))
        builder.add_tick(make_tick(2.0, 10.0, volume=1.0, side="sell"))
        closed = builder.add_tick(make_tick(60.0, 10.0, volume=9.0))

        assert closed.volume == CandleVolume(vbuy=2.0, vsell=1.0)
        assert closed.tick_count == 2
        assert builder.volume() == CandleVolume(vbuy=9.0, vsell=0.0)

    def test_flush(self, make_tick):
        builder = BucketBuilder(60)
        assert builder.flush() is None

        builder.add_tick(make_tick(1.0, 10.0))
        closed = builder.flush()

        assert closed.open_time == 0.0
        assert builder.open_time is None
        assert builder.snapshots() == {}
