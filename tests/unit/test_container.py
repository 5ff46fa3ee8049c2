"""
Tests del contenedor de dependencias y Settings.
"""

import io
import logging

import pytest

from barstream.container import Container, get_container, init_container, reset_container
from barstream.domain.exceptions.domain_errors import (
    InvalidPipelineConfigError,
    UnknownIndicatorKindError,
)
from barstream.domain.services.source_aggregator import MergePolicy
from barstream.shared.config.settings import Settings
from barstream.shared.logging import get_logger, setup_logging


@pytest.fixture(autouse=True)
def _clean_container():
    reset_container()
    yield
    reset_container()


class TestSettings:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("BARSTREAM_BUCKET_INTERVAL_SECONDS", "300")
        monkeypatch.setenv("BARSTREAM_MERGE_POLICY", "avg_close")

        settings = Settings()
        assert settings.bucket_interval_seconds == 300
        assert settings.merge_policy == "avg_close"

    def test_indicators_from_env_json(self, monkeypatch):
        monkeypatch.setenv(
            "BARSTREAM_DEFAULT_INDICATORS", '[{"id": "ema9", "kind": "ema", "length": 9}]',
        )
        assert Settings().default_indicators == [{"id": "ema9", "kind": "ema", "length": 9}]


class TestContainer:
    def test_pipeline_config_from_settings(self):
        container = Container(settings=Settings(
            bucket_interval_seconds=30,
            merge_policy="sum_ohlc",
            default_indicators=[{"id": "c", "kind": "cma"}],
        ))
        config = container.pipeline_config

        assert config.interval == 30
        assert config.merge_policy is MergePolicy.SUM_OHLC
        assert [i.id for i in config.indicators] == ["c"]
        assert container.pipeline_config is config

    def test_market_state_is_singleton(self):
        container = Container(settings=Settings(max_outputs_buffer=3))
        assert container.market_state is container.market_state

    def test_configure_overrides_and_resets_manager(self):
        container = Container(settings=Settings())
        manager = container.market_state

        config = container.configure(indicators=[{"id": "s", "kind": "sum"}], interval=5, merge_policy=None)

        assert config.interval == 5
        assert config.merge_policy is MergePolicy.AVG_OHLC
        assert container.market_state is not manager

    def test_invalid_chain_fails_fast(self):
        container = Container(settings=Settings())
        with pytest.raises(UnknownIndicatorKindError):
            container.configure(indicators=[{"id": "x", "kind": "rsi"}])

    def test_invalid_pipeline_field_is_domain_error(self):
        container = Container(settings=Settings())
        with pytest.raises(InvalidPipelineConfigError) as exc_info:
            container.configure(interval=0)

        assert exc_info.value.field == "interval"
        assert exc_info.value.value == 0
        assert exc_info.value.to_dict()["error"] == "INVALID_PIPELINE_CONFIG"

    def test_global_container(self):
        settings = Settings(bucket_interval_seconds=15)
        container = init_container(settings)

        assert get_container() is container
        assert get_container().settings.bucket_interval_seconds == 15

        reset_container()
        assert get_container() is not container


class TestLogging:
    def test_logger_namespace(self):
        assert get_logger("bucket_builder").name == "barstream.bucket_builder"

    def test_setup_logging_accepts_level_names(self):
        root = logging.getLogger()
        previous = root.level
        try:
            setup_logging("debug", stream=io.StringIO())
            assert root.level == logging.DEBUG
            setup_logging("not-a-level", stream=io.StringIO())
            assert root.level == logging.INFO
        finally:
            root.setLevel(previous)
