"""Application DTOs."""
from barstream.application.dto.indicator_config import IndicatorConfig, PipelineConfig
from barstream.application.dto.pipeline_output import PipelineOutput

__all__ = ["IndicatorConfig", "PipelineConfig", "PipelineOutput"]
