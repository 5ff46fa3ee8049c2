"""
BarStream – Application Layer
==============================
Capa de casos de uso y orquestación.

Este módulo contiene:
- use_cases/: ProcessTickUseCase (pipeline por mercado)
- services/: BucketBuilder, IndicatorService
- state/: IndicatorInstance (contabilidad), MarketStateManager
- dto/: IndicatorConfig, PipelineConfig, PipelineOutput

REGLA DE DEPENDENCIA:
Esta capa puede importar de domain/ y shared/.
"""

from barstream.application.dto.indicator_config import IndicatorConfig, PipelineConfig
from barstream.application.dto.pipeline_output import PipelineOutput
from barstream.application.use_cases.process_tick_usecase import ProcessTickUseCase
from barstream.application.state.market_state import MarketStateManager

__all__ = [
    "IndicatorConfig",
    "PipelineConfig",
    "PipelineOutput",
    "ProcessTickUseCase",
    "MarketStateManager",
]
