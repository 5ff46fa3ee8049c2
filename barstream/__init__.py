"""
BarStream – Motor de agregación multi-fuente e indicadores en streaming
========================================================================
Convierte un flujo de trades de muchas fuentes concurrentes en barras
OHLC por bucket temporal y en una cadena de indicadores técnicos
actualizados una vez por barra cerrada.

FLUJO DE DATOS:
  Tick → BucketBuilder (barra parcial por fuente)
       → SourceAggregator (barra canónica del bucket)
       → IndicatorService (cadena ordenada, contabilidad por instancia)
       → PipelineOutput {bar, outputs, states}
"""

from barstream.application.dto.indicator_config import IndicatorConfig, PipelineConfig
from barstream.application.dto.pipeline_output import PipelineOutput
from barstream.application.state.market_state import MarketStateManager
from barstream.application.use_cases.process_tick_usecase import ProcessTickUseCase
from barstream.domain.entities.bar import Bar
from barstream.domain.value_objects.source_snapshot import CandleVolume, SourceSnapshot
from barstream.domain.value_objects.tick import Tick

__version__ = "0.1.0"

__all__ = [
    "Bar",
    "CandleVolume",
    "IndicatorConfig",
    "MarketStateManager",
    "PipelineConfig",
    "PipelineOutput",
    "ProcessTickUseCase",
    "SourceSnapshot",
    "Tick",
]
