"""
Dependency Injection Container.

Único lugar donde se crean las dependencias concretas a partir de
Settings: configuración de pipeline y gestor de mercados.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from barstream.application.dto.indicator_config import PipelineConfig
from barstream.application.state.market_state import MarketStateManager
from barstream.domain.exceptions.domain_errors import InvalidPipelineConfigError
from barstream.shared.config.settings import Settings
from barstream.shared.logging.logger import get_logger

logger = get_logger("container")


@dataclass
class Container:
    """
    Contenedor de Inyección de Dependencias.

    Las instancias se crean perezosamente y se reutilizan (singleton por
    contenedor).
    """

    settings: Settings = field(default_factory=Settings)

    _pipeline_config: Optional[PipelineConfig] = None
    _market_state: Optional[MarketStateManager] = None

    @property
    def pipeline_config(self) -> PipelineConfig:
        """PipelineConfig por defecto derivada de Settings (validada al crearla)."""
        if self._pipeline_config is None:
            self._pipeline_config = self.build_pipeline_config()
        return self._pipeline_config

    @property
    def market_state(self) -> MarketStateManager:
        """Obtiene o crea el MarketStateManager (singleton)."""
        if self._market_state is None:
            self._market_state = MarketStateManager(
                default_config=self.pipeline_config,
                max_outputs=self.settings.max_outputs_buffer,
            )
        return self._market_state

    def configure(
        self, indicators: Optional[List[Dict[str, Any]]] = None, **overrides: Any,
    ) -> PipelineConfig:
        """Fijar la PipelineConfig por defecto (p.ej. desde argumentos de CLI)."""
        self._pipeline_config = self.build_pipeline_config(indicators, **overrides)
        self._market_state = None
        return self._pipeline_config

    def build_pipeline_config(
        self, indicators: Optional[List[Dict[str, Any]]] = None, **overrides: Any,
    ) -> PipelineConfig:
        data: Dict[str, Any] = {
            "interval": self.settings.bucket_interval_seconds,
            "merge_policy": self.settings.merge_policy,
            "accumulator_mode": self.settings.accumulator_mode,
            "indicators": indicators if indicators is not None else self.settings.default_indicators,
        }
        data.update({key: value for key, value in overrides.items() if value is not None})
        try:
            config = PipelineConfig.model_validate(data)
        except ValidationError as exc:
            first = exc.errors()[0]
            loc = ".".join(str(part) for part in first.get("loc", ())) or None
            raise InvalidPipelineConfigError(
                f"Configuración de pipeline inválida: {first.get('msg')}",
                field=loc,
                value=data.get(loc) if loc else None,
            ) from exc
        logger.info(
            "PipelineConfig: intervalo=%ss política=%s modo=%s indicadores=%d",
            config.interval,
            config.merge_policy.value,
            config.accumulator_mode.value,
            len(config.indicators),
        )
        return config

    def reset(self) -> None:
        """Descartar instancias (útil en tests)."""
        self._pipeline_config = None
        self._market_state = None


_container: Optional[Container] = None


def reset_container() -> None:
    """Resetea el contenedor global."""
    global _container
    if _container is not None:
        _container.reset()
    _container = None


def init_container(settings: Optional[Settings] = None) -> Container:
    """Inicializa el contenedor global."""
    global _container
    _container = Container(settings=settings or Settings())
    return _container


def get_container() -> Container:
    """Obtiene el contenedor global, creándolo si hace falta."""
    global _container
    if _container is None:
        _container = Container()
    return _container
