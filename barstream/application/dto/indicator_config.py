"""
BarStream – Application DTO: Indicator / Pipeline configuration
================================================================
Superficie de configuración validada con Pydantic.

Se valida al CREAR la instancia (fail fast), nunca durante la evaluación
por barra: el camino caliente recibe configuraciones ya válidas.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from barstream.domain.entities.bar import BAR_FIELDS
from barstream.domain.entities.indicator import IndicatorKind, WINDOWED_KINDS
from barstream.domain.exceptions.domain_errors import (
    InvalidIndicatorConfigError,
    UnknownIndicatorKindError,
)
from barstream.domain.services.bar_accumulator import AccumulatorMode
from barstream.domain.services.source_aggregator import MergePolicy

_KIND_VALUES = {kind.value for kind in IndicatorKind}


class IndicatorConfig(BaseModel):
    """Configuración de UNA instancia de indicador."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    id: str = Field(min_length=1)
    kind: IndicatorKind
    length: Optional[int] = None
    # Campo de la barra ("open" | "high" | "low" | "close") o id de un
    # indicador anterior de la cadena.
    source: str = "close"

    @field_validator("length")
    @classmethod
    def _positive_length(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError("length debe ser positivo")
        return value

    @model_validator(mode="after")
    def _check_kind_params(self) -> "IndicatorConfig":
        if self.kind in WINDOWED_KINDS and self.length is None:
            raise ValueError(f"'{self.kind.value}' requiere length")
        if self.kind is IndicatorKind.AVG and self.source not in BAR_FIELDS:
            raise ValueError("'avg' solo admite un campo de barra como source")
        return self

    @property
    def reads_indicator(self) -> bool:
        """¿Lee el output de otro indicador en lugar de la barra?"""
        return self.source not in BAR_FIELDS

    @classmethod
    def parse(cls, data: Union["IndicatorConfig", Mapping[str, Any]]) -> "IndicatorConfig":
        """Validar una configuración convirtiendo errores a excepciones de dominio."""
        if isinstance(data, cls):
            return data

        kind = data.get("kind")
        kind_value = kind.value if isinstance(kind, IndicatorKind) else kind
        if kind_value not in _KIND_VALUES:
            raise UnknownIndicatorKindError(kind)

        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or None
            raise InvalidIndicatorConfigError(
                f"Configuración de indicador inválida: {first.get('msg')}",
                field=field,
                value=data.get(field) if field else None,
            ) from exc


class PipelineConfig(BaseModel):
    """Configuración de la pipeline de UN mercado."""

    model_config = ConfigDict(frozen=True)

    interval: float = Field(default=60, gt=0)
    merge_policy: MergePolicy = MergePolicy.AVG_OHLC
    accumulator_mode: AccumulatorMode = AccumulatorMode.OHLC
    indicators: List[IndicatorConfig] = Field(default_factory=list)

    @field_validator("accumulator_mode")
    @classmethod
    def _bar_mode(cls, value: AccumulatorMode) -> AccumulatorMode:
        if value is AccumulatorMode.CUM:
            raise ValueError("accumulator_mode debe producir barras (ohlc | cum_ohlc)")
        return value

    @field_validator("indicators", mode="before")
    @classmethod
    def _parse_indicators(cls, value: Any) -> Any:
        # Errores de dominio (tipo desconocido) antes que los de pydantic
        return [IndicatorConfig.parse(item) for item in value or []]
