"""
BarStream – Domain Exceptions
==============================
Excepciones específicas del dominio.

Solo se lanzan en la frontera: al crear un indicador (configuración
inválida) o al convertir eventos externos. El camino por vela/tick no
lanza: las divisiones por cero se enmascaran con divisor 1.

JERARQUÍA:
    DomainError (base)
    ├── InvalidIndicatorConfigError
    │   └── UnknownIndicatorKindError
    ├── InvalidIndicatorInputError
    ├── InvalidPipelineConfigError
    └── InvalidTickError
"""

from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Excepción base para errores de dominio."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
        }


class InvalidIndicatorConfigError(DomainError):
    """Configuración de indicador inválida (longitud, fuente, id duplicado...)."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        code: str = "INVALID_INDICATOR_CONFIG",
    ):
        super().__init__(message, code=code)
        self.field = field
        self.value = value


class UnknownIndicatorKindError(InvalidIndicatorConfigError):
    """El `kind` pedido no existe en el catálogo."""

    def __init__(self, kind: Any):
        super().__init__(
            f"Tipo de indicador desconocido: {kind!r}",
            field="kind",
            value=kind,
            code="UNKNOWN_INDICATOR_KIND",
        )
        self.kind = kind


class InvalidTickError(DomainError):
    """Evento de trade mal formado recibido del productor upstream."""

    def __init__(self, message: str, payload: Optional[dict] = None):
        super().__init__(message, code="INVALID_TICK")
        self.payload = payload


class InvalidIndicatorInputError(DomainError):
    """La barra entregada a una fórmula no trae los datos que necesita."""

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message, code="INVALID_INDICATOR_INPUT")
        self.kind = kind


class InvalidPipelineConfigError(DomainError):
    """Configuración de pipeline inválida (intervalo, política, modo)."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message, code="INVALID_PIPELINE_CONFIG")
        self.field = field
        self.value = value
