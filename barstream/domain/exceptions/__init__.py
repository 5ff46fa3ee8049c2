"""Domain exceptions."""
from barstream.domain.exceptions.domain_errors import (
    DomainError,
    InvalidIndicatorConfigError,
    InvalidIndicatorInputError,
    InvalidPipelineConfigError,
    InvalidTickError,
    UnknownIndicatorKindError,
)

__all__ = [
    "DomainError",
    "InvalidIndicatorConfigError",
    "InvalidIndicatorInputError",
    "InvalidPipelineConfigError",
    "InvalidTickError",
    "UnknownIndicatorKindError",
]
