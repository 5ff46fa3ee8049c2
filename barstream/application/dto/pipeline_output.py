"""
BarStream – Application DTO: Pipeline output
=============================================
Lo que la pipeline entrega en cada cierre de bucket a la capa de render /
suscripciones: barra sellada + output por indicador + estado persistido
de cada indicador.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from barstream.domain.entities.bar import Bar
from barstream.domain.value_objects.source_snapshot import CandleVolume


@dataclass(frozen=True)
class PipelineOutput:
    """Resultado de cerrar un bucket."""

    market: str
    bar: Bar
    volume: CandleVolume
    outputs: Dict[str, Optional[float]] = field(default_factory=dict)
    states: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    active_sources: int = 0

    def to_dict(self) -> dict:
        """Serialización JSON-ready."""
        return {
            "market": self.market,
            "bar": self.bar.to_dict(),
            "volume": self.volume.to_dict(),
            "outputs": dict(self.outputs),
            "states": {key: dict(value) for key, value in self.states.items()},
            "active_sources": self.active_sources,
        }
