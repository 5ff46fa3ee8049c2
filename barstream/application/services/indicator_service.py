"""
BarStream – Indicator Service (cadena ordenada)
================================================
Evalúa la cadena de indicadores configurada UNA vez por barra cerrada.

ORDEN:
  Las entradas se evalúan siempre en orden de inserción. Una entrada
  puede leer el output de una entrada ANTERIOR (source = id); la
  dependencia es cuestión de configuración, el servicio solo garantiza
  el orden.

FAIL FAST:
  Toda validación (tipo, length, ids duplicados, referencias a
  indicadores inexistentes o posteriores) ocurre en add(). update() no
  lanza con configuraciones válidas.

UPSTREAM SIN VALOR:
  Si el indicador del que se lee aún no tiene output (p.ej. linreg en su
  primera barra), la entrada dependiente se salta en esa barra: output
  None y sin contabilidad.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from barstream.application.dto.indicator_config import IndicatorConfig
from barstream.application.state.indicator_state import IndicatorInstance
from barstream.domain.entities.bar import Bar
from barstream.domain.entities.indicator import IndicatorInputs, IndicatorKind
from barstream.domain.exceptions.domain_errors import InvalidIndicatorConfigError
from barstream.domain.value_objects.source_snapshot import CandleVolume, SourceSnapshot
from barstream.shared.logging.logger import get_logger

logger = get_logger("indicator_service")

ConfigLike = Union[IndicatorConfig, Mapping[str, Any]]


class IndicatorService:
    """
    Cadena de indicadores de UN mercado.

    Ciclo de vida:
      1. add() crea cada instancia con estado nuevo (fail fast).
      2. La pipeline llama a update() por cada barra cerrada.
      3. remove() destruye la instancia y su estado.

    Uso:
        service = IndicatorService([{"id": "ema9", "kind": "ema", "length": 9}])
        outputs = service.update(bar, snapshots, volume)
        # outputs = {"ema9": 102.0}
    """

    def __init__(self, configs: Iterable[ConfigLike] = ()) -> None:
        self._instances: "OrderedDict[str, IndicatorInstance]" = OrderedDict()
        for config in configs:
            self.add(config)

    def __len__(self) -> int:
        return len(self._instances)

    def __contains__(self, indicator_id: str) -> bool:
        return indicator_id in self._instances

    @property
    def ids(self) -> List[str]:
        return list(self._instances)

    def get(self, indicator_id: str) -> Optional[IndicatorInstance]:
        return self._instances.get(indicator_id)

    # ════════════════════════════════════════════════════════════════
    #  CONFIGURACIÓN
    # ════════════════════════════════════════════════════════════════

    def add(self, config: ConfigLike) -> IndicatorInstance:
        """Añadir un indicador al final de la cadena."""
        config = IndicatorConfig.parse(config)

        if config.id in self._instances:
            raise InvalidIndicatorConfigError(
                f"Indicador duplicado: '{config.id}'", field="id", value=config.id,
            )
        if config.reads_indicator and config.source not in self._instances:
            raise InvalidIndicatorConfigError(
                f"'{config.id}' lee de '{config.source}', que no es un campo de barra "
                "ni un indicador anterior de la cadena",
                field="source",
                value=config.source,
            )

        instance = IndicatorInstance(config)
        self._instances[config.id] = instance
        logger.info(
            "Indicador '%s' creado (kind=%s, length=%s, source=%s)",
            config.id, config.kind.value, config.length, config.source,
        )
        return instance

    def remove(self, indicator_id: str) -> None:
        """Eliminar un indicador; su estado se destruye con él."""
        if indicator_id not in self._instances:
            raise KeyError(indicator_id)

        dependants = [
            inst.id for inst in self._instances.values()
            if inst.config.source == indicator_id
        ]
        if dependants:
            raise InvalidIndicatorConfigError(
                f"No se puede eliminar '{indicator_id}': lo leen {', '.join(dependants)}",
                field="id",
                value=indicator_id,
            )

        del self._instances[indicator_id]
        logger.info("Indicador '%s' eliminado", indicator_id)

    # ════════════════════════════════════════════════════════════════
    #  EVALUACIÓN POR BARRA
    # ════════════════════════════════════════════════════════════════

    def update(
        self,
        bar: Bar,
        snapshots: Optional[Mapping[str, SourceSnapshot]] = None,
        volume: Optional[CandleVolume] = None,
    ) -> Dict[str, Optional[float]]:
        """Evaluar toda la cadena, en orden, para una barra cerrada."""
        outputs: Dict[str, Optional[float]] = {}
        snapshots = snapshots or {}
        volume = volume or CandleVolume()

        for instance in self._instances.values():
            config = instance.config

            if config.kind is IndicatorKind.AVG:
                inputs = IndicatorInputs(values=[
                    getattr(snap, config.source) if snap.is_active else None
                    for snap in snapshots.values()
                ])
            elif config.reads_indicator:
                upstream = outputs.get(config.source)
                if upstream is None:
                    outputs[config.id] = None
                    continue
                inputs = IndicatorInputs(value=upstream, bar=bar, volume=volume)
            else:
                inputs = IndicatorInputs(value=bar.field(config.source), bar=bar, volume=volume)

            outputs[config.id] = instance.update(inputs)

        return outputs

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        """Estado persistido de cada indicador (para render sin recalcular)."""
        return {
            indicator_id: instance.state.to_dict()
            for indicator_id, instance in self._instances.items()
        }
