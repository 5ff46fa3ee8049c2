"""
BarStream – Settings (Pydantic BaseSettings)
=============================================
Configuración centralizada cargada desde variables de entorno / .env.
Se usa pydantic-settings para validación estricta al arranque.

Todas las variables llevan el prefijo BARSTREAM_, por ejemplo:
    BARSTREAM_BUCKET_INTERVAL_SECONDS=60
    BARSTREAM_DEFAULT_INDICATORS='[{"id": "ema9", "kind": "ema", "length": 9}]'
"""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ─── Buckets ────────────────────────────────────────────────────────
    bucket_interval_seconds: int = Field(
        default=60, gt=0, description="Duración de cada bucket (vela) en segundos",
    )
    max_outputs_buffer: int = Field(
        default=500, gt=0,
        description="Máximo de barras cerradas retenidas en memoria por mercado",
    )

    # ─── Agregación multi-fuente ────────────────────────────────────────
    merge_policy: str = Field(
        default="avg_ohlc",
        description="Política de fusión de fuentes: avg_ohlc | avg_close | sum_ohlc",
    )
    accumulator_mode: str = Field(
        default="ohlc",
        description="Modo de acumulación por fuente: ohlc | cum_ohlc",
    )

    # ─── Indicadores ────────────────────────────────────────────────────
    default_indicators: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Cadena de indicadores por defecto (lista de IndicatorConfig)",
    )

    # ─── Logging ────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO")

    model_config = {
        "env_prefix": "BARSTREAM_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton global – se importa donde se necesite
settings = Settings()
