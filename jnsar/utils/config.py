from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ema_period: int = Field(default=5, gt=0, description="Period of the close/low/high EMA variants")
    atr_period: int = Field(default=14, gt=0, description="Wilder ATR period")
    volume_sma_period: int = Field(default=20, gt=0, description="Average volume SMA period")
    volume_anomaly_multiple: float = Field(default=1.5, gt=0, description="Volume / average volume ratio flagged as anomaly")

    sar_af_start: float = Field(default=0.02, gt=0, description="JNSAR initial acceleration factor")
    sar_af_step: float = Field(default=0.02, gt=0, description="JNSAR acceleration factor increment")
    sar_af_max: float = Field(default=0.20, gt=0, description="JNSAR acceleration factor cap")

    signal_threshold_pct: float = Field(default=0.05, ge=0, description="Share of ATR used as signal threshold")
    context_window: int = Field(default=5, gt=0, description="Bars of recent context attached to a signal analysis")

    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/jnsar.log", description="Log file path")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    global _settings
    _settings = Settings()
    return _settings
