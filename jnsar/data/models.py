"""
Value records for bars, enriched bars, signal analyses and day reports.

All models are frozen pydantic models. Unavailable values are ``None``;
inside the pandas computations they are ``NaN`` and are converted on the way
out via :func:`clean_value`.
"""

from __future__ import annotations

import datetime as dt
import math
from enum import Enum
from typing import Any, Optional

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ── Enums ────────────────────────────────────────────────────

class Flag(str, Enum):
    YES = "yes"
    NO = "no"


class Trend(str, Enum):
    RISING = "R"
    DECLINING = "D"


class SignalSummary(str, Enum):
    UNCONFIRMED_LONG_TRIGGER = "unconfirmed-long-trigger"
    UNCONFIRMED_SHORT_TRIGGER = "unconfirmed-short-trigger"
    CONFIRMED_LONG = "confirmed-long"
    CONFIRMED_SHORT = "confirmed-short"
    GREEN_FLIP = "green-flip"
    RED_FLIP = "red-flip"


# ── Helpers ──────────────────────────────────────────────────

def clean_value(value: Any) -> Optional[float]:
    """Convert numpy scalars / NaN / non-numeric junk to a float or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    value = float(value)
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def parse_bar_date(value: Any) -> Optional[dt.date]:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return pd.Timestamp(value.strip()).date()
        except (ValueError, TypeError):
            return None
    return None


# ── Bars ─────────────────────────────────────────────────────

class Bar(BaseModel):
    """One trading period of a single instrument."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: dt.date
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    close: Optional[float] = None
    volume: Optional[float] = None
    sector: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Any:
        parsed = parse_bar_date(value)
        return parsed if parsed is not None else value

    @field_validator("open", "high", "low", "close", "volume", mode="before")
    @classmethod
    def _coerce_number(cls, value: Any) -> Optional[float]:
        number = clean_value(value)
        if number is None or number < 0:
            return None
        return number

    @field_validator("sector", mode="before")
    @classmethod
    def _coerce_sector(cls, value: Any) -> Optional[str]:
        if value is None or (isinstance(value, float) and math.isnan(value)):
            return None
        return str(value)

    def ohlcv(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


class PivotLevels(BaseModel):
    model_config = ConfigDict(frozen=True)

    pp: Optional[float] = None
    h1: Optional[float] = None
    l1: Optional[float] = None
    h2: Optional[float] = None
    l2: Optional[float] = None
    h3: Optional[float] = None
    l3: Optional[float] = None
    h4: Optional[float] = None
    l4: Optional[float] = None

    @classmethod
    def unavailable(cls) -> "PivotLevels":
        return cls()

    @property
    def is_available(self) -> bool:
        return self.pp is not None


class EnrichedBar(Bar):
    """A bar plus every indicator derived for it.

    Aliases are the column names used by tabular display and export.
    """

    ema5: Optional[float] = Field(default=None, alias="EMA5")
    lema5: Optional[float] = Field(default=None, alias="LEMA5")
    hema5: Optional[float] = Field(default=None, alias="HEMA5")
    atr: Optional[float] = Field(default=None, alias="ATR")
    pp: Optional[float] = Field(default=None, alias="PP")
    h1: Optional[float] = Field(default=None, alias="H1")
    l1: Optional[float] = Field(default=None, alias="L1")
    h2: Optional[float] = Field(default=None, alias="H2")
    l2: Optional[float] = Field(default=None, alias="L2")
    h3: Optional[float] = Field(default=None, alias="H3")
    l3: Optional[float] = Field(default=None, alias="L3")
    h4: Optional[float] = Field(default=None, alias="H4")
    l4: Optional[float] = Field(default=None, alias="L4")
    jnsar: Optional[float] = Field(default=None, alias="JNSAR")
    long_entry: Optional[float] = Field(default=None, alias="LongEntry")
    short_entry: Optional[float] = Field(default=None, alias="ShortEntry")
    higher_high: Flag = Field(default=Flag.NO, alias="HigherHigh")
    lower_low: Flag = Field(default=Flag.NO, alias="LowerLow")
    close_lower: Flag = Field(default=Flag.NO, alias="CloseLower")
    diff: Optional[float] = Field(default=None, alias="Diff")
    avg_volume: Optional[float] = Field(default=None, alias="AvgVolume")
    volume_anomaly: Optional[bool] = Field(default=None, alias="VolumeAnomaly")
    long_target: Optional[float] = Field(default=None, alias="LongTarget")
    short_target: Optional[float] = Field(default=None, alias="ShortTarget")

    @property
    def pivots(self) -> PivotLevels:
        return PivotLevels(
            pp=self.pp, h1=self.h1, l1=self.l1, h2=self.h2, l2=self.l2,
            h3=self.h3, l3=self.l3, h4=self.h4, l4=self.l4,
        )

    def to_row(self) -> dict[str, Any]:
        """Export row keyed by display column names, enums as plain strings."""
        return self.model_dump(by_alias=True, mode="json")


# ── Signal analysis ──────────────────────────────────────────

class SignalAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    ticker: str = ""
    latest_date: Optional[dt.date] = None

    average_metric: Optional[float] = None
    threshold: Optional[float] = None

    jnsar_t: Optional[float] = None
    jnsar_t_minus_1: Optional[float] = None
    close_t: Optional[float] = None
    close_t_minus_1: Optional[float] = None

    green_trigger: bool = False
    red_trigger: bool = False

    trend: Optional[Trend] = None
    validation: bool = False

    confirmed_green: bool = False
    strong_green: bool = False
    confirmed_red: bool = False
    strong_red: bool = False

    signal_summary: Optional[SignalSummary] = None

    recent_volumes: list[Optional[float]] = Field(default_factory=list)
    recent_jnsar: list[Optional[float]] = Field(default_factory=list)
    recent_closes: list[Optional[float]] = Field(default_factory=list)
    recent_bars: list[Bar] = Field(default_factory=list)

    @property
    def has_signal(self) -> bool:
        return self.signal_summary is not None


# ── Day report ───────────────────────────────────────────────

class ReportRow(BaseModel):
    """One instrument's indicator snapshot for a chosen report day."""

    model_config = ConfigDict(frozen=True)

    ticker: str = ""
    report_date: dt.date
    found: bool = False
    sector: Optional[str] = None

    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    close: Optional[float] = None
    volume: Optional[float] = None

    ema5: Optional[float] = None
    lema5: Optional[float] = None
    hema5: Optional[float] = None
    atr: Optional[float] = None
    pivots: PivotLevels = Field(default_factory=PivotLevels)

    jnsar: Optional[float] = None
    jnsar_c_minus_1: Optional[float] = None
    jnsar_c_minus_2: Optional[float] = None
    jnsar_c_minus_3: Optional[float] = None
    jnsar_c_minus_4: Optional[float] = None

    long_entry: Optional[float] = None
    short_entry: Optional[float] = None
    higher_high: Flag = Flag.NO
    lower_low: Flag = Flag.NO
    close_lower: Flag = Flag.NO
    diff: Optional[float] = None
    avg_volume: Optional[float] = None
    volume_anomaly: Optional[bool] = None
    long_target: Optional[float] = None
    short_target: Optional[float] = None

    changed_to_green: bool = False
    changed_to_red: bool = False
