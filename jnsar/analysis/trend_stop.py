"""
JNSAR, a Parabolic-SAR style trend-following stop.

The indicator is a left fold of :func:`step` over the bar sequence. The fold
carries a small immutable :class:`SarState` (trend direction, stop, extreme
point, acceleration factor); nothing outlives one call to
:func:`jnsar_frame`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from itertools import accumulate
from typing import NamedTuple, Optional

import numpy as np
import pandas as pd

from jnsar.analysis.indicators import price_column
from jnsar.utils.config import Settings, get_settings
from jnsar.utils.exceptions import ConfigError

JNSAR_COLUMNS = ["jnsar", "trend", "extreme_point", "acceleration_factor"]


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class SarParameters:
    start: float = 0.02
    step: float = 0.02
    maximum: float = 0.20

    def __post_init__(self) -> None:
        if self.start <= 0 or self.step <= 0 or self.maximum < self.start:
            raise ConfigError(
                f"Invalid acceleration factors start={self.start} step={self.step} maximum={self.maximum}",
                field="acceleration_factor",
            )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SarParameters":
        settings = settings or get_settings()
        return cls(start=settings.sar_af_start, step=settings.sar_af_step, maximum=settings.sar_af_max)


@dataclass(frozen=True)
class SarState:
    trend: TrendDirection
    stop: float
    extreme_point: float
    acceleration_factor: float


class HighLow(NamedTuple):
    high: float
    low: float

    @property
    def complete(self) -> bool:
        return not (math.isnan(self.high) or math.isnan(self.low))


def initial_state(bar: HighLow, close: float, next_close: float,
                  params: SarParameters) -> Optional[SarState]:
    """Seed state from the first complete bar; direction comes from the next close."""
    if not bar.complete or math.isnan(close) or math.isnan(next_close):
        return None
    if next_close > close:
        return SarState(TrendDirection.UP, bar.low, bar.high, params.start)
    return SarState(TrendDirection.DOWN, bar.high, bar.low, params.start)


def step(state: SarState, current: HighLow, previous: HighLow,
         before_previous: Optional[HighLow], params: SarParameters) -> tuple[SarState, float]:
    """Advance the stop by one bar. Returns the new state and this bar's stop (NaN if unavailable)."""
    if not (current.complete and previous.complete):
        return state, math.nan

    candidate = state.stop + state.acceleration_factor * (state.extreme_point - state.stop)

    if state.trend is TrendDirection.UP:
        low2 = before_previous.low if before_previous is not None and not math.isnan(before_previous.low) else previous.low
        candidate = min(candidate, previous.low, low2)
        if current.low < candidate:
            return SarState(TrendDirection.DOWN, state.extreme_point, current.low, params.start), state.extreme_point
        extreme = max(state.extreme_point, current.high)
        factor = state.acceleration_factor
        if extreme > state.extreme_point:
            factor = min(params.maximum, factor + params.step)
        return replace(state, stop=candidate, extreme_point=extreme, acceleration_factor=factor), candidate

    high2 = before_previous.high if before_previous is not None and not math.isnan(before_previous.high) else previous.high
    candidate = max(candidate, previous.high, high2)
    if current.high > candidate:
        return SarState(TrendDirection.UP, state.extreme_point, current.high, params.start), state.extreme_point
    extreme = min(state.extreme_point, current.low)
    factor = state.acceleration_factor
    if extreme < state.extreme_point:
        factor = min(params.maximum, factor + params.step)
    return replace(state, stop=candidate, extreme_point=extreme, acceleration_factor=factor), candidate


def _state_frame(index: pd.Index, rows: list[tuple[float, Optional[str], float, float]]) -> pd.DataFrame:
    padding = [(np.nan, None, np.nan, np.nan)] * (len(index) - len(rows))
    frame = pd.DataFrame(padding + rows, columns=JNSAR_COLUMNS, index=index)
    for column in ("jnsar", "extreme_point", "acceleration_factor"):
        frame[column] = frame[column].astype(float)
    return frame


def jnsar_frame(df: pd.DataFrame, params: Optional[SarParameters] = None) -> pd.DataFrame:
    """Run the stop over a whole bar frame.

    Returns one row per bar: the stop (``jnsar``) plus the state carried at
    that bar. Rows before the seed bar are empty.
    """
    params = params or SarParameters.from_settings()
    if len(df) < 2:
        return _state_frame(df.index, [])

    highs = price_column(df, "high").to_numpy()
    lows = price_column(df, "low").to_numpy()
    closes = price_column(df, "close").to_numpy()
    bars = [HighLow(float(h), float(l)) for h, l in zip(highs, lows)]

    start = next((i for i, bar in enumerate(bars) if bar.complete), None)
    if start is None or start >= len(bars) - 1:
        return _state_frame(df.index, [])

    seed = initial_state(bars[start], float(closes[start]), float(closes[start + 1]), params)
    if seed is None:
        return _state_frame(df.index, [])

    windows = [
        (bars[i], bars[i - 1], bars[i - 2] if i > 1 else None)
        for i in range(start + 1, len(bars))
    ]
    folded = accumulate(
        windows,
        lambda acc, window: step(acc[0], *window, params),
        initial=(seed, seed.stop),
    )
    rows = [
        (stop, state.trend.value, state.extreme_point, state.acceleration_factor)
        for state, stop in folded
    ]
    return _state_frame(df.index, rows)


def jnsar(df: pd.DataFrame, params: Optional[SarParameters] = None) -> pd.Series:
    return jnsar_frame(df, params)["jnsar"]
