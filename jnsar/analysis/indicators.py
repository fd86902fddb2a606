from __future__ import annotations

from typing import Any, Optional

import numpy as np
import pandas as pd

from jnsar.data.models import PivotLevels, clean_value
from jnsar.utils.exceptions import ConfigError

PIVOT_COLUMNS = ["pp", "h1", "l1", "h2", "l2", "h3", "l3", "h4", "l4"]


def _check_period(period: int) -> None:
    if isinstance(period, bool) or not isinstance(period, (int, np.integer)) or period < 1:
        raise ConfigError(f"Period must be a positive integer, got {period!r}", field="period")


def _as_float_series(series: Any) -> pd.Series:
    if isinstance(series, pd.Series):
        return pd.to_numeric(series, errors="coerce").astype(float)
    return pd.to_numeric(pd.Series(list(series), dtype=object), errors="coerce").astype(float)


def price_column(df: pd.DataFrame, name: str) -> pd.Series:
    """Float view of an OHLCV column; missing columns read as all-NaN."""
    if name not in df.columns:
        return pd.Series(np.nan, index=df.index, dtype=float)
    return _as_float_series(df[name])


# ────────────────────────────────────────────────────────────────
# Moving Averages
# ────────────────────────────────────────────────────────────────

def sma(series: Any, period: int) -> pd.Series:
    """Simple moving average over the valid (non-NaN) values only.

    Gaps are compacted out before the window is applied and the results
    are mapped back to the original positions, so a gap neither resets the
    window nor produces a value of its own.
    """
    _check_period(period)
    values = _as_float_series(series)
    result = pd.Series(np.nan, index=values.index, dtype=float)
    valid = values.dropna()
    if len(valid) < period:
        return result
    result.loc[valid.index] = valid.rolling(window=period, min_periods=period).mean()
    return result


def ema(series: Any, period: int) -> pd.Series:
    """Exponential moving average seeded with the SMA of the first ``period`` valid values."""
    _check_period(period)
    values = _as_float_series(series)
    result = pd.Series(np.nan, index=values.index, dtype=float)
    valid = values.dropna()
    if len(valid) < period:
        return result

    seed = float(valid.iloc[:period].sum()) / period
    seeded = pd.Series(
        [seed, *valid.iloc[period:].tolist()],
        index=valid.index[period - 1:],
        dtype=float,
    )
    # adjust=False gives prev * (1 - k) + value * k with k = 2 / (span + 1)
    result.loc[seeded.index] = seeded.ewm(span=period, adjust=False).mean()
    return result


# ────────────────────────────────────────────────────────────────
# Volatility Indicators
# ────────────────────────────────────────────────────────────────

def true_range(df: pd.DataFrame) -> pd.Series:
    high = price_column(df, "high")
    low = price_column(df, "low")
    prev_close = price_column(df, "close").shift(1)

    tr1 = high - low
    tr2 = (high - prev_close).abs()
    tr3 = (low - prev_close).abs()
    tr = pd.concat([tr1, tr2, tr3], axis=1).max(axis=1)
    tr = tr.where(prev_close.notna(), tr1)
    return tr.where(high.notna() & low.notna())


def atr(df: pd.DataFrame, period: int = 14) -> pd.Series:
    """Average True Range with Wilder smoothing.

    The first value is the plain mean of ``period`` true ranges starting at
    the first bar with a valid true range. When a later true range is
    missing the previous ATR is carried forward unchanged.
    """
    _check_period(period)
    tr = true_range(df).to_numpy(dtype=float)
    out = np.full(len(tr), np.nan)

    valid_positions = np.flatnonzero(~np.isnan(tr))
    if len(valid_positions) == 0:
        return pd.Series(out, index=df.index)

    first = int(valid_positions[0])
    seed_window = tr[first:first + period]
    if len(seed_window) < period or np.isnan(seed_window).any():
        return pd.Series(out, index=df.index)

    seed_index = first + period - 1
    out[seed_index] = float(seed_window.sum()) / period
    for i in range(seed_index + 1, len(tr)):
        prev_atr = out[i - 1]
        if np.isnan(tr[i]):
            out[i] = prev_atr
        else:
            out[i] = (prev_atr * (period - 1) + tr[i]) / period
    return pd.Series(out, index=df.index)


# ────────────────────────────────────────────────────────────────
# Support / Resistance
# ────────────────────────────────────────────────────────────────

def _pivot_formulas(high: Any, low: Any, close: Any) -> dict[str, Any]:
    pp = (high + low + close) / 3
    rng = high - low
    h1 = 2 * pp - low
    l1 = 2 * pp - high
    h2 = pp + rng
    l2 = pp - rng
    return {
        "pp": pp,
        "h1": h1,
        "l1": l1,
        "h2": h2,
        "l2": l2,
        "h3": h1 + rng,
        "l3": l1 - rng,
        "h4": h2 + rng,
        "l4": l2 - rng,
    }


def pivot_levels(high: Any, low: Any, close: Any) -> PivotLevels:
    """Classic floor pivots from a single (previous) bar's high/low/close."""
    h, l, c = clean_value(high), clean_value(low), clean_value(close)
    if h is None or l is None or c is None or h < l:
        return PivotLevels.unavailable()
    return PivotLevels(**_pivot_formulas(h, l, c))


def pivot_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Pivot levels for every bar, each computed from the bar before it."""
    prev_high = price_column(df, "high").shift(1)
    prev_low = price_column(df, "low").shift(1)
    prev_close = price_column(df, "close").shift(1)

    frame = pd.DataFrame(_pivot_formulas(prev_high, prev_low, prev_close), index=df.index)[PIVOT_COLUMNS]
    usable = (prev_high - prev_low) >= 0
    frame.loc[~usable, :] = np.nan
    return frame


def next_session_levels(df: pd.DataFrame) -> Optional[PivotLevels]:
    """Levels for the session after the last bar (tomorrow's tradable levels)."""
    if df.empty:
        return None
    last = df.iloc[-1]
    return pivot_levels(last.get("high"), last.get("low"), last.get("close"))
