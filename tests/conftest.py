"""
Shared fixtures and synthetic bar generators for indicator and signal tests.

Daily OHLCV bars come from a seeded geometric Brownian motion with a
high/low envelope and return-correlated volume, so every run sees the same
series.
"""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Any, Callable, Optional

import numpy as np
import pandas as pd
import pytest

from jnsar.data.models import Bar
from jnsar.utils.config import Settings, reload_settings


# ─────────────────────────────────────────────────────────
# Synthetic Bar Generator
# ─────────────────────────────────────────────────────────

def business_days(start: date, count: int) -> list[date]:
    days: list[date] = []
    d = start
    while len(days) < count:
        if d.weekday() < 5:
            days.append(d)
        d += timedelta(days=1)
    return days


def generate_daily_bars(
    start_price: float = 1_500.0,
    bars: int = 120,
    annual_drift: float = 0.08,
    annual_vol: float = 0.25,
    seed: int = 42,
    start_date: date = date(2025, 1, 6),
    sector: Optional[str] = "Financial Services",
) -> list[Bar]:
    """Generate daily bars for one instrument.

    Args:
        start_price: first open
        bars: number of trading bars
        annual_drift: annualized drift
        annual_vol: annualized volatility
        seed: random seed for reproducibility
        start_date: first calendar day (weekends are skipped)
        sector: carried unchanged on every bar
    """
    rng = np.random.default_rng(seed)
    dt = 1 / 252
    price = start_price
    out: list[Bar] = []

    for day in business_days(start_date, bars):
        daily_return = (annual_drift - 0.5 * annual_vol ** 2) * dt + annual_vol * math.sqrt(dt) * rng.standard_normal()
        open_price = price * (1 + rng.uniform(-0.004, 0.004))
        close_price = open_price * math.exp(daily_return)

        intraday_range = open_price * (abs(daily_return) + annual_vol * math.sqrt(dt) * 0.5)
        high_price = max(open_price, close_price) + abs(rng.standard_normal()) * intraday_range * 0.5
        low_price = min(open_price, close_price) - abs(rng.standard_normal()) * intraday_range * 0.5

        volume = int(1_000_000 * (1.0 + 5.0 * abs(daily_return)) * rng.uniform(0.7, 1.3))

        out.append(Bar(
            date=day,
            open=round(open_price, 2),
            high=round(high_price, 2),
            low=round(low_price, 2),
            close=round(close_price, 2),
            volume=volume,
            sector=sector,
        ))
        price = close_price
    return out


# ─────────────────────────────────────────────────────────
# Pytest Fixtures
# ─────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch):
    """Every test starts from default settings, unaffected by the shell environment."""
    for name in Settings.model_fields:
        monkeypatch.delenv(name.upper(), raising=False)
    reload_settings()
    yield
    reload_settings()


@pytest.fixture(scope="session")
def daily_bars() -> list[Bar]:
    """120 deterministic daily bars."""
    return generate_daily_bars()


@pytest.fixture(scope="session")
def daily_frame(daily_bars: list[Bar]) -> pd.DataFrame:
    return pd.DataFrame([bar.model_dump() for bar in daily_bars])


@pytest.fixture
def make_bars() -> Callable[..., list[Bar]]:
    """Factory: bars from (high, low, close[, volume]) tuples on consecutive business days."""

    def _make(rows: list[tuple[Any, ...]], start: date = date(2025, 1, 6)) -> list[Bar]:
        bars = []
        for day, row in zip(business_days(start, len(rows)), rows):
            high, low, close = row[:3]
            volume = row[3] if len(row) > 3 else 1_000
            bars.append(Bar(date=day, open=close, high=high, low=low, close=close, volume=volume))
        return bars

    return _make


@pytest.fixture
def make_frame(make_bars: Callable[..., list[Bar]]) -> Callable[..., pd.DataFrame]:
    """Factory: the same rows as a plain OHLCV DataFrame."""

    def _make(rows: list[tuple[Any, ...]]) -> pd.DataFrame:
        return pd.DataFrame([bar.model_dump() for bar in make_bars(rows)])

    return _make
