from __future__ import annotations

import math
from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd

from jnsar.analysis.indicators import PIVOT_COLUMNS, atr, ema, pivot_frame, price_column, sma
from jnsar.analysis.trend_stop import SarParameters, jnsar
from jnsar.data.models import Bar, EnrichedBar, Flag
from jnsar.utils.config import Settings, get_settings
from jnsar.utils.logger import get_logger

logger = get_logger(__name__)

BAR_COLUMNS = ["date", "open", "high", "low", "close", "volume", "sector"]
PRICE_COLUMNS = ["open", "high", "low", "close", "volume"]


# ────────────────────────────────────────────────────────────────
# Frame preparation
# ────────────────────────────────────────────────────────────────

def prepare_frame(bars: Sequence[Bar]) -> pd.DataFrame:
    """Working frame for one instrument: ascending by date, one row per date."""
    df = pd.DataFrame([bar.model_dump() for bar in bars], columns=BAR_COLUMNS)
    for column in PRICE_COLUMNS:
        df[column] = pd.to_numeric(df[column], errors="coerce").astype(float)
    if df.empty:
        return df

    if not df["date"].is_monotonic_increasing:
        logger.warning("bars_resorted", bars=len(df))
        df = df.sort_values("date", kind="stable")

    duplicated = df["date"].duplicated(keep="last")
    if duplicated.any():
        logger.warning(
            "duplicate_dates_dropped",
            dropped=int(duplicated.sum()),
            dates=sorted({str(d) for d in df.loc[duplicated, "date"]}),
        )
        df = df.loc[~duplicated]

    return df.reset_index(drop=True)


# ────────────────────────────────────────────────────────────────
# Enrichment
# ────────────────────────────────────────────────────────────────

def _flag(condition: pd.Series) -> pd.Series:
    return pd.Series(
        np.where(condition, Flag.YES.value, Flag.NO.value),
        index=condition.index,
        dtype=object,
    )


def enrich_frame(df: pd.DataFrame, settings: Optional[Settings] = None) -> pd.DataFrame:
    """Add every derived column to a prepared bar frame.

    Each indicator series is computed once over the whole frame. Pivot
    levels, entries and the comparison flags of a row are taken from the
    row before it; the first row therefore has none of them.
    """
    settings = settings or get_settings()
    high = price_column(df, "high")
    low = price_column(df, "low")
    close = price_column(df, "close")
    volume = price_column(df, "volume")

    out = df.copy()
    out["ema5"] = ema(close, settings.ema_period)
    out["lema5"] = ema(low, settings.ema_period)
    out["hema5"] = ema(high, settings.ema_period)
    out["atr"] = atr(df, settings.atr_period)

    pivots = pivot_frame(df)
    for column in PIVOT_COLUMNS:
        out[column] = pivots[column]

    out["jnsar"] = jnsar(df, SarParameters.from_settings(settings))
    out["long_entry"] = pivots["l1"]
    out["short_entry"] = pivots["h1"]

    # NaN comparisons are False, so a missing side reads as "no"
    out["higher_high"] = _flag(high > high.shift(1))
    out["lower_low"] = _flag(low < low.shift(1))
    out["close_lower"] = _flag(close < close.shift(1))
    out["diff"] = high - low

    avg_volume = sma(volume, settings.volume_sma_period)
    out["avg_volume"] = avg_volume
    usable = volume.notna() & avg_volume.notna() & (avg_volume > 0)
    anomaly = (volume > avg_volume * settings.volume_anomaly_multiple).astype(object)
    out["volume_anomaly"] = anomaly.where(usable, None)

    out["long_target"] = out["long_entry"] + out["atr"]
    out["short_target"] = out["short_entry"] - out["atr"]
    return out


def _record(row: dict[str, Any]) -> dict[str, Any]:
    record: dict[str, Any] = {}
    for key, value in row.items():
        if isinstance(value, float) and math.isnan(value):
            record[key] = None
        elif isinstance(value, np.bool_):
            record[key] = bool(value)
        else:
            record[key] = value
    return record


def enrich_bars(bars: Sequence[Bar], settings: Optional[Settings] = None) -> list[EnrichedBar]:
    """Enriched bar records for one instrument's series (input is never mutated)."""
    df = prepare_frame(bars)
    if df.empty:
        return []

    enriched = enrich_frame(df, settings)
    records = [EnrichedBar(**_record(row)) for row in enriched.to_dict(orient="records")]
    logger.debug(
        "bars_enriched",
        bars=len(records),
        first_date=str(records[0].date),
        last_date=str(records[-1].date),
    )
    return records


def enriched_to_frame(records: Sequence[EnrichedBar]) -> pd.DataFrame:
    """Tabular form of enriched bars, keyed by display column names."""
    return pd.DataFrame([record.to_row() for record in records])
