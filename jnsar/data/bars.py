from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable

import pandas as pd
from pydantic import ValidationError

from jnsar.data.models import Bar, parse_bar_date
from jnsar.utils.exceptions import DataError
from jnsar.utils.logger import get_logger

logger = get_logger(__name__)

BAR_FIELDS = ("open", "high", "low", "close", "volume")


def bars_from_records(records: Iterable[Any]) -> list[Bar]:
    """Build bars from provider rows (mappings with a date and OHLCV keys).

    Rows without a usable date are skipped; unknown keys are ignored and bad
    numeric fields become unavailable on the bar.
    """
    bars: list[Bar] = []
    for position, record in enumerate(records):
        if isinstance(record, Bar):
            bars.append(record)
            continue
        if not isinstance(record, Mapping):
            raise DataError(f"Bar record at position {position} is not a mapping")

        raw_date = record.get("date", record.get("timestamp"))
        bar_date = parse_bar_date(raw_date)
        if bar_date is None:
            logger.warning("bar_record_skipped", position=position, reason="missing_date", value=str(raw_date))
            continue

        try:
            bars.append(Bar(
                date=bar_date,
                sector=record.get("sector"),
                **{name: record.get(name) for name in BAR_FIELDS},
            ))
        except ValidationError as e:
            logger.warning("bar_record_skipped", position=position, reason="invalid", error=str(e))
    return bars


def bars_from_frame(df: pd.DataFrame) -> list[Bar]:
    """Build bars from an OHLCV DataFrame.

    The date comes from a ``date`` or ``timestamp`` column, or from a
    datetime index.
    """
    if "date" in df.columns:
        dates = df["date"]
    elif "timestamp" in df.columns:
        dates = df["timestamp"]
    elif isinstance(df.index, pd.DatetimeIndex):
        dates = pd.Series(df.index, index=df.index)
    else:
        raise DataError("Frame has no date column or datetime index", field="date")

    frame = df.copy()
    frame["date"] = list(dates)
    columns = ["date", *[c for c in (*BAR_FIELDS, "sector") if c in frame.columns]]
    return bars_from_records(frame[columns].to_dict(orient="records"))
