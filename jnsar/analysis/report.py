from __future__ import annotations

from typing import Any, Optional, Sequence

from jnsar.analysis.signals import analyze_signal
from jnsar.data.models import EnrichedBar, ReportRow, parse_bar_date
from jnsar.utils.config import Settings, get_settings
from jnsar.utils.exceptions import DataError
from jnsar.utils.logger import get_logger

logger = get_logger(__name__)

LOOKBACK_BARS = 4

_DAY_FIELDS = (
    "sector", "open", "high", "low", "close", "volume",
    "ema5", "lema5", "hema5", "atr", "jnsar",
    "long_entry", "short_entry", "higher_high", "lower_low", "close_lower",
    "diff", "avg_volume", "volume_anomaly", "long_target", "short_target",
)


def build_report_row(
    bars: Sequence[EnrichedBar],
    report_date: Any,
    ticker: str = "",
    settings: Optional[Settings] = None,
) -> Optional[ReportRow]:
    """Snapshot of one instrument on ``report_date``.

    Only bars dated on or before the report date are considered. The JNSAR
    look-back columns are the preceding bars of the series, not calendar
    days, and the change flags come from the last two bars on or before it,
    whether or not the report day itself is a trading day. Returns ``None``
    when the series has nothing up to that date.
    """
    day = parse_bar_date(report_date)
    if day is None:
        raise DataError(f"Unusable report date {report_date!r}", field="report_date")

    settings = settings or get_settings()
    history = [bar for bar in bars if bar.date <= day]
    if not history:
        logger.debug("report_skipped", ticker=ticker, report_date=str(day), reason="no_history")
        return None

    report_bar = history[-1] if history[-1].date == day else None
    fields: dict[str, Any] = {}
    if report_bar is not None:
        fields = {name: getattr(report_bar, name) for name in _DAY_FIELDS}
        fields["pivots"] = report_bar.pivots

    # look-back JNSAR values relative to the report day (or to the last bar before it)
    anchor = len(history) - 1 if report_bar is not None else len(history)
    for offset in range(1, LOOKBACK_BARS + 1):
        position = anchor - offset
        fields[f"jnsar_c_minus_{offset}"] = history[position].jnsar if position >= 0 else None

    analysis = analyze_signal(history, ticker=ticker, settings=settings)

    return ReportRow(
        ticker=ticker,
        report_date=day,
        found=report_bar is not None,
        changed_to_green=bool(analysis and analysis.green_trigger),
        changed_to_red=bool(analysis and analysis.red_trigger),
        **fields,
    )
