"""
JNSAR crossover signal classification for one instrument.

Compares the trend stop with the close on the last two bars (``T-1`` and
``T``) and combines the crossover with an externally supplied trend and
validation flag:

    green trigger : stop above close at T-1, below close at T
    red trigger   : stop below close at T-1, above close at T
    confirmed     : trigger agrees with the external trend (R for green, D for red)
    strong        : confirmed and validated
    flip          : trigger after a regime that already held on T-2 and T-1
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from jnsar.data.models import Bar, EnrichedBar, SignalAnalysis, SignalSummary, Trend
from jnsar.utils.config import Settings, get_settings
from jnsar.utils.logger import get_logger, summarize_values

logger = get_logger(__name__)

BULLISH = "bullish"
BEARISH = "bearish"

_TREND_ALIASES: dict[str, Trend] = {
    "r": Trend.RISING,
    "rising": Trend.RISING,
    "d": Trend.DECLINING,
    "declining": Trend.DECLINING,
}


def parse_trend(value: Any) -> Optional[Trend]:
    """Normalise an external trend flag; anything unrecognised is unknown."""
    if isinstance(value, Trend):
        return value
    if isinstance(value, str):
        return _TREND_ALIASES.get(value.strip().lower())
    return None


def crossover_state(stop: Optional[float], close: Optional[float]) -> Optional[str]:
    """Which side of the close the stop sits on: bullish below, bearish above."""
    if stop is None or close is None:
        return None
    if stop < close:
        return BULLISH
    if stop > close:
        return BEARISH
    return None


def _summarize(green: bool, red: bool, green_flip: bool, red_flip: bool,
               confirmed_green: bool, confirmed_red: bool) -> Optional[SignalSummary]:
    if green and green_flip:
        return SignalSummary.GREEN_FLIP
    if red and red_flip:
        return SignalSummary.RED_FLIP
    if confirmed_green:
        return SignalSummary.CONFIRMED_LONG
    if confirmed_red:
        return SignalSummary.CONFIRMED_SHORT
    if green:
        return SignalSummary.UNCONFIRMED_LONG_TRIGGER
    if red:
        return SignalSummary.UNCONFIRMED_SHORT_TRIGGER
    return None


def analyze_signal(
    bars: Sequence[EnrichedBar],
    ticker: str = "",
    trend: Any = None,
    validation: Optional[bool] = None,
    settings: Optional[Settings] = None,
) -> Optional[SignalAnalysis]:
    """Classify the JNSAR crossover between the last two enriched bars.

    ``bars`` must be ascending by date. Returns ``None`` when fewer than two
    bars are supplied.
    """
    if len(bars) < 2:
        logger.debug("signal_skipped", ticker=ticker, bars=len(bars), reason="insufficient_bars")
        return None

    settings = settings or get_settings()
    current, previous = bars[-1], bars[-2]
    before_previous = bars[-3] if len(bars) >= 3 else None

    average_metric = current.atr
    threshold = average_metric * settings.signal_threshold_pct if average_metric is not None else None

    state_t = crossover_state(current.jnsar, current.close)
    state_t1 = crossover_state(previous.jnsar, previous.close)
    state_t2 = crossover_state(before_previous.jnsar, before_previous.close) if before_previous else None

    green_trigger = state_t1 == BEARISH and state_t == BULLISH
    red_trigger = state_t1 == BULLISH and state_t == BEARISH

    current_trend = parse_trend(trend)
    validated = bool(validation) if validation is not None else False

    confirmed_green = green_trigger and current_trend is Trend.RISING
    strong_green = confirmed_green and validated
    confirmed_red = red_trigger and current_trend is Trend.DECLINING
    strong_red = confirmed_red and validated

    summary = _summarize(
        green_trigger,
        red_trigger,
        green_flip=state_t2 == BEARISH,
        red_flip=state_t2 == BULLISH,
        confirmed_green=confirmed_green,
        confirmed_red=confirmed_red,
    )

    recent = list(bars[-settings.context_window:])
    analysis = SignalAnalysis(
        ticker=ticker,
        latest_date=current.date,
        average_metric=average_metric,
        threshold=threshold,
        jnsar_t=current.jnsar,
        jnsar_t_minus_1=previous.jnsar,
        close_t=current.close,
        close_t_minus_1=previous.close,
        green_trigger=green_trigger,
        red_trigger=red_trigger,
        trend=current_trend,
        validation=validated,
        confirmed_green=confirmed_green,
        strong_green=strong_green,
        confirmed_red=confirmed_red,
        strong_red=strong_red,
        signal_summary=summary,
        recent_volumes=[bar.volume for bar in recent],
        recent_jnsar=[bar.jnsar for bar in recent],
        recent_closes=[bar.close for bar in recent],
        recent_bars=[Bar(**bar.ohlcv()) for bar in recent],
    )

    logger.debug(
        "signal_classified",
        ticker=ticker,
        date=str(current.date),
        summary=summary.value if summary else None,
        **summarize_values({
            "jnsar_t": current.jnsar,
            "close_t": current.close,
            "jnsar_t_minus_1": previous.jnsar,
            "close_t_minus_1": previous.close,
        }),
    )
    return analysis
