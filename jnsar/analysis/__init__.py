"""Indicator series, the JNSAR trend stop, bar enrichment and signal classification."""

from jnsar.analysis.indicators import atr, ema, next_session_levels, pivot_frame, pivot_levels, sma, true_range
from jnsar.analysis.trend_stop import SarParameters, SarState, TrendDirection, jnsar, jnsar_frame

__all__ = [
    "SarParameters",
    "SarState",
    "TrendDirection",
    "atr",
    "ema",
    "jnsar",
    "jnsar_frame",
    "next_session_levels",
    "pivot_frame",
    "pivot_levels",
    "sma",
    "true_range",
]
