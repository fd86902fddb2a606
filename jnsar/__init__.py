"""JNSAR indicator and signal engine for daily / weekly OHLCV bars."""

from jnsar.analysis.aggregator import enrich_bars, enrich_frame, enriched_to_frame, prepare_frame
from jnsar.analysis.report import build_report_row
from jnsar.analysis.signals import analyze_signal
from jnsar.data.bars import bars_from_frame, bars_from_records
from jnsar.data.models import (
    Bar,
    EnrichedBar,
    Flag,
    PivotLevels,
    ReportRow,
    SignalAnalysis,
    SignalSummary,
    Trend,
)

__version__ = "0.1.0"

__all__ = [
    "Bar",
    "EnrichedBar",
    "Flag",
    "PivotLevels",
    "ReportRow",
    "SignalAnalysis",
    "SignalSummary",
    "Trend",
    "analyze_signal",
    "bars_from_frame",
    "bars_from_records",
    "build_report_row",
    "enrich_bars",
    "enrich_frame",
    "enriched_to_frame",
    "prepare_frame",
]
