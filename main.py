from __future__ import annotations

import argparse
import json
import sys
from typing import Optional

import pandas as pd

from jnsar.analysis.aggregator import enrich_bars
from jnsar.analysis.indicators import pivot_levels
from jnsar.analysis.report import build_report_row
from jnsar.analysis.signals import analyze_signal
from jnsar.data.bars import bars_from_frame
from jnsar.utils.exceptions import AnalysisError
from jnsar.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compute JNSAR indicators and signals for one instrument")
    parser.add_argument("csv", help="CSV file with date/open/high/low/close/volume columns")
    parser.add_argument("--ticker", default="", help="Instrument name carried into the output")
    parser.add_argument("--trend", choices=["R", "D"], default=None, help="External trend flag (Rising/Declining)")
    parser.add_argument("--validation", action="store_true", help="External validation flag")
    parser.add_argument("--report-date", default=None, help="Also build the day report for this date (YYYY-MM-DD)")
    parser.add_argument("--last", type=int, default=0, help="Only print the last N enriched bars (0 = all)")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    setup_logging()
    args = _parse_args(argv)

    try:
        bars = bars_from_frame(pd.read_csv(args.csv))
        enriched = enrich_bars(bars)
        analysis = analyze_signal(enriched, ticker=args.ticker, trend=args.trend, validation=args.validation)
        report = build_report_row(enriched, args.report_date, ticker=args.ticker) if args.report_date else None
    except (AnalysisError, OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.error("analysis_failed", path=args.csv, error=str(e))
        return 1

    rows = enriched[-args.last:] if args.last > 0 else enriched
    # the last enriched bar is the last date after sorting and de-duplication
    last = enriched[-1] if enriched else None
    levels = pivot_levels(last.high, last.low, last.close) if last else None
    output = {
        "ticker": args.ticker,
        "bars": [row.to_row() for row in rows],
        "signal": analysis.model_dump(mode="json") if analysis else None,
        "next_session_levels": levels.model_dump() if levels else None,
        "report": report.model_dump(mode="json") if report else None,
    }
    json.dump(output, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
