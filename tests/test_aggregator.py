"""
Tests for bar enrichment: frame preparation, per-bar derived columns and
the tabular export.
"""

from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from jnsar.analysis.aggregator import enrich_bars, enrich_frame, enriched_to_frame, prepare_frame
from jnsar.analysis.indicators import atr, ema, pivot_levels
from jnsar.data.models import Bar, EnrichedBar, Flag
from jnsar.utils.config import Settings


class TestPrepareFrame:

    def test_sorted_input_unchanged(self, make_bars):
        bars = make_bars([(11.0, 9.0, 10.0), (12.0, 10.0, 11.0)])
        df = prepare_frame(bars)
        assert list(df["date"]) == [bar.date for bar in bars]
        assert list(df["close"]) == [10.0, 11.0]

    def test_unsorted_input_is_sorted(self, make_bars):
        bars = make_bars([(11.0, 9.0, 10.0), (12.0, 10.0, 11.0), (13.0, 11.0, 12.0)])
        df = prepare_frame(list(reversed(bars)))
        assert list(df["date"]) == [bar.date for bar in bars]
        assert list(df.index) == [0, 1, 2]

    def test_duplicate_date_keeps_last(self, make_bars):
        bars = make_bars([(11.0, 9.0, 10.0), (12.0, 10.0, 11.0), (13.0, 11.0, 12.0)])
        replacement = Bar(date=bars[1].date, open=45.0, high=50.0, low=40.0, close=45.0, volume=1)
        df = prepare_frame([*bars, replacement])
        assert len(df) == 3
        assert df.loc[1, "close"] == 45.0

    def test_empty(self):
        df = prepare_frame([])
        assert df.empty
        assert "close" in df.columns


class TestEnrichBars:

    def test_empty_series(self):
        assert enrich_bars([]) == []

    def test_one_record_per_bar(self, daily_bars):
        records = enrich_bars(daily_bars)
        assert len(records) == len(daily_bars)
        assert all(isinstance(record, EnrichedBar) for record in records)
        assert [record.date for record in records] == [bar.date for bar in daily_bars]
        assert records[0].sector == "Financial Services"

    def test_first_bar_has_no_previous_bar_values(self, daily_bars):
        first = enrich_bars(daily_bars)[0]
        assert first.pp is None
        assert first.long_entry is None
        assert first.short_entry is None
        assert first.ema5 is None
        assert first.atr is None
        assert first.higher_high is Flag.NO
        assert first.lower_low is Flag.NO
        assert first.close_lower is Flag.NO
        assert first.diff == pytest.approx(daily_bars[0].high - daily_bars[0].low)
        assert first.jnsar is not None

    def test_pivots_and_entries_come_from_previous_bar(self, make_bars):
        records = enrich_bars(make_bars([(110.0, 90.0, 100.0), (120.0, 100.0, 115.0)]))
        second = records[1]
        assert second.pivots == pivot_levels(110.0, 90.0, 100.0)
        assert second.long_entry == pytest.approx(90.0)
        assert second.short_entry == pytest.approx(110.0)
        # no ATR yet, so no targets
        assert second.long_target is None
        assert second.short_target is None

    def test_indicator_columns_match_primitives(self, daily_bars, daily_frame):
        records = enrich_bars(daily_bars)
        expected_ema = ema(daily_frame["close"], 5)
        expected_lema = ema(daily_frame["low"], 5)
        expected_atr = atr(daily_frame, 14)
        for i in (4, 30, len(records) - 1):
            assert records[i].ema5 == pytest.approx(expected_ema.iloc[i])
            assert records[i].lema5 == pytest.approx(expected_lema.iloc[i])
        for i in (13, 30, len(records) - 1):
            assert records[i].atr == pytest.approx(expected_atr.iloc[i])
        # unavailable values are NaN in the series and None on the record
        for i in range(13):
            assert records[i].atr is None
            assert pd.isna(expected_atr.iloc[i])
        assert records[3].ema5 is None
        assert records[12].atr is None
        assert records[13].atr is not None

    def test_targets(self, daily_bars):
        for record in enrich_bars(daily_bars)[14:]:
            assert record.long_target == pytest.approx(record.long_entry + record.atr)
            assert record.short_target == pytest.approx(record.short_entry - record.atr)

    def test_comparison_flags(self, make_bars):
        records = enrich_bars(make_bars([
            (10.0, 9.0, 9.5),
            (11.0, 8.0, 9.0),
            (10.5, 8.5, 9.5),
        ]))
        assert records[1].higher_high is Flag.YES
        assert records[1].lower_low is Flag.YES
        assert records[1].close_lower is Flag.YES
        assert records[2].higher_high is Flag.NO
        assert records[2].lower_low is Flag.NO
        assert records[2].close_lower is Flag.NO

    def test_volume_anomaly(self, make_bars):
        rows = [(10.0, 9.0, 9.5, 1_000)] * 20 + [(10.0, 9.0, 9.5, 5_000)]
        records = enrich_bars(make_bars(rows))
        assert records[18].avg_volume is None
        assert records[18].volume_anomaly is None
        assert records[19].avg_volume == pytest.approx(1_000.0)
        assert records[19].volume_anomaly is False
        assert records[20].avg_volume == pytest.approx(1_200.0)
        assert records[20].volume_anomaly is True

    def test_missing_volume_has_no_anomaly(self, make_bars):
        rows = [(10.0, 9.0, 9.5, 1_000)] * 21 + [(10.0, 9.0, 9.5, None)]
        records = enrich_bars(make_bars(rows))
        assert records[20].volume_anomaly is False
        assert records[21].volume is None
        assert records[21].volume_anomaly is None

    def test_missing_close_is_tolerated(self, daily_bars):
        bars = list(daily_bars)
        bars[50] = bars[50].model_copy(update={"close": None})
        records = enrich_bars(bars)
        assert records[50].close is None
        assert records[50].ema5 is None
        assert records[50].close_lower is Flag.NO
        assert records[51].close_lower is Flag.NO
        assert records[50].atr is not None
        assert records[60].ema5 is not None
        assert records[60].atr is not None

    def test_unsorted_input_gives_sorted_output(self, daily_bars):
        assert enrich_bars(list(reversed(daily_bars))) == enrich_bars(daily_bars)

    def test_idempotent(self, daily_bars):
        assert enrich_bars(daily_bars) == enrich_bars(daily_bars)

    def test_input_bars_are_not_modified(self, daily_bars):
        before = [bar.model_dump() for bar in daily_bars]
        enrich_bars(daily_bars)
        assert [bar.model_dump() for bar in daily_bars] == before

    def test_settings_override(self, daily_bars, daily_frame):
        settings = Settings(ema_period=3, atr_period=5, volume_sma_period=3)
        records = enrich_bars(daily_bars, settings)
        assert records[1].ema5 is None
        assert records[2].ema5 == pytest.approx(daily_frame["close"].iloc[:3].mean())
        assert records[3].atr is None
        assert records[4].atr is not None
        assert records[2].avg_volume == pytest.approx(daily_frame["volume"].iloc[:3].mean())


class TestEnrichFrame:

    def test_adds_derived_columns(self, daily_bars):
        out = enrich_frame(prepare_frame(daily_bars))
        for column in ("ema5", "lema5", "hema5", "atr", "pp", "l4", "jnsar",
                       "long_entry", "short_entry", "higher_high", "diff",
                       "avg_volume", "volume_anomaly", "long_target", "short_target"):
            assert column in out.columns
        assert len(out) == len(daily_bars)

    def test_does_not_modify_input_frame(self, daily_bars):
        df = prepare_frame(daily_bars)
        columns = list(df.columns)
        enrich_frame(df)
        assert list(df.columns) == columns


class TestEnrichedToFrame:

    def test_display_columns(self, make_bars):
        frame = enriched_to_frame(enrich_bars(make_bars([(10.0, 9.0, 9.5), (11.0, 8.0, 9.0)])))
        for column in ("date", "close", "EMA5", "ATR", "PP", "H1", "L1", "JNSAR",
                       "LongEntry", "ShortEntry", "HigherHigh", "LowerLow", "CloseLower",
                       "Diff", "AvgVolume", "VolumeAnomaly", "LongTarget", "ShortTarget"):
            assert column in frame.columns
        assert list(frame["HigherHigh"]) == ["no", "yes"]
        assert frame.loc[0, "date"] == date(2025, 1, 6).isoformat()

    def test_empty(self):
        assert enriched_to_frame([]).empty

    def test_row_round_trips_through_aliases(self, daily_bars):
        record = enrich_bars(daily_bars)[-1]
        assert EnrichedBar.model_validate(record.to_row()) == record

    def test_frame_length(self, daily_bars):
        frame = enriched_to_frame(enrich_bars(daily_bars))
        assert isinstance(frame, pd.DataFrame)
        assert len(frame) == len(daily_bars)
