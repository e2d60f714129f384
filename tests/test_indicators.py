"""Tests for the technical indicators module."""

from __future__ import annotations

import pandas as pd
import pytest

from gxt.data.indicators import atr, atr_from_bars, bars_to_frame, find_swings, true_range


class TestBarsToFrame:
    """Tests for bars_to_frame()."""

    def test_columns_and_index(self, make_series) -> None:
        bars = make_series([100, 101, 102])
        df = bars_to_frame(bars)
        assert list(df.columns) == ["open", "high", "low", "close", "volume"]
        assert isinstance(df.index, pd.DatetimeIndex)
        assert df["close"].tolist() == [100, 101, 102]


class TestATR:
    """Tests for Average True Range."""

    def test_true_range_uses_previous_close(self) -> None:
        df = pd.DataFrame({"high": [10.0, 12.0], "low": [9.0, 11.5], "close": [9.5, 11.8]})
        tr = true_range(df)
        # max(0.5, |12 - 9.5|, |11.5 - 9.5|)
        assert tr.iloc[1] == pytest.approx(2.5)

    def test_atr_requires_enough_rows(self) -> None:
        df = pd.DataFrame({"high": [1.0] * 5, "low": [0.5] * 5, "close": [0.8] * 5})
        with pytest.raises(ValueError):
            atr(df, period=14)

    def test_constant_range_atr(self, make_series) -> None:
        """Flat closes with a fixed spread give ATR == 2 * spread."""
        bars = make_series([100.0] * 20, spread=0.5)
        assert atr_from_bars(bars, 14) == pytest.approx(1.0)

    def test_atr_from_bars_insufficient(self, make_series) -> None:
        assert atr_from_bars(make_series([100.0] * 14), 14) == 0.0


class TestFindSwings:
    """Tests for find_swings()."""

    def test_detects_pivots(self, make_bar) -> None:
        highs = [10, 11, 15, 11, 10, 9, 8, 9, 10]
        lows = [h - 2 for h in highs]
        bars = [make_bar(open=l + 1, close=l + 1, high=h, low=l) for h, l in zip(highs, lows)]
        swing_highs, swing_lows = find_swings(bars, lookback=2)
        assert [(s.index, s.price) for s in swing_highs] == [(2, 15)]
        assert [(s.index, s.price) for s in swing_lows] == [(6, 6)]

    def test_equal_highs_are_not_swings(self, make_bar) -> None:
        """Comparisons are strict: a plateau is not a pivot."""
        highs = [10, 11, 12, 12, 11, 10]
        bars = [make_bar(open=h - 1, close=h - 1, high=h, low=h - 2) for h in highs]
        swing_highs, _ = find_swings(bars, lookback=1)
        assert swing_highs == []

    def test_edges_never_swing(self, make_bar) -> None:
        highs = [20, 10, 11, 12, 30]
        bars = [make_bar(open=h - 1, close=h - 1, high=h, low=h - 2) for h in highs]
        swing_highs, _ = find_swings(bars, lookback=1)
        assert all(0 < s.index < len(bars) - 1 for s in swing_highs)
