"""Tests for the eleven analysis modules."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from gxt.analysis import MODULE_NAMES, run_analysis
from gxt.analysis import cic, cisd, daily_profile, dol, fvg, levels, psp, session_times, smt, vshape, wick
from gxt.engine.scorer import CHECKLIST
from gxt.models.bar import Bar, Timeframe

T0 = datetime(2025, 1, 15, 15, 0)
AS_OF = datetime(2025, 1, 15, 15, 0)


def _ohlc(rows: list[tuple[float, float, float, float]], start: datetime = T0, tf: Timeframe = Timeframe.M15) -> list[Bar]:
    step = timedelta(minutes=15 if tf == Timeframe.M15 else 60)
    return [
        Bar(timestamp=start + step * i, open=o, high=h, low=l, close=c, timeframe=tf, symbol="SPY")
        for i, (o, h, l, c) in enumerate(rows)
    ]


FLAT = [(100.0, 100.5, 99.5, 100.0)] * 15

# Swing high of 103 at index 15, broken by the close of the last bar
CISD_BULLISH = FLAT + [
    (100.0, 103.0, 99.8, 102.0),
    (102.0, 102.5, 100.5, 101.0),
    (101.0, 101.5, 100.2, 100.5),
    (100.5, 102.8, 100.3, 102.6),
    (102.6, 104.0, 102.4, 103.6),
]


@pytest.fixture
def daily_bars(make_series) -> list[Bar]:
    """Fifteen daily bars, Jan 1 - Jan 15 2025, closing 100, 101, ..., 114."""
    return make_series(
        [100.0 + i for i in range(15)], start=datetime(2025, 1, 1), timeframe=Timeframe.D1
    )


class TestCIC:
    """Tests for the Candle-in-Candle classifier."""

    def test_inside_bar(self, make_bar) -> None:
        prev = make_bar(100, 101, high=102, low=98)
        current = make_bar(101, 99.2, high=101.5, low=99)
        assert cic.classify_candle(current, prev) == "C4"

    def test_inside_bar_wins_regardless_of_close(self, make_bar) -> None:
        prev = make_bar(100, 101, high=102, low=98)
        current = make_bar(98, 102, high=102, low=98)
        assert cic.classify_candle(current, prev) == "C4"

    def test_expansion(self, make_bar) -> None:
        prev = make_bar(100, 100.5, high=101, low=99)
        current = make_bar(100.5, 102.8, high=103, low=100)
        assert cic.classify_candle(current, prev) == "C1"

    def test_reversal(self, make_bar) -> None:
        prev = make_bar(100, 101, high=102, low=99)
        current = make_bar(100, 98.6, high=100.5, low=98.5)
        assert cic.classify_candle(current, prev) == "C3"

    def test_retracement(self, make_bar) -> None:
        prev = make_bar(100, 102, high=102.5, low=99.5)
        current = make_bar(101.8, 101.5, high=102.6, low=101)
        assert cic.classify_candle(current, prev) == "C2"

    def test_fallthrough_is_directional(self, make_bar) -> None:
        prev = make_bar(100, 102, high=102.5, low=99.5)
        current = make_bar(100.9, 102.45, high=102.6, low=100.8)
        assert cic.classify_candle(current, prev) == "C1"

    def test_insufficient_data(self, make_series, make_snapshot) -> None:
        snap = make_snapshot({Timeframe.M15: make_series([100, 101])})
        signal = cic.analyze(snap, 101)
        assert signal.type == "C4"
        assert signal.description == "Insufficient data"


class TestSessionTimes:
    """Tests for session lookup by explicit instant."""

    @pytest.mark.parametrize(
        "instant, expected",
        [
            (datetime(2025, 1, 15, 15, 0), "ny_am"),
            (datetime(2025, 1, 15, 14, 45), "ny_open"),
            (datetime(2025, 7, 15, 13, 30), "ny_open"),  # EDT
            (datetime(2025, 1, 15, 17, 30), "ny_lunch"),
            (datetime(2025, 1, 15, 19, 0), "ny_pm"),
            (datetime(2025, 1, 16, 2, 0), "asia"),
            (datetime(2025, 1, 15, 10, 0), "london"),
        ],
    )
    def test_session_for_timestamp(self, instant: datetime, expected: str) -> None:
        assert session_times.session_for_timestamp(instant) == expected

    def test_high_probability_window(self) -> None:
        signal = session_times.session_signal(datetime(2025, 1, 15, 14, 45))
        assert signal.current_session == "ny_open"
        assert signal.is_high_probability_window is True
        assert signal.minutes_into_session == 15
        assert "high probability" in signal.description

    def test_minutes_into_session_across_midnight(self) -> None:
        # 07:00 UTC == 02:00 New York, six hours into asia
        signal = session_times.session_signal(datetime(2025, 1, 16, 7, 0))
        assert signal.current_session == "asia"
        assert signal.minutes_into_session == 360
        assert signal.is_high_probability_window is False

    def test_analyze_uses_snapshot_instant(self, make_snapshot) -> None:
        snap = make_snapshot({}, as_of=datetime(2025, 1, 15, 19, 0))
        assert session_times.analyze(snap, 100).current_session == "ny_pm"


class TestDailyProfile:
    """Tests for OHLC / OLHC detection."""

    def _daily(self, make_series) -> list[Bar]:
        return make_series([100.0, 101.0], start=datetime(2025, 1, 14), timeframe=Timeframe.D1)

    def test_default_without_daily_bars(self, make_snapshot) -> None:
        signal = daily_profile.analyze(make_snapshot({}, as_of=AS_OF), 100)
        assert (signal.type, signal.bias, signal.date) == ("OLHC", "bullish", "2025-01-15")

    def test_high_before_low_is_bearish(self, make_series, make_snapshot) -> None:
        hourly = _ohlc(
            [
                (100.0, 102.0, 99.8, 101.5),
                (101.5, 101.8, 100.5, 100.8),
                (100.8, 101.0, 99.0, 99.5),
                (99.5, 100.0, 99.2, 99.8),
            ],
            start=datetime(2025, 1, 15, 14),
            tf=Timeframe.H1,
        )
        snap = make_snapshot({Timeframe.D1: self._daily(make_series), Timeframe.H1: hourly})
        signal = daily_profile.analyze(snap, 99.8)
        assert (signal.type, signal.bias) == ("OHLC", "bearish")

    def test_low_before_high_is_bullish(self, make_series, make_snapshot) -> None:
        hourly = _ohlc(
            [
                (100.0, 100.2, 98.0, 99.0),
                (99.0, 100.5, 98.5, 100.4),
                (100.4, 102.0, 100.1, 101.8),
                (101.8, 101.9, 101.0, 101.2),
            ],
            start=datetime(2025, 1, 15, 14),
            tf=Timeframe.H1,
        )
        snap = make_snapshot({Timeframe.D1: self._daily(make_series), Timeframe.H1: hourly})
        signal = daily_profile.analyze(snap, 101.2)
        assert (signal.type, signal.bias) == ("OLHC", "bullish")

    def test_same_hour_extremes_fall_back_to_candle(self, make_series, make_snapshot) -> None:
        hourly = _ohlc(
            [
                (100.0, 100.5, 99.5, 100.0),
                (100.0, 100.4, 99.6, 100.1),
                (100.0, 103.0, 98.0, 101.0),
                (101.0, 102.0, 99.0, 101.5),
            ],
            start=datetime(2025, 1, 15, 12),
            tf=Timeframe.H1,
        )
        snap = make_snapshot({Timeframe.D1: self._daily(make_series), Timeframe.H1: hourly})
        signal = daily_profile.analyze(snap, 101.5)
        # Daily bar opened at 100 and closed at 101
        assert (signal.type, signal.bias) == ("OLHC", "bullish")


class TestKeyLevels:
    """Tests for key level computation."""

    def test_levels(self, daily_bars, make_snapshot) -> None:
        snap = make_snapshot({Timeframe.D1: daily_bars}, as_of=AS_OF)
        signal = levels.analyze(snap, 112.0)
        found = {lv.label: lv.price for lv in signal.levels}
        assert found == {
            "PDH": pytest.approx(113.5),
            "PDL": pytest.approx(111.5),
            "DO": pytest.approx(113.0),
            "PWH": pytest.approx(110.5),
            "PWL": pytest.approx(102.5),
        }
        assert [lv.price for lv in signal.levels] == sorted(lv.price for lv in signal.levels)

    def test_nearest_above_and_below(self, daily_bars, make_snapshot) -> None:
        snap = make_snapshot({Timeframe.D1: daily_bars}, as_of=AS_OF)
        signal = levels.analyze(snap, 112.0)
        assert signal.nearest_above.label == "DO"
        assert signal.nearest_below.label == "PDL"

    def test_no_weekly_levels_with_few_bars(self, daily_bars, make_snapshot) -> None:
        snap = make_snapshot({Timeframe.D1: daily_bars[-5:]}, as_of=AS_OF)
        labels = {lv.label for lv in levels.analyze(snap, 112.0).levels}
        assert labels == {"PDH", "PDL", "DO"}

    def test_no_levels_without_daily(self, make_snapshot) -> None:
        signal = levels.analyze(make_snapshot({}, as_of=AS_OF), 100)
        assert signal.levels == ()
        assert signal.nearest_above is None and signal.nearest_below is None


class TestFVG:
    """Tests for Fair Value Gap detection."""

    GAP = [
        (99.5, 100.0, 99.4, 99.9),
        (99.9, 100.8, 99.8, 100.7),
        (100.7, 101.2, 100.6, 101.0),
    ]

    def test_bullish_gap_at_boundary_is_unfilled(self, make_snapshot) -> None:
        snap = make_snapshot({Timeframe.M15: _ohlc(self.GAP)})
        signal = fvg.analyze(snap, 100.0)
        assert len(signal.fvgs) == 1
        gap = signal.nearest_unfilled
        assert gap.direction == "bullish"
        assert gap.filled is False
        assert gap.low == pytest.approx(100.0)
        assert gap.high == pytest.approx(100.6)
        assert gap.midpoint == pytest.approx(100.3)
        assert gap.timeframe == "15m"

    def test_price_below_gap_fills_it(self, make_snapshot) -> None:
        snap = make_snapshot({Timeframe.M15: _ohlc(self.GAP)})
        signal = fvg.analyze(snap, 99.9)
        assert signal.fvgs == ()
        assert signal.nearest_unfilled is None

    def test_gap_below_minimum_width_ignored(self, make_snapshot) -> None:
        rows = [self.GAP[0], self.GAP[1], (100.7, 101.2, 100.2, 101.0)]
        snap = make_snapshot({Timeframe.M15: _ohlc(rows)})
        assert fvg.analyze(snap, 100.0).fvgs == ()

    def test_bearish_gap(self, make_snapshot) -> None:
        rows = [
            (100.5, 100.6, 100.0, 100.1),
            (100.1, 100.2, 99.1, 99.2),
            (99.2, 99.4, 98.8, 99.0),
        ]
        snap = make_snapshot({Timeframe.M15: _ohlc(rows)})
        gap = fvg.analyze(snap, 99.0).nearest_unfilled
        assert gap.direction == "bearish"
        assert (gap.low, gap.high) == (pytest.approx(99.4), pytest.approx(100.0))


class TestCISD:
    """Tests for Change in State of Delivery."""

    def test_bullish_break(self, make_snapshot) -> None:
        snap = make_snapshot({Timeframe.M15: _ohlc(CISD_BULLISH)})
        signal = cisd.analyze(snap, 103.6)
        assert signal.detected is True
        assert signal.direction == "bullish"
        assert signal.swing_broken == pytest.approx(103.0)
        assert signal.close_price == pytest.approx(103.6)

    def test_prior_close_already_through(self, make_snapshot) -> None:
        rows = CISD_BULLISH[:-2] + [(100.5, 103.4, 100.3, 103.2), (103.2, 104.0, 103.0, 103.6)]
        snap = make_snapshot({Timeframe.M15: _ohlc(rows)})
        assert cisd.analyze(snap, 103.6).detected is False

    def test_insufficient_bars(self, make_snapshot) -> None:
        snap = make_snapshot({Timeframe.M15: _ohlc(CISD_BULLISH[-10:])})
        signal = cisd.analyze(snap, 103.6)
        assert signal.detected is False
        assert signal.direction is None


class TestPSP:
    """Tests for protected swing points."""

    def test_protected_high(self, make_snapshot) -> None:
        rows = CISD_BULLISH[:-1] + [(102.6, 102.7, 101.9, 102.0)]
        snap = make_snapshot({Timeframe.M15: _ohlc(rows)})
        signal = psp.analyze(snap, 102.0)
        assert signal.nearest_protected_high == pytest.approx(103.0)
        assert signal.nearest_protected_low is None
        assert signal.swing_highs[-1].protected is True

    def test_broken_high_is_not_protected(self, make_snapshot) -> None:
        snap = make_snapshot({Timeframe.M15: _ohlc(CISD_BULLISH)})
        signal = psp.analyze(snap, 103.6)
        assert signal.swing_highs[-1].protected is False
        assert signal.nearest_protected_high is None

    def test_insufficient_bars(self, make_snapshot) -> None:
        snap = make_snapshot({Timeframe.M15: _ohlc(FLAT[:5])})
        assert psp.analyze(snap, 100).swing_highs == ()


class TestSMT:
    """Tests for SMT divergence."""

    def test_no_peer(self, make_series, make_snapshot) -> None:
        snap = make_snapshot({Timeframe.M15: make_series([100] * 10)})
        signal = smt.analyze(snap, 100)
        assert signal.detected is False
        assert signal.symbol_b == "N/A"

    def test_bullish_divergence(self, make_series, make_snapshot) -> None:
        subject = make_snapshot({Timeframe.M15: make_series([100] * 5 + [99, 98, 97, 96, 95])})
        peer = make_snapshot(
            {Timeframe.M15: make_series([100] * 5 + [101, 102, 103, 104, 105], symbol="QQQ")},
            symbol="QQQ",
        )
        signal = smt.analyze(subject, 95, peer)
        assert signal.detected is True
        assert signal.divergence_type == "bullish"
        assert signal.description == "SPY made lower low but QQQ held — bullish divergence"

    def test_bearish_divergence(self, make_series, make_snapshot) -> None:
        subject = make_snapshot({Timeframe.M15: make_series([100] * 5 + [101, 102, 103, 104, 105])})
        peer = make_snapshot(
            {Timeframe.M15: make_series([100] * 5 + [99, 98, 97, 96, 95], symbol="QQQ")},
            symbol="QQQ",
        )
        signal = smt.analyze(subject, 105, peer)
        assert signal.detected is True
        assert signal.divergence_type == "bearish"

    def test_insufficient_peer_data(self, make_series, make_snapshot) -> None:
        subject = make_snapshot({Timeframe.M15: make_series([100] * 10)})
        peer = make_snapshot({Timeframe.M15: make_series([100] * 4, symbol="QQQ")}, symbol="QQQ")
        signal = smt.analyze(subject, 100, peer)
        assert signal.detected is False
        assert signal.description == "Insufficient data for SMT comparison"


class TestWick:
    """Tests for wick analysis."""

    def test_long_lower_wick_is_high_significance(self, make_snapshot) -> None:
        rows = FLAT[:14] + [(100.0, 100.3, 99.0, 100.2)]
        snap = make_snapshot({Timeframe.M15: _ohlc(rows)})
        signal = wick.analyze(snap, 100.2)
        assert signal.significance == "high"
        assert signal.bottom_wick_ratio == pytest.approx(1.0 / 1.3, abs=1e-4)
        assert signal.atr14 == pytest.approx((13 * 1.0 + 1.3) / 14, abs=1e-4)

    def test_small_wicks_are_low(self, make_snapshot) -> None:
        rows = FLAT[:14] + [(100.0, 100.55, 99.95, 100.5)]
        snap = make_snapshot({Timeframe.M15: _ohlc(rows)})
        assert wick.analyze(snap, 100.5).significance == "low"

    def test_insufficient_bars(self, make_snapshot) -> None:
        snap = make_snapshot({Timeframe.M15: _ohlc(FLAT[:10])})
        signal = wick.analyze(snap, 100)
        assert signal.body_ratio == 1.0
        assert signal.significance == "low"

    def test_zero_range_bar(self, make_snapshot) -> None:
        rows = FLAT[:14] + [(100.0, 100.0, 100.0, 100.0)]
        snap = make_snapshot({Timeframe.M15: _ohlc(rows)})
        signal = wick.analyze(snap, 100)
        assert signal.body_ratio == 0
        assert signal.wick_to_atr_ratio == 0


class TestDOL:
    """Tests for the Draw on Liquidity target."""

    def test_nearest_level(self, daily_bars, make_snapshot) -> None:
        snap = make_snapshot({Timeframe.D1: daily_bars}, as_of=AS_OF)
        signal = dol.analyze(snap, 112.0)
        assert signal.target_label == "PDL"
        assert signal.direction == "below"
        assert signal.distance == pytest.approx(0.5)
        assert signal.distance_percent == pytest.approx(0.45)

    def test_equidistant_targets_keep_first(self, daily_bars, make_snapshot) -> None:
        snap = make_snapshot({Timeframe.D1: daily_bars}, as_of=AS_OF)
        # PDL (111.5) and DO (113.0) are both 0.75 away; PDL comes first
        assert dol.analyze(snap, 112.25).target_label == "PDL"

    def test_zero_distance_target_skipped(self, daily_bars, make_snapshot) -> None:
        snap = make_snapshot({Timeframe.D1: daily_bars}, as_of=AS_OF)
        signal = dol.analyze(snap, 113.0)
        assert signal.target_label == "PDH"
        assert signal.direction == "above"

    def test_no_targets(self, make_snapshot) -> None:
        signal = dol.analyze(make_snapshot({}, as_of=AS_OF), 100)
        assert signal.target is None
        assert signal.target_label == "None"


class TestVShape:
    """Tests for V-shape reversal detection."""

    def test_bullish_v(self, make_series, make_snapshot) -> None:
        bars = make_series([105, 104, 103, 102, 100, 102, 103, 104, 105, 106])
        signal = vshape.analyze(make_snapshot({Timeframe.M15: bars}), 106)
        assert signal.detected is True
        assert signal.direction == "bullish"
        assert signal.pivot_price == pytest.approx(99.5)
        assert signal.strength == 64

    def test_bearish_v(self, make_series, make_snapshot) -> None:
        bars = make_series([95, 96, 97, 98, 100, 98, 97, 96, 95, 94])
        signal = vshape.analyze(make_snapshot({Timeframe.M15: bars}), 94)
        assert signal.detected is True
        assert signal.direction == "bearish"
        assert signal.pivot_price == pytest.approx(100.5)

    def test_flat_has_no_v(self, make_series, make_snapshot) -> None:
        bars = make_series([100] * 10)
        assert vshape.analyze(make_snapshot({Timeframe.M15: bars}), 100).detected is False


class TestRunAnalysis:
    """Tests for the fixed-order module registry."""

    def test_registry_matches_checklist(self) -> None:
        assert MODULE_NAMES == tuple(c.id for c in CHECKLIST)

    def test_bundle_is_complete(self, make_snapshot, daily_bars) -> None:
        snap = make_snapshot({Timeframe.M15: _ohlc(CISD_BULLISH), Timeframe.D1: daily_bars})
        bundle = run_analysis(snap, 103.6)
        assert bundle.symbol == "SPY"
        assert bundle.timestamp == snap.as_of
        assert bundle.cisd.detected is True
        assert bundle.smt.symbol_b == "N/A"
