"""Fair Value Gap detection on the 15m and 1h series.

A bullish FVG is a three-bar pattern where ``bar[i+2].low > bar[i].high``;
a bearish FVG is the mirror, ``bar[i+2].high < bar[i].low``. The gap spans
the space between those two bars' wicks.
"""

from __future__ import annotations

from gxt.models.bar import Bar, BarSnapshot, Timeframe
from gxt.models.signals import Fvg, FvgSignal

SCAN_TIMEFRAMES = (Timeframe.M15, Timeframe.H1)
SCAN_BARS = 50
MAX_REPORTED = 10
MIN_GAP_PCT = 0.0005  # 0.05% of price
MIN_GAP_ABS = 0.25


def min_gap_width(price: float) -> float:
    return max(price * MIN_GAP_PCT, MIN_GAP_ABS)


def scan_gaps(bars: list[Bar], timeframe: Timeframe, current_price: float) -> list[Fvg]:
    """Every qualifying gap in *bars*, oldest first.

    A gap counts as filled once price has traded through its boundary on
    the side price is returning from: below a bullish gap's low, above a
    bearish gap's high.
    """
    gaps: list[Fvg] = []
    min_gap = min_gap_width(current_price)
    for i in range(len(bars) - 2):
        bar0, bar1, bar2 = bars[i], bars[i + 1], bars[i + 2]

        if bar2.low > bar0.high and bar2.low - bar0.high >= min_gap:
            gaps.append(
                Fvg(
                    direction="bullish",
                    high=bar2.low,
                    low=bar0.high,
                    midpoint=(bar2.low + bar0.high) / 2,
                    timestamp=bar1.timestamp,
                    timeframe=timeframe.value,
                    filled=current_price < bar0.high,
                )
            )

        if bar2.high < bar0.low and bar0.low - bar2.high >= min_gap:
            gaps.append(
                Fvg(
                    direction="bearish",
                    high=bar0.low,
                    low=bar2.high,
                    midpoint=(bar0.low + bar2.high) / 2,
                    timestamp=bar1.timestamp,
                    timeframe=timeframe.value,
                    filled=current_price > bar0.low,
                )
            )
    return gaps


def analyze(snapshot: BarSnapshot, current_price: float) -> FvgSignal:
    gaps: list[Fvg] = []
    for tf in SCAN_TIMEFRAMES:
        bars = snapshot.get(tf)
        if len(bars) < 3:
            continue
        gaps.extend(scan_gaps(bars[-SCAN_BARS:], tf, current_price))

    unfilled = [g for g in gaps if not g.filled]

    nearest: Fvg | None = None
    min_dist = float("inf")
    for gap in unfilled:
        dist = abs(gap.midpoint - current_price)
        if dist < min_dist:
            min_dist = dist
            nearest = gap

    return FvgSignal(fvgs=tuple(unfilled[-MAX_REPORTED:]), nearest_unfilled=nearest)
