"""V-shape reversal detection over the last ten 15m bars.

A bullish V is a sharp drop into an extreme low followed by a comparable
bounce; the bearish V mirrors it on the extreme high. Drop and bounce are
measured from the average close on each side of the pivot and must be at
least 40% symmetric.
"""

from __future__ import annotations

from gxt.models.bar import Bar, BarSnapshot, Timeframe
from gxt.models.signals import VshapeSignal
from gxt.utils.helpers import round_half_up

WINDOW = 10
EDGE_BARS = 2
MIN_SYMMETRY = 0.4


def _avg_close(bars: list[Bar]) -> float:
    return sum(b.close for b in bars) / len(bars)


def _is_interior(idx: int, size: int) -> bool:
    return EDGE_BARS <= idx < size - EDGE_BARS


def _symmetric(leg_a: float, leg_b: float) -> bool:
    return leg_a > 0 and leg_b > 0 and min(leg_a, leg_b) / max(leg_a, leg_b) > MIN_SYMMETRY


def analyze(snapshot: BarSnapshot, current_price: float) -> VshapeSignal:
    bars = snapshot.get(Timeframe.M15)
    if len(bars) < WINDOW:
        return VshapeSignal()

    recent = bars[-WINDOW:]
    lowest_idx = 0
    highest_idx = 0
    for i in range(1, len(recent)):
        if recent[i].low < recent[lowest_idx].low:
            lowest_idx = i
        if recent[i].high > recent[highest_idx].high:
            highest_idx = i

    if _is_interior(lowest_idx, len(recent)):
        pivot = recent[lowest_idx].low
        drop = _avg_close(recent[:lowest_idx]) - pivot
        bounce = _avg_close(recent[lowest_idx + 1:]) - pivot
        span = recent[highest_idx].high - pivot
        if _symmetric(drop, bounce) and span > 0:
            return VshapeSignal(
                detected=True,
                direction="bullish",
                pivot_price=pivot,
                timestamp=recent[lowest_idx].timestamp,
                strength=int(round_half_up(min(100.0, bounce / span * 100), 0)),
            )

    if _is_interior(highest_idx, len(recent)):
        pivot = recent[highest_idx].high
        rally = pivot - _avg_close(recent[:highest_idx])
        drop = pivot - _avg_close(recent[highest_idx + 1:])
        span = pivot - recent[lowest_idx].low
        if _symmetric(rally, drop) and span > 0:
            return VshapeSignal(
                detected=True,
                direction="bearish",
                pivot_price=pivot,
                timestamp=recent[highest_idx].timestamp,
                strength=int(round_half_up(min(100.0, drop / span * 100), 0)),
            )

    return VshapeSignal()
