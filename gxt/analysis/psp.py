"""Protected Swing Points (PSP).

A swing high or low that no later close has traded through. Protected
swings act as support / resistance.
"""

from __future__ import annotations

from gxt.data.indicators import find_swings
from gxt.models.bar import BarSnapshot, Timeframe
from gxt.models.signals import PspSignal, SwingPoint

MIN_BARS = 10
SWING_WINDOW = 2
MAX_REPORTED = 10


def analyze(snapshot: BarSnapshot, current_price: float) -> PspSignal:
    bars = snapshot.get(Timeframe.M15)
    if len(bars) < MIN_BARS:
        return PspSignal()

    raw_highs, raw_lows = find_swings(bars, SWING_WINDOW)

    swing_highs = [
        SwingPoint(
            price=s.price,
            timestamp=s.timestamp,
            protected=not any(b.close > s.price for b in bars[s.index + 1:]),
        )
        for s in raw_highs
    ]
    swing_lows = [
        SwingPoint(
            price=s.price,
            timestamp=s.timestamp,
            protected=not any(b.close < s.price for b in bars[s.index + 1:]),
        )
        for s in raw_lows
    ]

    protected_above = [s.price for s in swing_highs if s.protected and s.price > current_price]
    protected_below = [s.price for s in swing_lows if s.protected and s.price < current_price]

    return PspSignal(
        swing_highs=tuple(swing_highs[-MAX_REPORTED:]),
        swing_lows=tuple(swing_lows[-MAX_REPORTED:]),
        nearest_protected_high=min(protected_above) if protected_above else None,
        nearest_protected_low=max(protected_below) if protected_below else None,
    )
