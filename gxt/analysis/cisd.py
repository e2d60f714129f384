"""Change in State of Delivery (CISD).

Confirmed when the latest 15m bar closes through one of the recent swing
levels that the previous bar's close had not yet cleared. Bullish CISD is a
close above a swing high, bearish CISD a close below a swing low.
"""

from __future__ import annotations

from gxt.data.indicators import find_swings
from gxt.models.bar import BarSnapshot, Timeframe
from gxt.models.signals import CisdSignal

MIN_BARS = 20
SWING_WINDOW = 2
RECENT_SWINGS = 5


def analyze(snapshot: BarSnapshot, current_price: float) -> CisdSignal:
    bars = snapshot.get(Timeframe.M15)
    if len(bars) < MIN_BARS:
        return CisdSignal()

    swing_highs, swing_lows = find_swings(bars, SWING_WINDOW)
    current, prev = bars[-1], bars[-2]

    # Most recent swings first
    for swing in reversed(swing_highs[-RECENT_SWINGS:]):
        if current.close > swing.price and prev.close <= swing.price:
            return CisdSignal(
                detected=True,
                direction="bullish",
                swing_broken=swing.price,
                close_price=current.close,
                timestamp=current.timestamp,
            )

    for swing in reversed(swing_lows[-RECENT_SWINGS:]):
        if current.close < swing.price and prev.close >= swing.price:
            return CisdSignal(
                detected=True,
                direction="bearish",
                swing_broken=swing.price,
                close_price=current.close,
                timestamp=current.timestamp,
            )

    return CisdSignal()
