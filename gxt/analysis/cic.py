"""Candle-in-Candle classifier on the 15m series.

* C1 = Expansion (range > previous range, closes beyond previous high/low)
* C2 = Retracement (small body, closes back inside the previous range)
* C3 = Reversal (closes beyond the opposite end of the previous bar)
* C4 = Inside bar (entire range within the previous range)
"""

from __future__ import annotations

from gxt.models.bar import Bar, BarSnapshot, Timeframe
from gxt.models.signals import CicSignal, CicType

DESCRIPTIONS: dict[str, str] = {
    "C1": "Expansion candle — strong directional move",
    "C2": "Retracement candle — pulling back into range",
    "C3": "Reversal candle — closes beyond opposite extreme",
    "C4": "Inside bar — consolidation, coiling",
}

MIN_BARS = 3


def classify_candle(current: Bar, prev: Bar) -> CicType:
    """Classify *current* against *prev*. Inside bar always wins."""
    if current.high <= prev.high and current.low >= prev.low:
        return "C4"

    if current.range > prev.range and (current.close > prev.high or current.close < prev.low):
        return "C1"

    if prev.is_bullish and current.close < prev.low:
        return "C3"
    if not prev.is_bullish and current.close > prev.high:
        return "C3"

    if current.body < prev.range * 0.5 and prev.low < current.close < prev.high:
        return "C2"

    # Anything else is treated as a directional move
    return "C1"


def analyze(snapshot: BarSnapshot, current_price: float) -> CicSignal:
    bars = snapshot.get(Timeframe.M15)
    if len(bars) < MIN_BARS:
        return CicSignal(
            type="C4",
            timeframe=Timeframe.M15.value,
            timestamp=snapshot.as_of,
            description="Insufficient data",
        )

    current, prev = bars[-1], bars[-2]
    cic_type = classify_candle(current, prev)
    return CicSignal(
        type=cic_type,
        timeframe=Timeframe.M15.value,
        timestamp=current.timestamp,
        description=DESCRIPTIONS[cic_type],
    )
