"""Wick analysis: wick/body ratios of the latest 15m bar against ATR(14).

Large wicks relative to ATR indicate rejection or a liquidity sweep.
"""

from __future__ import annotations

from gxt.data.indicators import atr_from_bars
from gxt.models.bar import BarSnapshot, Timeframe
from gxt.models.signals import Significance, WickSignal

ATR_PERIOD = 14
HIGH_THRESHOLD = 0.8
MEDIUM_THRESHOLD = 0.5


def _r(value: float) -> float:
    return round(value, 4)


def analyze(snapshot: BarSnapshot, current_price: float) -> WickSignal:
    bars = snapshot.get(Timeframe.M15)
    if len(bars) < ATR_PERIOD + 1:
        return WickSignal(body_ratio=1.0)

    current = bars[-1]
    bar_range = current.range
    if bar_range == 0:
        return WickSignal()

    if current.is_bullish:
        top_wick = current.high - current.close
        bottom_wick = current.open - current.low
    else:
        top_wick = current.high - current.open
        bottom_wick = current.close - current.low

    atr14 = atr_from_bars(bars[-(ATR_PERIOD + 1):], ATR_PERIOD)
    max_wick = max(top_wick, bottom_wick)
    wick_to_atr = max_wick / atr14 if atr14 > 0 else 0.0

    significance: Significance = "low"
    if wick_to_atr > HIGH_THRESHOLD:
        significance = "high"
    elif wick_to_atr > MEDIUM_THRESHOLD:
        significance = "medium"

    return WickSignal(
        top_wick_ratio=_r(top_wick / bar_range),
        bottom_wick_ratio=_r(bottom_wick / bar_range),
        body_ratio=_r(current.body / bar_range),
        atr14=_r(atr14),
        wick_to_atr_ratio=_r(wick_to_atr),
        significance=significance,
    )
