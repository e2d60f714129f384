"""Daily profile: is today's candle forming as OHLC or OLHC?

OHLC (open, high, low, close) is a bearish day that rallied then sold off;
OLHC is a bullish day that dipped then rallied. The order of the day's
extremes is read from today's hourly bars.
"""

from __future__ import annotations

from gxt.models.bar import BarSnapshot, Timeframe
from gxt.models.signals import DailyProfileSignal

MIN_HOURLY_BARS = 4


def analyze(snapshot: BarSnapshot, current_price: float) -> DailyProfileSignal:
    daily = snapshot.get(Timeframe.D1)
    if len(daily) < 2:
        return DailyProfileSignal(type="OLHC", date=snapshot.as_of.date().isoformat(), bias="bullish")

    today = daily[-1]
    today_date = today.timestamp.date()

    hourly = snapshot.get(Timeframe.H1)
    if len(hourly) >= MIN_HOURLY_BARS:
        todays = [b for b in hourly if b.timestamp.date() == today_date]
        if len(todays) >= 2:
            high_idx = 0
            low_idx = 0
            for i in range(1, len(todays)):
                if todays[i].high > todays[high_idx].high:
                    high_idx = i
                if todays[i].low < todays[low_idx].low:
                    low_idx = i

            if high_idx < low_idx:
                return DailyProfileSignal(type="OHLC", date=today_date.isoformat(), bias="bearish")
            if low_idx < high_idx:
                return DailyProfileSignal(type="OLHC", date=today_date.isoformat(), bias="bullish")
            # Both extremes in the same hour: fall through to the candle colour

    bias = "bullish" if today.close >= today.open else "bearish"
    return DailyProfileSignal(
        type="OLHC" if bias == "bullish" else "OHLC",
        date=today_date.isoformat(),
        bias=bias,
    )
