"""Draw on Liquidity (DOL): the nearest liquidity target to current price.

Candidates are the key levels followed by 1h swing highs/lows; the first
candidate with the strictly smallest non-zero distance wins, so equidistant
targets resolve in insertion order.
"""

from __future__ import annotations

from gxt.analysis.levels import analyze as analyze_levels
from gxt.data.indicators import find_swings
from gxt.models.bar import BarSnapshot, Timeframe
from gxt.models.signals import DolSignal

MIN_HOURLY_BARS = 10


def collect_targets(snapshot: BarSnapshot, current_price: float) -> list[tuple[float, str]]:
    key_levels = analyze_levels(snapshot, current_price)
    targets = [(lv.price, lv.label) for lv in key_levels.levels]

    hourly = snapshot.get(Timeframe.H1)
    if len(hourly) >= MIN_HOURLY_BARS:
        highs, lows = find_swings(hourly, lookback=1)
        # Pivots within two bars of either end of the series are skipped
        last = len(hourly) - 3
        swings = [(s.index, s.price, "Swing High (1h)") for s in highs if 2 <= s.index <= last]
        swings += [(s.index, s.price, "Swing Low (1h)") for s in lows if 2 <= s.index <= last]
        # Same bar: high before low
        swings.sort(key=lambda t: (t[0], t[2] != "Swing High (1h)"))
        targets.extend((price, label) for _, price, label in swings)

    return targets


def analyze(snapshot: BarSnapshot, current_price: float) -> DolSignal:
    nearest: tuple[float, str] | None = None
    min_dist = float("inf")
    for price, label in collect_targets(snapshot, current_price):
        dist = abs(price - current_price)
        if 0 < dist < min_dist:
            min_dist = dist
            nearest = (price, label)

    if nearest is None:
        return DolSignal()

    price, label = nearest
    distance_pct = min_dist / current_price * 100 if current_price > 0 else 0.0
    return DolSignal(
        target=price,
        target_label=label,
        direction="above" if price > current_price else "below",
        distance=round(min_dist, 2),
        distance_percent=round(distance_pct, 2),
    )
