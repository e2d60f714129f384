"""Smart Money Technique (SMT) divergence between two correlated symbols.

Bullish SMT: the subject makes a new 5-bar low while the peer holds.
Bearish SMT: the subject makes a new 5-bar high while the peer fails to.
"""

from __future__ import annotations

from gxt.models.bar import Bar, BarSnapshot, Timeframe
from gxt.models.signals import SmtSignal

WINDOW = 5


def _extremes(bars: list[Bar]) -> tuple[float, float, float, float]:
    """(prev_low, recent_low, prev_high, recent_high) over the last two windows."""
    recent = bars[-WINDOW:]
    prev = bars[-2 * WINDOW:-WINDOW]
    return (
        min(b.low for b in prev),
        min(b.low for b in recent),
        max(b.high for b in prev),
        max(b.high for b in recent),
    )


def analyze(
    snapshot: BarSnapshot,
    current_price: float,
    peer: BarSnapshot | None = None,
) -> SmtSignal:
    if peer is None:
        return SmtSignal(
            detected=False,
            symbol_a=snapshot.symbol,
            symbol_b="N/A",
            divergence_type=None,
            description="No peer symbol data available for SMT comparison",
        )

    bars_a = snapshot.get(Timeframe.M15)
    bars_b = peer.get(Timeframe.M15)
    if len(bars_a) < 2 * WINDOW or len(bars_b) < 2 * WINDOW:
        return SmtSignal(
            detected=False,
            symbol_a=snapshot.symbol,
            symbol_b=peer.symbol,
            divergence_type=None,
            description="Insufficient data for SMT comparison",
        )

    prev_low_a, recent_low_a, prev_high_a, recent_high_a = _extremes(bars_a)
    prev_low_b, recent_low_b, prev_high_b, recent_high_b = _extremes(bars_b)

    if recent_low_a < prev_low_a and recent_low_b >= prev_low_b:
        return SmtSignal(
            detected=True,
            symbol_a=snapshot.symbol,
            symbol_b=peer.symbol,
            divergence_type="bullish",
            description=(
                f"{snapshot.symbol} made lower low but {peer.symbol} held — bullish divergence"
            ),
        )

    if recent_high_a > prev_high_a and recent_high_b <= prev_high_b:
        return SmtSignal(
            detected=True,
            symbol_a=snapshot.symbol,
            symbol_b=peer.symbol,
            divergence_type="bearish",
            description=(
                f"{snapshot.symbol} made higher high but {peer.symbol} failed — bearish divergence"
            ),
        )

    return SmtSignal(
        detected=False,
        symbol_a=snapshot.symbol,
        symbol_b=peer.symbol,
        divergence_type=None,
        description="No SMT divergence detected",
    )
