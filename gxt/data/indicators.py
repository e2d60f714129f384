"""Technical indicators shared by the analysis modules and the risk evaluator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

import pandas as pd

from gxt.models.bar import Bar


@dataclass(frozen=True)
class Swing:
    """A pivot high or low found by :func:`find_swings`."""

    index: int
    price: float
    timestamp: datetime


def bars_to_frame(bars: Sequence[Bar]) -> pd.DataFrame:
    """Convert bars to an OHLCV DataFrame indexed by timestamp."""
    df = pd.DataFrame(
        {
            "open": [b.open for b in bars],
            "high": [b.high for b in bars],
            "low": [b.low for b in bars],
            "close": [b.close for b in bars],
            "volume": [b.volume for b in bars],
        },
        index=pd.DatetimeIndex([b.timestamp for b in bars], name="timestamp"),
    )
    return df


def true_range(df: pd.DataFrame) -> pd.Series:
    """True range per row; the first row falls back to high - low."""
    for col in ("high", "low", "close"):
        if col not in df.columns:
            raise ValueError(f"DataFrame must contain a '{col}' column.")
    close_prev = df["close"].shift(1)
    tr1 = df["high"] - df["low"]
    tr2 = (df["high"] - close_prev).abs()
    tr3 = (df["low"] - close_prev).abs()
    return pd.concat([tr1, tr2, tr3], axis=1).max(axis=1)


def atr(df: pd.DataFrame, period: int = 14) -> pd.Series:
    """Calculate Average True Range.

    Args:
        df: OHLCV DataFrame with 'high', 'low', 'close' columns.
        period: Look-back period.

    Returns:
        pandas Series of ATR values (simple mean of the true range).
    """
    if len(df) < period + 1:
        raise ValueError(
            f"Insufficient data: need at least {period + 1} rows, got {len(df)}"
        )
    return true_range(df).rolling(window=period).mean()


def atr_from_bars(bars: Sequence[Bar], period: int = 14) -> float:
    """ATR of the last *period* true ranges, using the last ``period + 1`` bars.

    Returns 0.0 when there are not enough bars.
    """
    if len(bars) < period + 1:
        return 0.0
    df = bars_to_frame(bars[-(period + 1):])
    value = atr(df, period).iloc[-1]
    return float(value) if pd.notna(value) else 0.0


def find_swings(
    bars: Sequence[Bar], lookback: int = 2, lookforward: int | None = None
) -> tuple[list[Swing], list[Swing]]:
    """Detect pivot swing highs and lows.

    A swing high is a bar whose high is strictly greater than the highs of
    the *lookback* bars before it and the *lookforward* bars after it (swing
    lows mirror this on lows). Bars at the edges of the series, which lack a
    full window, are never swings.

    Returns:
        ``(swing_highs, swing_lows)``, each in chronological order.
    """
    if lookforward is None:
        lookforward = lookback
    highs: list[Swing] = []
    lows: list[Swing] = []
    for i in range(lookback, len(bars) - lookforward):
        b = bars[i]
        window = [bars[j] for j in range(i - lookback, i + lookforward + 1) if j != i]
        if all(b.high > o.high for o in window):
            highs.append(Swing(i, b.high, b.timestamp))
        if all(b.low < o.low for o in window):
            lows.append(Swing(i, b.low, b.timestamp))
    return highs, lows
