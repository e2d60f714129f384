"""Price bar and multi-timeframe snapshot models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Timeframe(str, Enum):
    """Bar interval enumeration."""

    M1 = "1m"
    M3 = "3m"
    M5 = "5m"
    M15 = "15m"
    H1 = "1h"
    H4 = "4h"
    D1 = "1d"
    W1 = "1w"


# Timeframes carried by every analysis snapshot.
ANALYSIS_TIMEFRAMES: tuple[Timeframe, ...] = (
    Timeframe.M5,
    Timeframe.M15,
    Timeframe.H1,
    Timeframe.H4,
    Timeframe.D1,
)

TIMEFRAME_MINUTES: dict[Timeframe, int] = {
    Timeframe.M1: 1,
    Timeframe.M3: 3,
    Timeframe.M5: 5,
    Timeframe.M15: 15,
    Timeframe.H1: 60,
    Timeframe.H4: 240,
    Timeframe.D1: 1440,
    Timeframe.W1: 10080,
}


class Bar(BaseModel):
    """One OHLCV bar. Timestamps are timezone-naive UTC."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    timeframe: Timeframe = Timeframe.M5
    symbol: str = ""

    @model_validator(mode="after")
    def check_ohlc(self) -> "Bar":
        """Enforce low <= min(open, close) <= max(open, close) <= high."""
        if not (self.low <= min(self.open, self.close) and max(self.open, self.close) <= self.high):
            raise ValueError(
                f"Inconsistent OHLC for {self.symbol or 'bar'} @ {self.timestamp}: "
                f"o={self.open} h={self.high} l={self.low} c={self.close}"
            )
        if self.timestamp.tzinfo is not None:
            raise ValueError("Bar timestamps must be timezone-naive UTC")
        return self

    @property
    def range(self) -> float:
        return self.high - self.low

    @property
    def body(self) -> float:
        return abs(self.close - self.open)

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open


class BarSnapshot(BaseModel):
    """Bars known at ``as_of`` for one symbol, keyed by timeframe.

    Every list is ordered oldest-first and contains only bars whose
    timestamp is ``<= as_of``.
    """

    symbol: str
    bars: dict[Timeframe, list[Bar]] = Field(default_factory=dict)
    as_of: datetime

    def get(self, timeframe: Timeframe) -> list[Bar]:
        """Return the bars for *timeframe* (empty list when missing)."""
        return self.bars.get(timeframe, [])

    def latest(self, timeframe: Timeframe) -> Bar | None:
        bars = self.get(timeframe)
        return bars[-1] if bars else None
