"""Shared pytest fixtures for GxT agent tests."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Sequence

import pytest

from gxt.config.settings import Settings
from gxt.models.bar import TIMEFRAME_MINUTES, Bar, BarSnapshot, Timeframe

# Wednesday 2025-01-15 15:00 UTC == 10:00 New York (ny_am)
BASE_TIME = datetime(2025, 1, 15, 15, 0)


@pytest.fixture
def settings() -> Settings:
    """Return a Settings object with test defaults (no .env, no log file)."""
    return Settings(
        _env_file=None,
        AGENT_MODE="simulation",
        SYMBOLS=["SPY"],
        PEER_SYMBOLS={"SPY": "QQQ"},
        SCORE_THRESHOLD=60.0,
        MAX_DAILY_LOSS_PERCENT=2.0,
        MAX_POSITION_SIZE_PERCENT=10.0,
        MIN_REWARD_RISK_RATIO=2.0,
        RISK_PER_TRADE_PERCENT=1.0,
        BLOCKED_SESSIONS=[],
        LOG_LEVEL="DEBUG",
        LOG_FILE="",
    )


@pytest.fixture
def make_bar() -> Callable[..., Bar]:
    """Factory for a single bar; high/low default to the open/close envelope."""

    def _make(
        open: float,
        close: float,
        high: float | None = None,
        low: float | None = None,
        timestamp: datetime = BASE_TIME,
        timeframe: Timeframe = Timeframe.M15,
        symbol: str = "SPY",
        volume: float = 1000.0,
    ) -> Bar:
        return Bar(
            timestamp=timestamp,
            open=open,
            high=high if high is not None else max(open, close),
            low=low if low is not None else min(open, close),
            close=close,
            volume=volume,
            timeframe=timeframe,
            symbol=symbol,
        )

    return _make


@pytest.fixture
def make_series() -> Callable[..., list[Bar]]:
    """Factory for a bar series from closing prices.

    Each bar opens at the previous close and extends *spread* beyond its
    body on both sides.
    """

    def _make(
        closes: Sequence[float],
        start: datetime = BASE_TIME,
        timeframe: Timeframe = Timeframe.M15,
        symbol: str = "SPY",
        spread: float = 0.5,
    ) -> list[Bar]:
        step = timedelta(minutes=TIMEFRAME_MINUTES[timeframe])
        bars: list[Bar] = []
        prev = closes[0]
        for i, close in enumerate(closes):
            bars.append(
                Bar(
                    timestamp=start + step * i,
                    open=prev,
                    high=max(prev, close) + spread,
                    low=min(prev, close) - spread,
                    close=close,
                    volume=1000.0,
                    timeframe=timeframe,
                    symbol=symbol,
                )
            )
            prev = close
        return bars

    return _make


@pytest.fixture
def make_snapshot() -> Callable[..., BarSnapshot]:
    """Factory for a snapshot; ``as_of`` defaults to the latest bar timestamp."""

    def _make(
        bars: dict[Timeframe, list[Bar]],
        symbol: str = "SPY",
        as_of: datetime | None = None,
    ) -> BarSnapshot:
        if as_of is None:
            stamps = [series[-1].timestamp for series in bars.values() if series]
            as_of = max(stamps) if stamps else BASE_TIME
        return BarSnapshot(symbol=symbol, bars=bars, as_of=as_of)

    return _make
