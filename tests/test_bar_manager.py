"""Tests for BarManager fetching and fallback caching."""

from __future__ import annotations

from datetime import datetime

import pytest

from gxt.data.bar_manager import BarManager
from gxt.data.provider import BaseDataProvider, Quote
from gxt.models.bar import ANALYSIS_TIMEFRAMES, Timeframe

T0 = datetime(2025, 1, 15, 14, 0)


class FakeProvider(BaseDataProvider):
    """Serves fixed series; timeframes listed in ``failing`` raise."""

    name = "fake"

    def __init__(self, series):
        self.series = series
        self.failing: set[Timeframe] = set()
        self.calls: list[tuple[str, Timeframe, int]] = []

    async def get_bars(self, symbol, timeframe, limit=100):
        self.calls.append((symbol, timeframe, limit))
        if timeframe in self.failing:
            raise ConnectionError("provider timeout")
        return self.series.get(timeframe, [])[-limit:]

    async def get_quote(self, symbol):
        return Quote(symbol=symbol, price=101.25, timestamp=T0)


@pytest.fixture
def provider(make_series) -> FakeProvider:
    return FakeProvider(
        {
            Timeframe.M5: make_series([100.0, 100.5, 101.0], start=T0, timeframe=Timeframe.M5),
            Timeframe.M15: make_series([100.0, 101.0], start=T0),
            Timeframe.H1: make_series([99.0], start=T0, timeframe=Timeframe.H1),
        }
    )


class TestFetchAll:
    """Tests for fetch_all()."""

    @pytest.mark.asyncio
    async def test_fetches_every_timeframe(self, provider: FakeProvider) -> None:
        manager = BarManager(provider)
        snap = await manager.fetch_all("SPY", limit=50)
        assert [c[1] for c in provider.calls] == list(ANALYSIS_TIMEFRAMES)
        assert all(c[2] == 50 for c in provider.calls)
        assert set(snap.bars) == set(ANALYSIS_TIMEFRAMES)
        assert snap.get(Timeframe.D1) == []
        # Latest bar across timeframes: the 15m bar at 14:15
        assert snap.as_of == datetime(2025, 1, 15, 14, 15)

    @pytest.mark.asyncio
    async def test_failed_fetch_falls_back_to_cache(self, provider: FakeProvider) -> None:
        manager = BarManager(provider)
        first = await manager.fetch_all("SPY")
        provider.failing = {Timeframe.M15}
        second = await manager.fetch_all("SPY")
        assert second.get(Timeframe.M15) == first.get(Timeframe.M15)

    @pytest.mark.asyncio
    async def test_failed_fetch_without_cache_is_empty(self, provider: FakeProvider) -> None:
        provider.failing = set(ANALYSIS_TIMEFRAMES)
        snap = await BarManager(provider).fetch_all("SPY")
        assert all(series == [] for series in snap.bars.values())
        assert snap.as_of is not None


class TestCacheAccess:
    """Cached reads and quotes."""

    @pytest.mark.asyncio
    async def test_latest_bar_and_clear(self, provider: FakeProvider) -> None:
        manager = BarManager(provider)
        assert manager.get_latest_bar("SPY", Timeframe.M5) is None
        await manager.fetch_all("SPY")
        assert manager.get_latest_bar("SPY", Timeframe.M5).close == 101.0
        assert len(manager.get_bars("SPY", Timeframe.M15)) == 2
        manager.clear_cache()
        assert manager.get_bars("SPY", Timeframe.M15) == []

    @pytest.mark.asyncio
    async def test_quote_passthrough(self, provider: FakeProvider) -> None:
        quote = await BarManager(provider).get_quote("SPY")
        assert quote.price == 101.25
