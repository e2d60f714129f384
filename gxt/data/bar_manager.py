"""Multi-timeframe bar fetching with a last-good-series fallback cache."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from loguru import logger

from gxt.data.provider import BaseDataProvider, Quote
from gxt.models.bar import ANALYSIS_TIMEFRAMES, Bar, BarSnapshot, Timeframe


class BarManager:
    """Fetches every analysis timeframe for a symbol and caches the results."""

    def __init__(self, provider: BaseDataProvider, request_delay: float = 0.0) -> None:
        self.provider = provider
        self._request_delay = request_delay
        self._cache: dict[tuple[str, Timeframe], list[Bar]] = {}

    async def fetch_all(self, symbol: str, limit: int = 100) -> BarSnapshot:
        """Fetch all analysis timeframes into one snapshot.

        A timeframe whose fetch raises falls back to the last series cached
        for it (or an empty list).
        """
        bars: dict[Timeframe, list[Bar]] = {}
        for tf in ANALYSIS_TIMEFRAMES:
            try:
                fetched = await self.provider.get_bars(symbol, tf, limit)
            except Exception as exc:
                logger.error("Failed to fetch {} {} bars: {}", symbol, tf.value, exc)
                bars[tf] = self._cache.get((symbol, tf), [])
                continue
            self._cache[(symbol, tf)] = fetched
            bars[tf] = fetched
            logger.debug("Fetched {} {} bars for {}", len(fetched), tf.value, symbol)
            if self._request_delay > 0:
                await asyncio.sleep(self._request_delay)

        latest = [series[-1].timestamp for series in bars.values() if series]
        as_of = max(latest) if latest else datetime.now(timezone.utc).replace(tzinfo=None)
        return BarSnapshot(symbol=symbol, bars=bars, as_of=as_of)

    def get_bars(self, symbol: str, timeframe: Timeframe) -> list[Bar]:
        """Return cached bars (no provider call)."""
        return self._cache.get((symbol, timeframe), [])

    def get_latest_bar(self, symbol: str, timeframe: Timeframe) -> Bar | None:
        bars = self.get_bars(symbol, timeframe)
        return bars[-1] if bars else None

    async def get_quote(self, symbol: str) -> Quote:
        return await self.provider.get_quote(symbol)

    def clear_cache(self) -> None:
        """Clear all cached series."""
        self._cache.clear()
        logger.debug("Bar cache cleared")
