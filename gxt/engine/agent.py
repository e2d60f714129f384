"""Agent loop: runs the pipeline for every configured symbol on an interval."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from loguru import logger

from gxt.broker.base_broker import BaseBroker
from gxt.config.settings import Settings
from gxt.data.bar_manager import BarManager
from gxt.engine.pipeline import PipelineResult, run_pipeline
from gxt.models.bar import BarSnapshot


class Agent:
    """Polls ``SYMBOLS`` every ``ANALYSIS_INTERVAL_MINUTES``.

    Each cycle fetches the SMT peer named in ``PEER_SYMBOLS`` (once per
    peer per cycle), runs :func:`run_pipeline` per symbol and lets the
    broker check its stops against the latest quote. A failing symbol is
    logged and skipped; it never stops the loop.
    """

    def __init__(self, bar_manager: BarManager, broker: BaseBroker, settings: Settings) -> None:
        self.bar_manager = bar_manager
        self.broker = broker
        self.settings = settings
        self.last_results: dict[str, PipelineResult] = {}
        self.last_run_at: datetime | None = None
        self._stop_event = asyncio.Event()

    def peer_for(self, symbol: str) -> str | None:
        peer = self.settings.PEER_SYMBOLS.get(symbol.upper())
        return peer if peer and peer != symbol.upper() else None

    async def _peer_snapshot(self, peer: str, cache: dict[str, BarSnapshot | None]) -> BarSnapshot | None:
        if peer not in cache:
            try:
                cache[peer] = await self.bar_manager.fetch_all(peer, self.settings.LOOKBACK_BARS)
            except Exception as exc:
                logger.warning("Peer {} fetch failed, SMT skipped: {}", peer, exc)
                cache[peer] = None
        return cache[peer]

    async def run_cycle(self) -> dict[str, PipelineResult]:
        """Run one analysis pass over every configured symbol."""
        peers: dict[str, BarSnapshot | None] = {}
        results: dict[str, PipelineResult] = {}

        for symbol in self.settings.SYMBOLS:
            peer = self.peer_for(symbol)
            peer_snapshot = await self._peer_snapshot(peer, peers) if peer else None
            try:
                result = await run_pipeline(
                    symbol, self.bar_manager, self.broker, self.settings, peer_snapshot
                )
            except Exception as exc:
                logger.error("Pipeline failed for {}: {}", symbol, exc)
                continue
            results[symbol] = result

            try:
                quote = await self.bar_manager.get_quote(symbol)
            except Exception as exc:
                logger.warning("Stop check skipped for {}: {}", symbol, exc)
                continue
            if quote.price > 0:
                await self.broker.check_stops({symbol: quote.price})

        self.last_results.update(results)
        self.last_run_at = datetime.now(timezone.utc).replace(tzinfo=None)
        logger.info("Agent cycle complete | {} of {} symbols", len(results), len(self.settings.SYMBOLS))
        return results

    async def run(self, max_cycles: int | None = None) -> None:
        """Run cycles until :meth:`stop` is called (or *max_cycles* have run)."""
        logger.info(
            "Agent starting | mode={} | symbols={} | interval={}m | broker={}",
            self.settings.AGENT_MODE,
            self.settings.SYMBOLS,
            self.settings.ANALYSIS_INTERVAL_MINUTES,
            self.broker.name,
        )
        cycles = 0
        while not self._stop_event.is_set():
            await self.run_cycle()
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self.settings.ANALYSIS_INTERVAL_MINUTES * 60,
                )
                break
            except asyncio.TimeoutError:
                pass

        logger.info("Agent stopped after {} cycle(s)", cycles)

    async def stop(self) -> None:
        logger.info("Agent stop requested")
        self._stop_event.set()
