"""Backtest engine: replays the live decision pipeline bar by bar.

For every bar after the context window the engine
  1. lets the broker fill pending orders and resolve brackets on the bar,
  2. builds a snapshot holding only what was known at the bar's close,
  3. runs the analysis modules, scores, and (when flat and outside a
     blocked session) evaluates risk and queues an order,
  4. records an equity point.
Open positions are force-closed on the last bar.
"""

from __future__ import annotations

import uuid
from typing import Callable

from loguru import logger

from gxt.analysis import run_analysis
from gxt.analysis.session_times import session_for_timestamp
from gxt.backtest.metrics import calculate_metrics, calculate_session_breakdown
from gxt.backtest.models import (
    BacktestConfig,
    BacktestError,
    BacktestMetrics,
    BacktestResult,
    BacktestStatus,
    EquityPoint,
)
from gxt.broker.backtest_broker import BacktestBroker
from gxt.config.settings import Settings, get_settings
from gxt.data.history import BaseHistoryLoader, DataUnavailableError, TimeframeCache
from gxt.engine.risk import evaluate_risk
from gxt.engine.scorer import Thresholds, score_signals
from gxt.models.bar import Bar

MIN_CONTEXT_BARS = 60
PROGRESS_EVERY = 50

ProgressCallback = Callable[[float], None]


def risk_settings(config: BacktestConfig, settings: Settings) -> Settings:
    """Settings for risk evaluation with the run's overrides applied."""
    return settings.model_copy(
        update={
            "SCORE_THRESHOLD": config.score_threshold,
            "MAX_DAILY_LOSS_PERCENT": config.max_daily_loss,
            "MAX_POSITION_SIZE_PERCENT": config.max_position_size_percent,
            "MIN_REWARD_RISK_RATIO": config.min_reward_risk_ratio,
            "SIM_STARTING_CAPITAL": config.initial_capital,
            "BLOCKED_SESSIONS": list(config.blocked_sessions),
        }
    )


def find_start_index(bars: list[Bar], config: BacktestConfig) -> int:
    """First bar at or after the start date, with at least MIN_CONTEXT_BARS before it."""
    start = next((i for i, b in enumerate(bars) if b.timestamp >= config.start_date), MIN_CONTEXT_BARS)
    return max(start, MIN_CONTEXT_BARS)


def _report(on_progress: ProgressCallback | None, value: float) -> None:
    if on_progress is not None:
        on_progress(value)


async def run_backtest(
    config: BacktestConfig,
    loader: BaseHistoryLoader,
    on_progress: ProgressCallback | None = None,
    settings: Settings | None = None,
) -> BacktestResult:
    """Run one isolated backtest.

    Never raises for run failures: any exception yields a ``failed`` result
    with zeroed metrics, an empty curve and trade list, and the error text.
    """
    run_id = str(uuid.uuid4())
    settings = settings or get_settings()
    cache = TimeframeCache()

    try:
        _report(on_progress, 0.0)
        logger.info(
            "Backtest {} started | {} {} {} -> {}",
            run_id[:8],
            config.symbol,
            config.timeframe.value,
            config.start_date,
            config.end_date,
        )

        series = await loader.load(config.symbol, config.start_date, config.end_date, config.timeframe)
        bars = series.get(config.timeframe, [])
        if not bars:
            raise BacktestError("No historical bars loaded for the given date range")
        cache.put_all(config.symbol, series)

        peer_symbol = config.peer_symbol
        if peer_symbol:
            try:
                peer_series = await loader.load(
                    peer_symbol, config.start_date, config.end_date, config.timeframe
                )
            except DataUnavailableError as exc:
                # SMT then reports no divergence for the whole run
                logger.warning("Peer {} unavailable, running without SMT peer: {}", peer_symbol, exc)
                peer_symbol = None
            else:
                cache.put_all(peer_symbol, peer_series)

        rs = risk_settings(config, settings)
        thresholds = Thresholds(
            key_level_proximity_pct=settings.KEY_LEVEL_PROXIMITY_PERCENT,
            dol_max_distance_pct=settings.DOL_MAX_DISTANCE_PERCENT,
        )
        lookback = settings.LOOKBACK_BARS

        broker = BacktestBroker(config.initial_capital)
        equity_curve: list[EquityPoint] = []
        peak = config.initial_capital
        start_index = find_start_index(bars, config)
        total = len(bars)

        for i in range(start_index, total):
            bar = bars[i]
            broker.set_bar_index(i)
            broker.process_bar(bar)

            snapshot = cache.build_snapshot(config.symbol, bar.timestamp, config.timeframe, lookback)
            peer = (
                cache.build_snapshot(peer_symbol, bar.timestamp, config.timeframe, lookback)
                if peer_symbol
                else None
            )
            signals = run_analysis(snapshot, bar.close, peer)
            score = score_signals(signals, thresholds)

            if not broker.has_position() and not broker.has_pending_order():
                session = session_for_timestamp(bar.timestamp)
                if session not in config.blocked_sessions:
                    account = await broker.get_account()
                    decision = evaluate_risk(score, account, snapshot, rs)
                    if decision.approved and decision.order is not None:
                        await broker.place_order(decision.order)

            equity = broker.equity
            peak = max(peak, equity)
            equity_curve.append(EquityPoint(timestamp=bar.timestamp, equity=equity, drawdown=peak - equity))

            if i % PROGRESS_EVERY == 0:
                _report(on_progress, (i - start_index) / (total - start_index))

        last = bars[-1]
        broker.force_close(last.close, last.timestamp)
        if equity_curve:
            final_equity = broker.equity
            prior_peak = max([config.initial_capital] + [p.equity for p in equity_curve[:-1]])
            final_peak = max(prior_peak, final_equity)
            equity_curve[-1] = EquityPoint(
                timestamp=equity_curve[-1].timestamp,
                equity=final_equity,
                drawdown=final_peak - final_equity,
            )

        trades = broker.completed_trades
        metrics = calculate_metrics(trades, equity_curve, config.initial_capital)
        breakdown = calculate_session_breakdown(trades)

        _report(on_progress, 1.0)
        logger.info(
            "Backtest {} completed | trades={} pnl={:.2f} win_rate={}% pf={}",
            run_id[:8],
            metrics.total_trades,
            metrics.total_pnl,
            metrics.win_rate,
            metrics.profit_factor,
        )
        return BacktestResult(
            id=run_id,
            config=config,
            status=BacktestStatus.COMPLETED,
            metrics=metrics,
            equity_curve=equity_curve,
            trades=trades,
            session_breakdown=breakdown,
            progress=1.0,
        )

    except Exception as exc:
        logger.error("Backtest {} failed: {}", run_id[:8], exc)
        return BacktestResult(
            id=run_id,
            config=config,
            status=BacktestStatus.FAILED,
            metrics=BacktestMetrics(),
            progress=0.0,
            error=str(exc),
        )

    finally:
        cache.clear()
