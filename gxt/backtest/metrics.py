"""Performance metrics for a completed backtest."""

from __future__ import annotations

import math

import numpy as np
import pandas as pd

from gxt.backtest.models import BacktestMetrics, EquityPoint, SessionBreakdown
from gxt.models.trade import BacktestTrade
from gxt.utils.helpers import round_half_up

TRADING_DAYS_PER_YEAR = 252


def _pct(part: int, whole: int) -> int:
    return int(round_half_up(part / whole * 100, 0)) if whole else 0


def max_drawdown(equity_curve: list[EquityPoint], initial_capital: float) -> tuple[float, float]:
    """Largest peak-to-trough drop as ``(absolute, percent_of_peak)``.

    The running peak starts at *initial_capital*.
    """
    if not equity_curve:
        return 0.0, 0.0
    equity = pd.Series([p.equity for p in equity_curve], dtype=float)
    peak = equity.cummax().clip(lower=initial_capital)
    dd = peak - equity
    dd_pct = (dd / peak.where(peak > 0)).fillna(0.0) * 100
    return float(dd.max()), float(dd_pct.max())


def sharpe_ratio(equity_curve: list[EquityPoint]) -> float:
    """Annualised Sharpe ratio of day-over-day equity returns.

    The curve is collapsed to the last point of each calendar day. Returns
    0 with fewer than two daily returns or a zero standard deviation.
    """
    if len(equity_curve) < 2:
        return 0.0

    series = pd.Series(
        [p.equity for p in equity_curve],
        index=pd.DatetimeIndex([p.timestamp for p in equity_curve]),
        dtype=float,
    )
    daily = series.groupby(series.index.normalize()).last().sort_index()
    if len(daily) < 2:
        return 0.0

    prev = daily.shift(1).iloc[1:]
    curr = daily.iloc[1:]
    valid = prev > 0
    returns = ((curr[valid] - prev[valid]) / prev[valid]).to_numpy()
    if len(returns) < 2:
        return 0.0

    std = float(np.std(returns, ddof=1))
    if std == 0 or not math.isfinite(std):
        return 0.0
    return float(np.mean(returns)) / std * math.sqrt(TRADING_DAYS_PER_YEAR)


def calculate_metrics(
    trades: list[BacktestTrade],
    equity_curve: list[EquityPoint],
    initial_capital: float,
) -> BacktestMetrics:
    """Aggregate trade and equity statistics; all zeros when there are no trades."""
    if not trades:
        return BacktestMetrics()

    winners = [t for t in trades if t.pnl > 0]
    losers = [t for t in trades if t.pnl <= 0]

    gross_wins = sum(t.pnl for t in winners)
    gross_losses = abs(sum(t.pnl for t in losers))
    total_pnl = sum(t.pnl for t in trades)

    if gross_losses > 0:
        profit_factor = round_half_up(gross_wins / gross_losses, 2)
    elif gross_wins > 0:
        profit_factor = math.inf
    else:
        profit_factor = 0.0

    dd, dd_pct = max_drawdown(equity_curve, initial_capital)

    return BacktestMetrics(
        total_trades=len(trades),
        winners=len(winners),
        losers=len(losers),
        win_rate=_pct(len(winners), len(trades)),
        profit_factor=profit_factor,
        sharpe_ratio=round_half_up(sharpe_ratio(equity_curve), 2),
        max_drawdown=round_half_up(dd, 2),
        max_drawdown_pct=round_half_up(dd_pct, 2),
        total_pnl=round_half_up(total_pnl, 2),
        total_pnl_pct=round_half_up(total_pnl / initial_capital * 100, 2),
        avg_win=round_half_up(gross_wins / len(winners), 2) if winners else 0.0,
        avg_loss=round_half_up(gross_losses / len(losers), 2) if losers else 0.0,
        largest_win=round_half_up(max(t.pnl for t in winners), 2) if winners else 0.0,
        largest_loss=round_half_up(min(t.pnl for t in losers), 2) if losers else 0.0,
        avg_hold_bars=int(round_half_up(sum(t.bars_held for t in trades) / len(trades), 0)),
    )


def calculate_session_breakdown(trades: list[BacktestTrade]) -> list[SessionBreakdown]:
    """Per-session trade counts, wins and P&L, best session first."""
    stats: dict[str, dict[str, float]] = {}
    for trade in trades:
        entry = stats.setdefault(trade.session, {"trades": 0, "wins": 0, "pnl": 0.0})
        entry["trades"] += 1
        if trade.is_winner:
            entry["wins"] += 1
        entry["pnl"] += trade.pnl

    rows = [
        SessionBreakdown(
            session=session,
            trades=int(data["trades"]),
            wins=int(data["wins"]),
            pnl=round_half_up(data["pnl"], 2),
            win_rate=_pct(int(data["wins"]), int(data["trades"])),
        )
        for session, data in stats.items()
    ]
    return sorted(rows, key=lambda r: r.pnl, reverse=True)
