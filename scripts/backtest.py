"""Backtesting runner for the GxT agent.

Usage:
    python scripts/backtest.py --symbol SPY --csv data/SPY_5m.csv \
        --start 2025-01-06 --end 2025-02-28 [--daily-csv data/SPY_1d.csv] \
        [--peer QQQ --peer-csv data/QQQ_5m.csv] [--json out.json]

CSV files need a ``timestamp`` column (UTC) plus open/high/low/close and
optionally volume.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from gxt.backtest import BacktestConfig, BacktestResult, run_backtest
from gxt.config.settings import get_settings
from gxt.data.history import DataFrameHistoryLoader
from gxt.models.bar import Timeframe
from gxt.utils.helpers import format_usd
from gxt.utils.logger import setup_logger


def print_results(result: BacktestResult) -> None:
    """Pretty-print backtest results."""
    m = result.metrics
    cfg = result.config
    print("\n" + "=" * 60)
    print("  BACKTEST RESULTS")
    print("=" * 60)
    print(f"  Status:          {result.status.value}")
    if result.error:
        print(f"  Error:           {result.error}")
    print(f"  Symbol:          {cfg.symbol} ({cfg.timeframe.value})")
    print(f"  Period:          {cfg.start_date.date()} -> {cfg.end_date.date()}")
    print(f"  Initial Capital: {format_usd(cfg.initial_capital)}")
    print(f"  Total PnL:       {format_usd(m.total_pnl)} ({m.total_pnl_pct}%)")
    print(f"  Total Trades:    {m.total_trades} ({m.winners}W / {m.losers}L)")
    print(f"  Win Rate:        {m.win_rate}%")
    print(f"  Profit Factor:   {m.profit_factor}")
    print(f"  Avg Win / Loss:  {format_usd(m.avg_win)} / {format_usd(m.avg_loss)}")
    print(f"  Max Drawdown:    {format_usd(m.max_drawdown)} ({m.max_drawdown_pct}%)")
    print(f"  Sharpe Ratio:    {m.sharpe_ratio}")
    print(f"  Avg Hold (bars): {m.avg_hold_bars}")
    if result.session_breakdown:
        print("-" * 60)
        print(f"  {'Session':<14}{'Trades':>8}{'Wins':>8}{'Win %':>8}{'PnL':>14}")
        for row in result.session_breakdown:
            print(f"  {row.session:<14}{row.trades:>8}{row.wins:>8}{row.win_rate:>8}{format_usd(row.pnl):>14}")
    print("=" * 60)


def main() -> None:
    """CLI entry point for backtesting."""
    parser = argparse.ArgumentParser(description="GxT Backtester")
    parser.add_argument("--symbol", required=True)
    parser.add_argument("--csv", required=True, help="Base-timeframe bars for --symbol")
    parser.add_argument("--daily-csv", help="Daily bars for --symbol (else aggregated)")
    parser.add_argument("--peer", help="Peer symbol for SMT divergence")
    parser.add_argument("--peer-csv", help="Base-timeframe bars for --peer")
    parser.add_argument("--start", required=True, help="YYYY-MM-DD")
    parser.add_argument("--end", required=True, help="YYYY-MM-DD")
    parser.add_argument("--timeframe", choices=[tf.value for tf in Timeframe], default="5m")
    parser.add_argument("--capital", type=float, default=100_000.0)
    parser.add_argument("--threshold", type=float, default=65.0)
    parser.add_argument("--max-daily-loss", type=float, default=2.0)
    parser.add_argument("--json", help="Write the wire-format result to this file")
    args = parser.parse_args()

    settings = get_settings()
    setup_logger(settings.LOG_LEVEL, settings.LOG_FILE)

    paths = {args.symbol: args.csv}
    if args.peer:
        if not args.peer_csv:
            parser.error("--peer requires --peer-csv")
        paths[args.peer] = args.peer_csv
    daily = {args.symbol: args.daily_csv} if args.daily_csv else None
    loader = DataFrameHistoryLoader.from_csv(paths, daily)

    config = BacktestConfig(
        symbol=args.symbol,
        start_date=datetime.fromisoformat(args.start),
        end_date=datetime.fromisoformat(args.end),
        initial_capital=args.capital,
        score_threshold=args.threshold,
        max_daily_loss=args.max_daily_loss,
        timeframe=Timeframe(args.timeframe),
        peer_symbol=args.peer,
    )

    result = asyncio.run(run_backtest(config, loader, settings=settings))
    print_results(result)
    if args.json:
        Path(args.json).write_text(result.to_wire(), encoding="utf-8")
        print(f"\nResult written to {args.json}")


if __name__ == "__main__":
    main()
