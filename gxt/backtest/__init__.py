"""Bar-by-bar backtesting of the scoring and risk pipeline."""

from gxt.backtest.engine import run_backtest
from gxt.backtest.models import BacktestConfig, BacktestError, BacktestResult, BacktestStatus

__all__ = ["BacktestConfig", "BacktestError", "BacktestResult", "BacktestStatus", "run_backtest"]
