"""Backtest configuration and result models.

Results serialise to the camelCase wire shape consumed by the API and
persistence layers via :meth:`BacktestResult.to_wire`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from gxt.config.settings import SESSION_NAMES
from gxt.models.bar import Timeframe
from gxt.models.trade import BacktestTrade


class BacktestError(Exception):
    """Unrecoverable condition during a backtest run (e.g. no bars loaded)."""


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        ser_json_inf_nan="constants",
    )


class BacktestStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class BacktestConfig(WireModel):
    """Parameters of one backtest run."""

    symbol: str
    start_date: datetime
    end_date: datetime
    initial_capital: float = Field(default=100_000.0, gt=0)
    score_threshold: float = Field(default=65.0, ge=0, le=100)
    max_daily_loss: float = Field(default=2.0, gt=0)  # percent of equity
    timeframe: Timeframe = Timeframe.M5
    max_position_size_percent: float = Field(default=10.0, gt=0)
    min_reward_risk_ratio: float = Field(default=2.0, gt=0)
    blocked_sessions: list[str] = Field(default_factory=lambda: ["ny_am", "ny_lunch"])
    peer_symbol: str | None = None

    @field_validator("symbol", "peer_symbol")
    @classmethod
    def upper_symbol(cls, v: str | None) -> str | None:
        return v.upper() if v else v

    @field_validator("start_date", "end_date")
    @classmethod
    def naive_utc(cls, v: datetime) -> datetime:
        """Bars are naive UTC, so aware bounds are converted to match."""
        if v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    @field_validator("blocked_sessions")
    @classmethod
    def known_sessions(cls, v: list[str]) -> list[str]:
        unknown = [s for s in v if s not in SESSION_NAMES]
        if unknown:
            raise ValueError(f"Unknown session(s): {unknown}")
        return v


class BacktestMetrics(WireModel):
    total_trades: int = 0
    winners: int = 0
    losers: int = 0
    win_rate: int = 0  # percent
    profit_factor: float = 0.0  # inf when there are no losing trades
    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0
    max_drawdown_pct: float = 0.0
    total_pnl: float = 0.0
    total_pnl_pct: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0  # absolute value
    largest_win: float = 0.0
    largest_loss: float = 0.0
    avg_hold_bars: int = 0


class EquityPoint(WireModel):
    timestamp: datetime
    equity: float
    drawdown: float  # running peak minus equity, never negative


class SessionBreakdown(WireModel):
    session: str
    trades: int
    wins: int
    pnl: float
    win_rate: int


class BacktestResult(WireModel):
    id: str
    config: BacktestConfig
    status: BacktestStatus
    metrics: BacktestMetrics = Field(default_factory=BacktestMetrics)
    equity_curve: list[EquityPoint] = Field(default_factory=list)
    trades: list[BacktestTrade] = Field(default_factory=list)
    session_breakdown: list[SessionBreakdown] = Field(default_factory=list)
    progress: float = Field(default=0.0, ge=0, le=1)
    error: str | None = None

    def to_wire(self) -> str:
        """JSON in the camelCase at-rest/wire shape; an infinite profit factor is ``Infinity``."""
        return self.model_dump_json(by_alias=True, exclude={"error"} if self.error is None else None)
