"""Position and account state models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from gxt.models.order import OrderSide


class Position(BaseModel):
    """An open position, from entry fill until exit."""

    symbol: str
    side: OrderSide
    qty: int
    avg_entry_price: float
    current_price: float
    unrealized_pnl: float = 0.0
    opened_at: datetime


class AccountState(BaseModel):
    """Broker account snapshot used by the risk evaluator."""

    cash: float
    equity: float
    positions: list[Position] = Field(default_factory=list)
    day_pnl: float = 0.0
    total_pnl: float = 0.0
    trade_count: int = 0
    open_trade_count: int = 0
    win_rate: int = 0  # percent
