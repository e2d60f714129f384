"""Completed trade model."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from gxt.models.order import OrderSide


class BacktestTrade(BaseModel):
    """A closed trade. Terminal and immutable once recorded."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    symbol: str
    side: OrderSide
    qty: int
    entry_price: float
    exit_price: float
    entry_timestamp: datetime
    exit_timestamp: datetime
    stop_loss: float
    take_profit: float
    pnl: float
    r_multiple: float
    session: str
    bars_held: int
    exit_reason: str = "stop"  # "stop", "target" or "force_close"

    @property
    def is_winner(self) -> bool:
        return self.pnl > 0
