"""Order models for the GxT trading agent."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class OrderSide(str, Enum):
    """Order side enumeration."""

    BUY = "buy"
    SELL = "sell"


class OrderStatus(str, Enum):
    """Order lifecycle status."""

    PENDING = "pending"
    FILLED = "filled"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class OrderType(str, Enum):
    """Entry order type. Entries are market orders with stop and target brackets."""

    MARKET = "market"


class Order(BaseModel):
    """An order request with optional stop-loss / take-profit brackets."""

    symbol: str
    side: OrderSide
    qty: int = Field(gt=0)
    order_type: OrderType = OrderType.MARKET
    stop_loss_price: float | None = None
    take_profit_price: float | None = None
    time_in_force: str = "day"
    confidence: int = 0
    checklist_snapshot: str = "[]"  # JSON of the scored checklist


class OrderResult(BaseModel):
    """Broker response to ``place_order``."""

    order_id: str
    status: OrderStatus
    filled_price: float | None = None
    filled_at: datetime | None = None
    message: str = ""

    @property
    def accepted(self) -> bool:
        return self.status in (OrderStatus.PENDING, OrderStatus.FILLED)
