"""Abstract broker interface for the GxT trading agent."""

from __future__ import annotations

from abc import ABC, abstractmethod

from gxt.models.order import Order, OrderResult
from gxt.models.position import AccountState, Position


class BaseBroker(ABC):
    """Abstract base class that every broker adapter must implement."""

    name: str = "base"

    @abstractmethod
    async def get_account(self) -> AccountState:
        """Return the current account snapshot."""
        ...

    @abstractmethod
    async def place_order(self, order: Order) -> OrderResult:
        """Submit *order* and return the broker response."""
        ...

    @abstractmethod
    async def cancel_order(self, order_id: str) -> None:
        """Cancel an open order by its *order_id*."""
        ...

    @abstractmethod
    async def get_positions(self) -> list[Position]:
        """Return all open positions."""
        ...

    @abstractmethod
    async def check_stops(self, prices: dict[str, float]) -> None:
        """Resolve stop-loss / take-profit brackets against the latest *prices*."""
        ...
