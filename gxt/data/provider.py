"""Abstract market data provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel

from gxt.models.bar import Bar, Timeframe


class Quote(BaseModel):
    """Latest traded price for a symbol."""

    symbol: str
    price: float
    timestamp: datetime


class BaseDataProvider(ABC):
    """Abstract base class that every market data source must implement.

    Retries, pagination and rate limiting are the provider's concern.
    """

    name: str = "base"

    @abstractmethod
    async def get_bars(self, symbol: str, timeframe: Timeframe, limit: int = 100) -> list[Bar]:
        """Return up to *limit* most recent bars, oldest first."""
        ...

    @abstractmethod
    async def get_quote(self, symbol: str) -> Quote:
        """Return the latest quote for *symbol*."""
        ...
