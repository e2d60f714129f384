"""Simulated broker used by the backtest engine.

Holds cash and at most one open position. Orders queue until the next
processed bar and fill at that bar's open; brackets resolve against the
bar's OHLC assuming the adverse extreme was hit first.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from loguru import logger

from gxt.analysis.session_times import session_for_timestamp
from gxt.broker.base_broker import BaseBroker
from gxt.models.bar import Bar
from gxt.models.order import Order, OrderResult, OrderSide, OrderStatus
from gxt.models.position import AccountState, Position
from gxt.models.trade import BacktestTrade
from gxt.utils.futures import get_multiplier
from gxt.utils.helpers import calculate_pnl, round_half_up


@dataclass
class _OpenPosition:
    id: int
    symbol: str
    side: OrderSide
    qty: int
    entry_price: float
    stop_loss: float
    take_profit: float
    entry_timestamp: datetime
    entry_bar_index: int

    def to_position(self) -> Position:
        return Position(
            symbol=self.symbol,
            side=self.side,
            qty=self.qty,
            avg_entry_price=self.entry_price,
            current_price=self.entry_price,
            opened_at=self.entry_timestamp,
        )


class BacktestBroker(BaseBroker):
    """Single-position simulated broker with next-bar-open fills."""

    name = "backtest"

    def __init__(self, initial_capital: float) -> None:
        self.initial_capital = initial_capital
        self.cash = initial_capital
        self.day_pnl = 0.0
        self.total_pnl = 0.0
        self._position: _OpenPosition | None = None
        self._pending: Order | None = None
        self._trades: list[BacktestTrade] = []
        self._trade_counter = 0
        self._last_day: date | None = None
        self._bar_index = 0

    # ── Engine hooks ──────────────────────────────────────────────────────────

    def set_bar_index(self, index: int) -> None:
        self._bar_index = index

    @property
    def completed_trades(self) -> list[BacktestTrade]:
        return list(self._trades)

    @property
    def equity(self) -> float:
        return self.cash

    def has_position(self) -> bool:
        return self._position is not None

    def has_pending_order(self) -> bool:
        return self._pending is not None

    def process_bar(self, bar: Bar) -> bool:
        """Fill any pending order at *bar*'s open, then resolve brackets.

        Returns True if a trade closed on this bar.
        """
        day = bar.timestamp.date()
        if day != self._last_day:
            self.day_pnl = 0.0
            self._last_day = day

        if self._pending is not None and self._position is None:
            order = self._pending
            self._trade_counter += 1
            self._position = _OpenPosition(
                id=self._trade_counter,
                symbol=order.symbol,
                side=order.side,
                qty=order.qty,
                entry_price=bar.open,
                stop_loss=order.stop_loss_price or 0.0,
                take_profit=order.take_profit_price or 0.0,
                entry_timestamp=bar.timestamp,
                entry_bar_index=self._bar_index,
            )
            self._pending = None
            logger.debug(
                "Filled #{} {} {} x{} @ {:.2f}",
                self._trade_counter,
                order.side.value,
                order.symbol,
                order.qty,
                bar.open,
            )

        pos = self._position
        if pos is None:
            return False

        if pos.side == OrderSide.BUY:
            if bar.low <= pos.stop_loss:
                self._close(pos, pos.stop_loss, bar.timestamp, "stop")
                return True
            if bar.high >= pos.take_profit:
                self._close(pos, pos.take_profit, bar.timestamp, "target")
                return True
        else:
            if bar.high >= pos.stop_loss:
                self._close(pos, pos.stop_loss, bar.timestamp, "stop")
                return True
            if bar.low <= pos.take_profit:
                self._close(pos, pos.take_profit, bar.timestamp, "target")
                return True
        return False

    def force_close(self, price: float, timestamp: datetime) -> None:
        """Exit any open position at *price* regardless of its brackets."""
        if self._position is not None:
            self._close(self._position, price, timestamp, "force_close")

    def _close(
        self, pos: _OpenPosition, exit_price: float, exit_timestamp: datetime, reason: str
    ) -> None:
        pnl = round_half_up(
            calculate_pnl(pos.entry_price, exit_price, pos.qty, pos.side.value, get_multiplier(pos.symbol)),
            2,
        )
        risk_per_unit = abs(pos.entry_price - pos.stop_loss)
        sign = 1 if pos.side == OrderSide.BUY else -1
        r_multiple = (
            round_half_up((exit_price - pos.entry_price) * sign / risk_per_unit, 2)
            if risk_per_unit > 0
            else 0.0
        )

        trade = BacktestTrade(
            id=pos.id,
            symbol=pos.symbol,
            side=pos.side,
            qty=pos.qty,
            entry_price=pos.entry_price,
            exit_price=exit_price,
            entry_timestamp=pos.entry_timestamp,
            exit_timestamp=exit_timestamp,
            stop_loss=pos.stop_loss,
            take_profit=pos.take_profit,
            pnl=pnl,
            r_multiple=r_multiple,
            session=session_for_timestamp(pos.entry_timestamp),
            bars_held=self._bar_index - pos.entry_bar_index,
            exit_reason=reason,
        )
        self._trades.append(trade)
        self.total_pnl += pnl
        self.day_pnl += pnl
        self.cash += pnl
        self._position = None
        logger.debug(
            "Closed #{} {} @ {:.2f} ({}) | PnL={:.2f} R={}",
            trade.id,
            trade.symbol,
            exit_price,
            reason,
            pnl,
            r_multiple,
        )

    # ── BaseBroker interface ──────────────────────────────────────────────────

    async def get_account(self) -> AccountState:
        trades = self._trades
        wins = sum(1 for t in trades if t.is_winner)
        return AccountState(
            cash=self.cash,
            equity=self.cash,
            positions=await self.get_positions(),
            day_pnl=self.day_pnl,
            total_pnl=self.total_pnl,
            trade_count=len(trades),
            open_trade_count=1 if self._position else 0,
            win_rate=int(round_half_up(wins / len(trades) * 100, 0)) if trades else 0,
        )

    async def place_order(self, order: Order) -> OrderResult:
        if self._position is not None:
            return OrderResult(
                order_id=str(self._trade_counter),
                status=OrderStatus.REJECTED,
                message=f"Already have a position in {order.symbol}",
            )
        # A new order replaces any still-pending one
        self._pending = order
        return OrderResult(
            order_id=str(self._trade_counter + 1),
            status=OrderStatus.PENDING,
            message="Queued for next bar open",
        )

    async def cancel_order(self, order_id: str) -> None:
        self._pending = None

    async def get_positions(self) -> list[Position]:
        return [self._position.to_position()] if self._position else []

    async def check_stops(self, prices: dict[str, float]) -> None:
        # Brackets resolve on full bars in process_bar
        return None
