"""Risk evaluation: gates a scored setup and sizes the bracket order."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass

from loguru import logger

from gxt.config.settings import Settings
from gxt.data.indicators import atr_from_bars
from gxt.models.bar import BarSnapshot, Timeframe
from gxt.models.order import Order, OrderSide, OrderType
from gxt.models.position import AccountState
from gxt.models.score import ScoreResult
from gxt.utils.helpers import round_half_up


@dataclass
class RiskDecision:
    """Outcome of :func:`evaluate_risk`.

    Rejections carry a human-readable reason and zeroed prices; approvals
    carry the order to submit.
    """

    approved: bool
    reason: str
    order: Order | None = None
    stop_loss: float = 0.0
    take_profit: float = 0.0
    position_size: int = 0


def _reject(reason: str) -> RiskDecision:
    logger.debug("Risk rejected: {}", reason)
    return RiskDecision(approved=False, reason=reason)


def evaluate_risk(
    score: ScoreResult,
    account: AccountState,
    snapshot: BarSnapshot,
    settings: Settings,
) -> RiskDecision:
    """Run the ordered risk gates; the first failing gate rejects.

    1. confidence below ``SCORE_THRESHOLD``
    2. neutral bias
    3. day P&L below ``-(equity * MAX_DAILY_LOSS_PERCENT / 100)``
    4. fewer than ``ATR_PERIOD + 1`` 15m bars
    5. zero ATR
    6. reward:risk below ``MIN_REWARD_RISK_RATIO`` (within ``RR_EPSILON``)
    7. position size rounds down to zero
    """
    # 1. Score threshold
    if score.confidence < settings.SCORE_THRESHOLD:
        return _reject(
            f"Score {score.confidence}% below threshold {settings.SCORE_THRESHOLD:g}%"
        )

    # 2. Directional bias
    if score.bias == "neutral":
        return _reject("No directional bias")

    # 3. Daily loss circuit breaker
    max_daily_loss = account.equity * (settings.MAX_DAILY_LOSS_PERCENT / 100)
    if account.day_pnl < -max_daily_loss:
        return _reject(
            f"Daily loss limit reached: ${account.day_pnl:.2f} (max: -${max_daily_loss:.2f})"
        )

    # 4. Enough 15m bars for the ATR
    bars = snapshot.get(Timeframe.M15)
    period = settings.ATR_PERIOD
    if len(bars) < period + 1:
        return _reject("Insufficient bar data for risk calculation")

    # 5. ATR-based stop distance
    atr = atr_from_bars(bars, period)
    if atr == 0:
        return _reject("ATR is zero — cannot calculate stop")

    entry = bars[-1].close
    if entry <= 0:
        return _reject("Invalid entry price")

    stop_distance = atr * settings.ATR_STOP_MULTIPLIER
    min_rr = settings.MIN_REWARD_RISK_RATIO
    if score.bias == "long":
        stop_loss = entry - stop_distance
        take_profit = entry + stop_distance * min_rr
    else:
        stop_loss = entry + stop_distance
        take_profit = entry - stop_distance * min_rr

    risk_per_share = abs(entry - stop_loss)
    reward_per_share = abs(take_profit - entry)

    # 6. Reward:risk
    rr = reward_per_share / risk_per_share
    if rr < min_rr - settings.RR_EPSILON:
        return _reject(f"R:R {rr:.2f} below minimum {min_rr:g}")

    # 7. Position sizing: risk budget capped by max notional
    risk_budget = account.equity * (settings.RISK_PER_TRADE_PERCENT / 100)
    max_notional = account.equity * (settings.MAX_POSITION_SIZE_PERCENT / 100)
    qty = math.floor(min(risk_budget / risk_per_share, max_notional / entry))
    if qty <= 0:
        return _reject("Position size calculates to zero")

    stop_rounded = round_half_up(stop_loss, 2)
    target_rounded = round_half_up(take_profit, 2)
    order = Order(
        symbol=score.symbol,
        side=OrderSide.BUY if score.bias == "long" else OrderSide.SELL,
        qty=qty,
        order_type=OrderType.MARKET,
        stop_loss_price=stop_rounded,
        take_profit_price=target_rounded,
        time_in_force="day",
        confidence=score.confidence,
        checklist_snapshot=json.dumps(score.checklist_json()),
    )

    logger.info(
        "Risk approved | {} {} | entry={:.2f} stop={:.2f} target={:.2f} qty={} rr={:.2f}",
        score.symbol,
        score.bias,
        entry,
        stop_loss,
        take_profit,
        qty,
        rr,
    )

    return RiskDecision(
        approved=True,
        reason=(
            f"{score.bias} | Entry: {entry:.2f} | SL: {stop_loss:.2f} | "
            f"TP: {take_profit:.2f} | R:R {rr:.2f} | Qty: {qty}"
        ),
        order=order,
        stop_loss=stop_rounded,
        take_profit=target_rounded,
        position_size=qty,
    )
