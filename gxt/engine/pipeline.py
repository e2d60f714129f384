"""Live analysis pipeline: fetch -> analyse -> score -> risk -> order."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from loguru import logger

from gxt.analysis import run_analysis
from gxt.broker.base_broker import BaseBroker
from gxt.config.settings import Settings
from gxt.data.bar_manager import BarManager
from gxt.engine.risk import RiskDecision, evaluate_risk
from gxt.engine.scorer import MAX_SCORE, Thresholds, score_signals
from gxt.models.bar import BarSnapshot
from gxt.models.score import ScoreResult
from gxt.models.signals import SignalBundle


@dataclass
class PipelineResult:
    symbol: str
    signals: SignalBundle | None
    score: ScoreResult
    risk: RiskDecision
    trade_executed: bool = False


def _naive_utc(instant: datetime) -> datetime:
    if instant.tzinfo is not None:
        return instant.astimezone(timezone.utc).replace(tzinfo=None)
    return instant


def empty_result(symbol: str, reason: str = "No data") -> PipelineResult:
    """Neutral result used when there is nothing to analyse."""
    return PipelineResult(
        symbol=symbol,
        signals=None,
        score=ScoreResult(
            symbol=symbol,
            timestamp=datetime.now(timezone.utc).replace(tzinfo=None),
            total_score=0,
            max_score=MAX_SCORE,
            confidence=0,
            bias="neutral",
            reason=reason,
        ),
        risk=RiskDecision(approved=False, reason=reason),
    )


async def run_pipeline(
    symbol: str,
    bar_manager: BarManager,
    broker: BaseBroker,
    settings: Settings,
    peer_snapshot: BarSnapshot | None = None,
) -> PipelineResult:
    """Run one analysis cycle for *symbol* and place an order if approved.

    A missing or zero price short-circuits to :func:`empty_result`.
    """
    logger.info("Pipeline starting for {}", symbol)

    snapshot = await bar_manager.fetch_all(symbol, settings.LOOKBACK_BARS)
    try:
        quote = await bar_manager.get_quote(symbol)
        current_price = quote.price
    except Exception as exc:
        logger.warning("Quote for {} unavailable: {}", symbol, exc)
        current_price = 0.0

    if current_price <= 0:
        logger.warning("Could not get current price for {} — skipping", symbol)
        return empty_result(symbol)

    # The session clock follows the quote, not the newest (possibly stale) bar
    snapshot = snapshot.model_copy(update={"as_of": max(snapshot.as_of, _naive_utc(quote.timestamp))})

    signals = run_analysis(snapshot, current_price, peer_snapshot)
    score = score_signals(
        signals,
        Thresholds(
            key_level_proximity_pct=settings.KEY_LEVEL_PROXIMITY_PERCENT,
            dol_max_distance_pct=settings.DOL_MAX_DISTANCE_PERCENT,
        ),
    )
    logger.info(
        "Scored {} | confidence={}% bias={} should_trade={}",
        symbol,
        score.confidence,
        score.bias,
        score.should_trade,
    )

    session = signals.session_time.current_session
    if session in settings.BLOCKED_SESSIONS:
        logger.info("Blocked session {} — skipping trade evaluation for {}", session, symbol)
        return PipelineResult(
            symbol=symbol,
            signals=signals,
            score=score,
            risk=RiskDecision(approved=False, reason=f"Session {session} is blocked"),
        )

    account = await broker.get_account()
    risk = evaluate_risk(score, account, snapshot, settings)

    trade_executed = False
    if risk.approved and risk.order is not None:
        result = await broker.place_order(risk.order)
        trade_executed = result.accepted
        if trade_executed:
            logger.info("Order {} placed for {} @ ~{:.2f}", result.order_id, symbol, current_price)
        else:
            logger.warning("Order for {} not accepted: {}", symbol, result.message)

    return PipelineResult(
        symbol=symbol,
        signals=signals,
        score=score,
        risk=risk,
        trade_executed=trade_executed,
    )
