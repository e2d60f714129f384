"""Weighted checklist scorer.

Turns a :class:`SignalBundle` into a confidence score (0-100) and a
directional bias. Each criterion adds its weight to the score when it
passes; passing criteria whose value reads bullish/bearish also feed the
bias tally, as do the daily profile (+5) and a detected CISD (+10).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from gxt.models.score import ChecklistItem, ScoreResult, TradeBias
from gxt.models.signals import SignalBundle
from gxt.utils.helpers import round_half_up

BIAS_MARGIN = 5
DAILY_PROFILE_POINTS = 5
CISD_POINTS = 10
TRADE_CONFIDENCE = 60

BULLISH_VALUES = {"c1", "olhc"}
BEARISH_VALUES = {"c3", "ohlc"}


@dataclass(frozen=True)
class Thresholds:
    """Distance thresholds used by the proximity criteria (percent of price)."""

    key_level_proximity_pct: float = 0.5
    dol_max_distance_pct: float = 1.0


Evaluation = tuple[bool, str, str]  # (pass, value, detail)


@dataclass(frozen=True)
class Criterion:
    id: str
    label: str
    weight: int
    evaluate: Callable[[SignalBundle, Thresholds], Evaluation]


def _fmt(value: float | None) -> str:
    return f"{value:.2f}" if value is not None else "—"


def _eval_cic(s: SignalBundle, t: Thresholds) -> Evaluation:
    return s.cic.type in ("C1", "C3"), s.cic.type, s.cic.description


def _eval_daily_profile(s: SignalBundle, t: Thresholds) -> Evaluation:
    # Informational: always passes and contributes to the bias
    dp = s.daily_profile
    return True, dp.type, f"{dp.type} day — {dp.bias} bias"


def _eval_session(s: SignalBundle, t: Thresholds) -> Evaluation:
    st = s.session_time
    return st.is_high_probability_window, st.current_session, st.description


def _eval_key_levels(s: SignalBundle, t: Thresholds) -> Evaluation:
    kl = s.key_levels
    nearest = kl.nearest_above or kl.nearest_below
    if nearest is None or kl.current_price <= 0:
        return False, "none", "No key levels found"
    dist = abs(nearest.price - kl.current_price) / kl.current_price
    return (
        dist < t.key_level_proximity_pct / 100,
        f"{nearest.label} @ {nearest.price:.2f}",
        f"{dist * 100:.2f}% from {nearest.label}",
    )


def _eval_fvg(s: SignalBundle, t: Thresholds) -> Evaluation:
    gap = s.fvg.nearest_unfilled
    if gap is None:
        return False, "none", "No unfilled FVGs nearby"
    return (
        True,
        f"{gap.direction} ({gap.timeframe})",
        f"{gap.direction} FVG {gap.low:.2f}-{gap.high:.2f}",
    )


def _eval_cisd(s: SignalBundle, t: Thresholds) -> Evaluation:
    c = s.cisd
    detail = f"{c.direction} CISD — broke {_fmt(c.swing_broken)}" if c.detected else "No CISD detected"
    return c.detected, c.direction or "none", detail


def _eval_smt(s: SignalBundle, t: Thresholds) -> Evaluation:
    return s.smt.detected, s.smt.divergence_type or "none", s.smt.description


def _eval_wick(s: SignalBundle, t: Thresholds) -> Evaluation:
    w = s.wick
    return (
        w.significance == "high",
        w.significance,
        f"Wick/ATR: {w.wick_to_atr_ratio:.2f} ({w.significance})",
    )


def _eval_psp(s: SignalBundle, t: Thresholds) -> Evaluation:
    p = s.psp
    found = p.nearest_protected_high is not None or p.nearest_protected_low is not None
    if not found:
        return False, "none", "No protected swing points nearby"
    return (
        True,
        "found",
        f"Protected H: {_fmt(p.nearest_protected_high)}, L: {_fmt(p.nearest_protected_low)}",
    )


def _eval_dol(s: SignalBundle, t: Thresholds) -> Evaluation:
    d = s.dol
    if d.target is None:
        return False, d.target_label, "No DOL identified"
    if d.distance_percent >= t.dol_max_distance_pct:
        return (
            False,
            d.target_label,
            f"{d.target_label} @ {d.target:.2f} ({d.distance_percent}% away — too far)",
        )
    return (
        True,
        d.target_label,
        f"{d.target_label} @ {d.target:.2f} ({d.direction}, {d.distance_percent}% away)",
    )


def _eval_vshape(s: SignalBundle, t: Thresholds) -> Evaluation:
    v = s.vshape
    detail = (
        f"{v.direction} V-shape at {_fmt(v.pivot_price)} (strength: {v.strength})"
        if v.detected
        else "No V-shape detected"
    )
    return v.detected, v.direction or "none", detail


CHECKLIST: tuple[Criterion, ...] = (
    Criterion("cic", "Candle-in-Candle", 10, _eval_cic),
    Criterion("daily_profile", "Daily Profile", 8, _eval_daily_profile),
    Criterion("session_time", "Session Timing", 12, _eval_session),
    Criterion("key_levels", "Near Key Level", 10, _eval_key_levels),
    Criterion("fvg", "Fair Value Gap", 10, _eval_fvg),
    Criterion("cisd", "CISD", 12, _eval_cisd),
    Criterion("smt", "SMT Divergence", 8, _eval_smt),
    Criterion("wick", "Wick Analysis", 8, _eval_wick),
    Criterion("psp", "Protected Swing Points", 8, _eval_psp),
    Criterion("dol", "Draw on Liquidity", 8, _eval_dol),
    Criterion("vshape", "V-Shape Reversal", 6, _eval_vshape),
)

MAX_SCORE = sum(c.weight for c in CHECKLIST)


def direction_of(value: str) -> str | None:
    """``"bullish"``/``"bearish"`` when a checklist value reads directional."""
    val = value.lower()
    if "bullish" in val or val in BULLISH_VALUES:
        return "bullish"
    if "bearish" in val or val in BEARISH_VALUES:
        return "bearish"
    return None


def bias_from_points(bullish: int, bearish: int) -> TradeBias:
    if bullish > bearish + BIAS_MARGIN:
        return "long"
    if bearish > bullish + BIAS_MARGIN:
        return "short"
    return "neutral"


def score_signals(signals: SignalBundle, thresholds: Thresholds | None = None) -> ScoreResult:
    """Score a signal bundle against the weighted checklist."""
    thresholds = thresholds or Thresholds()
    items: list[ChecklistItem] = []
    total_score = 0
    bullish_points = 0
    bearish_points = 0

    for criterion in CHECKLIST:
        passed, value, detail = criterion.evaluate(signals, thresholds)
        item = ChecklistItem(
            id=criterion.id,
            label=criterion.label,
            weight=criterion.weight,
            passed=passed,
            value=value,
            detail=detail,
        )
        if passed:
            total_score += criterion.weight
            direction = direction_of(value)
            if direction == "bullish":
                bullish_points += criterion.weight
            elif direction == "bearish":
                bearish_points += criterion.weight
        items.append(item)

    if signals.daily_profile.bias == "bullish":
        bullish_points += DAILY_PROFILE_POINTS
    else:
        bearish_points += DAILY_PROFILE_POINTS

    if signals.cisd.detected:
        if signals.cisd.direction == "bullish":
            bullish_points += CISD_POINTS
        else:
            bearish_points += CISD_POINTS

    # A passing DOL must point the same way as the bias, else its pass is revoked
    prelim_bias = bias_from_points(bullish_points, bearish_points)
    dol_item = next(i for i in items if i.id == "dol")
    if dol_item.passed and signals.dol.target is not None and prelim_bias != "neutral":
        expected = "above" if prelim_bias == "long" else "below"
        if signals.dol.direction != expected:
            dol_item.passed = False
            dol_item.detail += " [direction mismatch with bias]"
            total_score -= dol_item.weight
            direction = direction_of(dol_item.value)
            if direction == "bullish":
                bullish_points -= dol_item.weight
            elif direction == "bearish":
                bearish_points -= dol_item.weight

    confidence = int(round_half_up(total_score / MAX_SCORE * 100, 0))
    bias = bias_from_points(bullish_points, bearish_points)
    should_trade = confidence >= TRADE_CONFIDENCE and bias != "neutral"

    if should_trade:
        reason = f"{confidence}% confidence, {bias} bias — trade eligible"
    else:
        reason = f"{confidence}% confidence, {bias} bias — below threshold or no directional bias"

    return ScoreResult(
        symbol=signals.symbol,
        timestamp=signals.timestamp,
        total_score=total_score,
        max_score=MAX_SCORE,
        confidence=confidence,
        bias=bias,
        items=items,
        should_trade=should_trade,
        reason=reason,
    )
