"""Key reference levels: PDH/PDL, daily open, PWH/PWL, PMH/PML."""

from __future__ import annotations

from datetime import date, timedelta

from gxt.models.bar import Bar, BarSnapshot, Timeframe
from gxt.models.signals import KeyLevel, KeyLevelsSignal

MIN_BARS_WEEKLY = 10
MIN_BARS_MONTHLY = 30


def _previous_week_bars(daily: list[Bar], as_of: date) -> list[Bar]:
    """Daily bars of the calendar week (Sunday start) before *as_of*'s week."""
    days_since_sunday = (as_of.weekday() + 1) % 7
    start_this_week = as_of - timedelta(days=days_since_sunday)
    start_last_week = start_this_week - timedelta(days=7)
    return [b for b in daily if start_last_week <= b.timestamp.date() < start_this_week]


def _previous_month_bars(daily: list[Bar], as_of: date) -> list[Bar]:
    start_this_month = as_of.replace(day=1)
    start_last_month = (start_this_month - timedelta(days=1)).replace(day=1)
    return [b for b in daily if start_last_month <= b.timestamp.date() < start_this_month]


def compute_levels(daily: list[Bar], as_of: date) -> list[KeyLevel]:
    """All available key levels, sorted ascending by price."""
    levels: list[KeyLevel] = []

    if len(daily) >= 2:
        yesterday = daily[-2]
        levels.append(KeyLevel("PDH", yesterday.high, "pdh"))
        levels.append(KeyLevel("PDL", yesterday.low, "pdl"))
        levels.append(KeyLevel("DO", daily[-1].open, "open"))

    if len(daily) >= MIN_BARS_WEEKLY:
        week = _previous_week_bars(daily, as_of)
        if week:
            levels.append(KeyLevel("PWH", max(b.high for b in week), "pwh"))
            levels.append(KeyLevel("PWL", min(b.low for b in week), "pwl"))

    if len(daily) >= MIN_BARS_MONTHLY:
        month = _previous_month_bars(daily, as_of)
        if month:
            levels.append(KeyLevel("PMH", max(b.high for b in month), "pmh"))
            levels.append(KeyLevel("PML", min(b.low for b in month), "pml"))

    levels.sort(key=lambda lv: lv.price)
    return levels


def analyze(snapshot: BarSnapshot, current_price: float) -> KeyLevelsSignal:
    levels = compute_levels(snapshot.get(Timeframe.D1), snapshot.as_of.date())
    above = [lv for lv in levels if lv.price > current_price]
    below = [lv for lv in levels if lv.price < current_price]
    return KeyLevelsSignal(
        levels=tuple(levels),
        nearest_above=above[0] if above else None,
        nearest_below=below[-1] if below else None,
        current_price=current_price,
    )
