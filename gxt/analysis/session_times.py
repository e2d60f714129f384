"""Trading session windows in New York wall-clock time.

Live analysis and backtests share :func:`session_for_timestamp`; the only
difference is the instant passed in (the snapshot's ``as_of``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from gxt.models.bar import BarSnapshot
from gxt.models.signals import SessionTimeSignal

NEW_YORK = ZoneInfo("America/New_York")
CLOSED = "closed"


@dataclass(frozen=True)
class SessionWindow:
    name: str
    start: int  # minutes after midnight, inclusive
    end: int  # minutes after midnight, exclusive
    high_probability: bool = False

    @property
    def crosses_midnight(self) -> bool:
        return self.start > self.end

    def contains(self, minute: int) -> bool:
        if self.crosses_midnight:
            return minute >= self.start or minute < self.end
        return self.start <= minute < self.end

    def minutes_into(self, minute: int) -> int:
        if self.crosses_midnight and minute < self.end:
            return minute + (24 * 60 - self.start)
        return minute - self.start


def _hm(hour: int, minute: int = 0) -> int:
    return hour * 60 + minute


SESSIONS: tuple[SessionWindow, ...] = (
    SessionWindow("globex", _hm(18), _hm(20)),
    SessionWindow("asia", _hm(20), _hm(3)),
    SessionWindow("london", _hm(3), _hm(8)),
    SessionWindow("ny_premarket", _hm(8), _hm(9, 30)),
    SessionWindow("ny_open", _hm(9, 30), _hm(10), high_probability=True),
    SessionWindow("ny_am", _hm(10), _hm(12), high_probability=True),
    SessionWindow("ny_lunch", _hm(12), _hm(13, 30)),
    SessionWindow("ny_pm", _hm(13, 30), _hm(15), high_probability=True),
    SessionWindow("ny_close", _hm(15), _hm(16)),
    SessionWindow("settle", _hm(16), _hm(17)),
    SessionWindow("daily_break", _hm(17), _hm(18)),
)


def to_new_york(instant: datetime) -> datetime:
    """Convert a naive-UTC (or aware) instant to New York local time."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(NEW_YORK)


def find_session(instant: datetime) -> tuple[SessionWindow | None, int]:
    """Return the window containing *instant* and the NY minute-of-day."""
    ny = to_new_york(instant)
    minute = ny.hour * 60 + ny.minute
    for window in SESSIONS:
        if window.contains(minute):
            return window, minute
    return None, minute


def session_for_timestamp(instant: datetime) -> str:
    """Return the session name active at *instant*, or ``"closed"``."""
    window, _ = find_session(instant)
    return window.name if window else CLOSED


def session_signal(instant: datetime) -> SessionTimeSignal:
    """Build the Session Time signal for an explicit instant."""
    window, minute = find_session(instant)
    if window is None:
        return SessionTimeSignal(
            current_session=CLOSED,
            is_high_probability_window=False,
            minutes_into_session=0,
            description="Market closed",
        )
    quality = "high probability" if window.high_probability else "low probability"
    return SessionTimeSignal(
        current_session=window.name,
        is_high_probability_window=window.high_probability,
        minutes_into_session=window.minutes_into(minute),
        description=f"{window.name} session ({quality})",
    )


def analyze(snapshot: BarSnapshot, current_price: float) -> SessionTimeSignal:
    """Session for the snapshot's instant (the latest quote time in live runs)."""
    return session_signal(snapshot.as_of)
