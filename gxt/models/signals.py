"""Signal variants produced by the analysis modules.

Each analysis module returns exactly one of these frozen dataclasses; a
``SignalBundle`` carries one of each in a fixed order so the scorer can
read every field by name.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

Direction = Literal["bullish", "bearish"]
CicType = Literal["C1", "C2", "C3", "C4"]
DailyProfileType = Literal["OHLC", "OLHC"]
Significance = Literal["high", "medium", "low"]
LevelType = Literal["pdh", "pdl", "pwh", "pwl", "pmh", "pml", "open"]


@dataclass(frozen=True)
class CicSignal:
    type: CicType
    timeframe: str
    timestamp: datetime
    description: str


@dataclass(frozen=True)
class DailyProfileSignal:
    type: DailyProfileType
    date: str
    bias: Direction


@dataclass(frozen=True)
class SessionTimeSignal:
    current_session: str  # a session name or "closed"
    is_high_probability_window: bool
    minutes_into_session: int
    description: str


@dataclass(frozen=True)
class KeyLevel:
    label: str
    price: float
    type: LevelType


@dataclass(frozen=True)
class KeyLevelsSignal:
    levels: tuple[KeyLevel, ...]
    nearest_above: KeyLevel | None
    nearest_below: KeyLevel | None
    current_price: float


@dataclass(frozen=True)
class Fvg:
    direction: Direction
    high: float
    low: float
    midpoint: float
    timestamp: datetime
    timeframe: str
    filled: bool


@dataclass(frozen=True)
class FvgSignal:
    fvgs: tuple[Fvg, ...]
    nearest_unfilled: Fvg | None


@dataclass(frozen=True)
class CisdSignal:
    detected: bool = False
    direction: Direction | None = None
    swing_broken: float | None = None
    close_price: float | None = None
    timestamp: datetime | None = None


@dataclass(frozen=True)
class SmtSignal:
    detected: bool
    symbol_a: str
    symbol_b: str
    divergence_type: Direction | None
    description: str


@dataclass(frozen=True)
class WickSignal:
    top_wick_ratio: float = 0.0
    bottom_wick_ratio: float = 0.0
    body_ratio: float = 0.0
    atr14: float = 0.0
    wick_to_atr_ratio: float = 0.0
    significance: Significance = "low"


@dataclass(frozen=True)
class SwingPoint:
    price: float
    timestamp: datetime
    protected: bool


@dataclass(frozen=True)
class PspSignal:
    swing_highs: tuple[SwingPoint, ...] = ()
    swing_lows: tuple[SwingPoint, ...] = ()
    nearest_protected_high: float | None = None
    nearest_protected_low: float | None = None


@dataclass(frozen=True)
class DolSignal:
    target: float | None = None
    target_label: str = "None"
    direction: Literal["above", "below"] | None = None
    distance: float = 0.0
    distance_percent: float = 0.0


@dataclass(frozen=True)
class VshapeSignal:
    detected: bool = False
    direction: Direction | None = None
    pivot_price: float | None = None
    timestamp: datetime | None = None
    strength: int = 0


@dataclass(frozen=True)
class SignalBundle:
    """One signal from every analysis module, in checklist order."""

    symbol: str
    timestamp: datetime
    cic: CicSignal
    daily_profile: DailyProfileSignal
    session_time: SessionTimeSignal
    key_levels: KeyLevelsSignal
    fvg: FvgSignal
    cisd: CisdSignal
    smt: SmtSignal
    wick: WickSignal
    psp: PspSignal
    dol: DolSignal
    vshape: VshapeSignal
