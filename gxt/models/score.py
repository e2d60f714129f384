"""Checklist and score result models for the signal scorer."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Literal

TradeBias = Literal["long", "short", "neutral"]


@dataclass
class ChecklistItem:
    """One weighted criterion of the trade checklist."""

    id: str
    label: str
    weight: int
    passed: bool
    value: str
    detail: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["pass"] = data.pop("passed")
        return data


@dataclass
class ScoreResult:
    symbol: str
    timestamp: datetime
    total_score: int
    max_score: int
    confidence: int  # 0-100
    bias: TradeBias
    items: list[ChecklistItem] = field(default_factory=list)
    should_trade: bool = False
    reason: str = ""

    def checklist_json(self) -> list[dict]:
        """Checklist in its serialised (``pass``-keyed) form."""
        return [item.to_dict() for item in self.items]
