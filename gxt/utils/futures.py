"""Contract metadata for futures symbols."""

from __future__ import annotations

FUTURES_MULTIPLIER: dict[str, float] = {
    "ES=F": 50,
    "NQ=F": 20,
    "YM=F": 5,
    "RTY=F": 50,
    "CL=F": 1000,
    "GC=F": 100,
}


def get_multiplier(symbol: str) -> float:
    """Return the point value of *symbol* (1 for anything that is not a known future)."""
    return FUTURES_MULTIPLIER.get(symbol.upper(), 1)
