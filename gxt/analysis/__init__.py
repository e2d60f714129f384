"""Analysis modules: one pure function per pattern family.

Every module exposes ``analyze(snapshot, current_price) -> Signal``; SMT
additionally takes an optional peer snapshot. ``run_analysis`` calls all of
them in checklist order and returns a :class:`SignalBundle`.
"""

from __future__ import annotations

from gxt.analysis import (
    cic,
    cisd,
    daily_profile,
    dol,
    fvg,
    levels,
    psp,
    session_times,
    smt,
    vshape,
    wick,
)
from gxt.models.bar import BarSnapshot
from gxt.models.signals import SignalBundle

# Fixed registration order; matches the scorer's checklist.
MODULE_NAMES: tuple[str, ...] = (
    "cic",
    "daily_profile",
    "session_time",
    "key_levels",
    "fvg",
    "cisd",
    "smt",
    "wick",
    "psp",
    "dol",
    "vshape",
)


def run_analysis(
    snapshot: BarSnapshot,
    current_price: float,
    peer: BarSnapshot | None = None,
) -> SignalBundle:
    """Run all eleven analysis modules against one snapshot."""
    return SignalBundle(
        symbol=snapshot.symbol,
        timestamp=snapshot.as_of,
        cic=cic.analyze(snapshot, current_price),
        daily_profile=daily_profile.analyze(snapshot, current_price),
        session_time=session_times.analyze(snapshot, current_price),
        key_levels=levels.analyze(snapshot, current_price),
        fvg=fvg.analyze(snapshot, current_price),
        cisd=cisd.analyze(snapshot, current_price),
        smt=smt.analyze(snapshot, current_price, peer),
        wick=wick.analyze(snapshot, current_price),
        psp=psp.analyze(snapshot, current_price),
        dol=dol.analyze(snapshot, current_price),
        vshape=vshape.analyze(snapshot, current_price),
    )


__all__ = ["MODULE_NAMES", "run_analysis"]
