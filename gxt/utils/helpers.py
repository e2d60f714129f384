"""Utility / helper functions for the GxT trading agent."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, places: int = 2) -> float:
    """Round *value* to *places* decimals, halves away from zero.

    Python's built-in ``round`` uses banker's rounding, which would make
    ``2.675``-style prices depend on the float representation.

    Examples::

        round_half_up(1.005)  -> 1.01
        round_half_up(-0.125) -> -0.13
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def calculate_pnl(
    entry_price: float,
    exit_price: float,
    quantity: float,
    side: str,
    multiplier: float = 1.0,
) -> float:
    """Calculate realised PnL for a closed position.

    Args:
        entry_price: Fill price of the entry.
        exit_price: Exit / fill price.
        quantity: Quantity being closed.
        side: ``"buy"`` (long) or ``"sell"`` (short).
        multiplier: Contract multiplier (1 for equities).

    Returns:
        Signed PnL in quote currency.
    """
    if side.lower() in ("buy", "long"):
        pnl = (exit_price - entry_price) * quantity
    else:
        pnl = (entry_price - exit_price) * quantity
    return pnl * multiplier


def format_usd(amount: float) -> str:
    """Format a USD amount with a dollar sign and commas.

    Examples::

        format_usd(1234.5) -> "$1,234.50"
        format_usd(-50)    -> "-$50.00"
    """
    formatted = f"${abs(amount):,.2f}"
    return f"-{formatted}" if amount < 0 else formatted
