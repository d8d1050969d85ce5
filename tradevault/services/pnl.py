"""Realized profit/loss for a closed trade."""

from tradevault.utils.constants import PNL_DECIMALS


def calculate_pnl(
    entry_price: float,
    exit_price: float,
    quantity: float,
    direction: str,
    commission: float | None = 0.0,
) -> float:
    """(exit - entry) * qty, sign-flipped for shorts, minus commission.

    Rounded to PNL_DECIMALS places. Inputs must already be finite.
    """
    sign = -1 if direction == "short" else 1
    pnl = (exit_price - entry_price) * quantity * sign - (commission or 0.0)
    return round(pnl, PNL_DECIMALS)
