"""Per-row sanity checks on coerced trades."""

import math

from tradevault.services.coercion import CandidateRow


def _is_number(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


def validate_row(row: CandidateRow) -> list[str]:
    """Return every rule the row breaks, in a stable order. Empty means valid."""
    errors: list[str] = []

    if not row.symbol:
        errors.append("missing symbol")

    if not _is_number(row.entry_price):
        errors.append("invalid entry_price")
    elif row.entry_price <= 0:
        errors.append("entry_price must be positive")

    if not _is_number(row.exit_price):
        errors.append("invalid exit_price")
    elif row.exit_price <= 0:
        errors.append("exit_price must be positive")

    if not _is_number(row.quantity):
        errors.append("invalid quantity")
    elif row.quantity <= 0:
        errors.append("quantity must be positive")

    if not math.isfinite(row.commission):
        errors.append("invalid commission")

    return errors
