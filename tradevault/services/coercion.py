"""Value coercion: raw text/number fields -> a typed candidate trade row.

Nothing here raises on bad data. Unparsable numbers become NaN so the
validator can name every broken field of a row at once.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, asdict
from typing import Any

from tradevault.utils.constants import (
    ASSET_TYPE_WORDS,
    DEFAULT_ASSET_TYPE,
    DEFAULT_DIRECTION,
    DIRECTION_WORDS,
)

NAN = float("nan")


@dataclass
class CandidateRow:
    symbol: str | None
    asset_type: str
    direction: str
    entry_price: float
    exit_price: float
    quantity: float
    commission: float = 0.0
    entry_date: str | None = None
    exit_date: str | None = None
    stop_loss: float | None = None
    take_profit: float | None = None
    strategy: str | None = None
    notes: str | None = None
    market_conditions: str | None = None
    source_pnl: float | None = None  # only trusted for brokers that report it
    id: str | None = None
    broker: str | None = None
    broker_trade_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def parse_number(value: Any) -> float:
    """Parse a price/size value, tolerating "$1,234.50" style formatting.

    Returns NaN for anything that is not a number.
    """
    if value is None or isinstance(value, bool):
        return NAN
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).replace("$", "").replace(",", "").strip()
    if not text:
        return NAN
    try:
        return float(text)
    except ValueError:
        return NAN


def _optional_number(value: Any) -> float | None:
    number = parse_number(value)
    return None if math.isnan(number) else number


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def coerce_direction(value: Any) -> str:
    word = (_text(value) or "").lower()
    return DIRECTION_WORDS.get(word, DEFAULT_DIRECTION)


def coerce_asset_type(value: Any) -> str:
    word = (_text(value) or "").lower()
    if not word:
        return DEFAULT_ASSET_TYPE
    return ASSET_TYPE_WORDS.get(word, word)


def coerce_row(normalized: Mapping[str, Any]) -> CandidateRow:
    """Build a CandidateRow from a row already keyed by canonical names."""
    symbol = _text(normalized.get("symbol"))
    commission = _optional_number(normalized.get("commission"))
    broker_trade_id = normalized.get("broker_trade_id")

    return CandidateRow(
        symbol=symbol.upper() if symbol else None,
        asset_type=coerce_asset_type(normalized.get("asset_type")),
        direction=coerce_direction(normalized.get("direction")),
        entry_price=parse_number(normalized.get("entry_price")),
        exit_price=parse_number(normalized.get("exit_price")),
        quantity=parse_number(normalized.get("quantity")),
        commission=commission or 0.0,
        entry_date=_text(normalized.get("entry_date")),
        exit_date=_text(normalized.get("exit_date")),
        stop_loss=_optional_number(normalized.get("stop_loss")),
        take_profit=_optional_number(normalized.get("take_profit")),
        strategy=_text(normalized.get("strategy")),
        notes=_text(normalized.get("notes")),
        market_conditions=_text(normalized.get("market_conditions")),
        source_pnl=_optional_number(normalized.get("pnl")),
        id=_text(normalized.get("id")),
        broker=_text(normalized.get("broker")),
        broker_trade_id=_text(broker_trade_id),
    )
