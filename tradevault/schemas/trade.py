"""Pydantic schemas for the Trade API."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from tradevault.utils.constants import ASSET_TYPES, DIRECTIONS


class TradeUpdate(BaseModel):
    """Partial edit of a stored trade. pnl is always recomputed, never accepted."""

    symbol: str | None = Field(default=None, min_length=1, max_length=64)
    asset_type: str | None = None
    direction: str | None = None
    entry_price: float | None = Field(default=None, gt=0)
    exit_price: float | None = Field(default=None, gt=0)
    quantity: float | None = Field(default=None, gt=0)
    entry_date: str | None = None
    exit_date: str | None = None
    stop_loss: float | None = None
    take_profit: float | None = None
    strategy: str | None = None
    notes: str | None = None
    commission: float | None = Field(default=None, ge=0)
    market_conditions: str | None = None

    @field_validator("symbol")
    @classmethod
    def _upper_symbol(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip().upper()
        if not text:
            raise ValueError("must not be empty")
        return text

    @field_validator("asset_type")
    @classmethod
    def _validate_asset_type(cls, value: str | None) -> str | None:
        if value is None:
            return None
        if value not in ASSET_TYPES:
            raise ValueError(f"must be one of: {', '.join(ASSET_TYPES)}")
        return value

    @field_validator("direction")
    @classmethod
    def _validate_direction(cls, value: str | None) -> str | None:
        if value is None:
            return None
        if value not in DIRECTIONS:
            raise ValueError(f"must be one of: {', '.join(DIRECTIONS)}")
        return value


class BulkTradesRequest(BaseModel):
    trades: list[Any] = Field(min_length=1)


class RowError(BaseModel):
    index: int
    errors: list[str]


class BatchImportResponse(BaseModel):
    inserted: int
    skipped_duplicates: int
    invalid: int
    invalid_rows: list[RowError] = []


class TradeStats(BaseModel):
    total_trades: int
    total_pnl: float
    winning_trades: int
    losing_trades: int
    win_rate: float
    avg_win: float
    avg_loss: float
    profit_factor: float | None
    r_multiple: float | None
