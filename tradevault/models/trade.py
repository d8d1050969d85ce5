"""Trade model — the canonical ledger record every source converges to."""

from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class Trade(SQLModel, table=True):
    __tablename__ = "trade"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "broker", "broker_trade_id", name="uq_trade_owner_broker_trade_id"
        ),
    )

    id: str = Field(primary_key=True)  # assigned by the importer
    user_id: int | None = Field(default=None, foreign_key="user.id", index=True)
    symbol: str = Field(index=True)
    asset_type: str = "stock"  # stock, crypto, forex, futures, options
    direction: str = "long"  # "long" or "short"
    entry_price: float
    exit_price: float
    quantity: float
    entry_date: str | None = None  # kept as supplied by the source
    exit_date: str | None = None
    stop_loss: float | None = None
    take_profit: float | None = None
    strategy: str | None = None
    notes: str | None = None
    commission: float = 0.0
    market_conditions: str | None = None
    pnl: float
    broker: str = "manual"  # "manual", "csv_import" or a broker name
    broker_trade_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
