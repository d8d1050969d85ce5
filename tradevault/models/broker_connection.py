"""BrokerConnection model — encrypted API credentials for one broker account."""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class BrokerConnection(SQLModel, table=True):
    __tablename__ = "broker_connection"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int | None = Field(default=None, foreign_key="user.id", index=True)
    broker_name: str  # "alpaca", "binance", "metatrader", "ibkr"
    api_key_encrypted: str = ""  # Fernet-encrypted
    api_secret_encrypted: str | None = None
    account_id: str | None = None
    server_url: str | None = None  # MetaTrader gateway supplied by the broker
    is_active: bool = True
    last_sync: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
