"""Database models."""

from tradevault.models.user import User
from tradevault.models.trade import Trade
from tradevault.models.broker_connection import BrokerConnection
from tradevault.models.journal_entry import JournalEntry

__all__ = [
    "User",
    "Trade",
    "BrokerConnection",
    "JournalEntry",
]
