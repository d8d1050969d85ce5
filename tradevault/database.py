"""SQLModel database engine and session management."""

import logging
from pathlib import Path

from sqlalchemy import inspect
from sqlmodel import SQLModel, create_engine, Session

from tradevault.config import settings

logger = logging.getLogger(__name__)

# SQLite needs check_same_thread=False; PostgreSQL does not
connect_args = {}
if settings.database_url.startswith("sqlite"):
    connect_args["check_same_thread"] = False
    _db_path = settings.database_url.removeprefix("sqlite:///")
    if _db_path and _db_path != settings.database_url and _db_path != ":memory:":
        Path(_db_path).parent.mkdir(parents=True, exist_ok=True)

engine = create_engine(
    settings.database_url,
    echo=False,
    connect_args=connect_args,
)

BROKER_TRADE_INDEX = "ix_trade_owner_broker_trade_id_unique"
LEGACY_BROKER_TRADE_INDEX = "ix_trade_broker_trade_id_unique"


def _run_migrations(bind=None):
    """Bring databases created before the dedup constraint up to date."""
    from sqlalchemy import text

    bind = bind or engine
    inspector = inspect(bind)

    if "trade" not in inspector.get_table_names():
        return

    columns = {col["name"] for col in inspector.get_columns("trade")}
    if "user_id" not in columns:
        logger.info("Migrating: adding trade.user_id")
        with bind.connect() as conn:
            conn.execute(text("ALTER TABLE trade ADD COLUMN user_id INTEGER"))
            conn.commit()

    # Broker re-syncs rely on (user_id, broker, broker_trade_id) being unique
    constraint_sets = [
        set(uc["column_names"]) for uc in inspector.get_unique_constraints("trade")
    ]
    unique_sets = constraint_sets + [
        set(idx["column_names"]) for idx in inspector.get_indexes("trade") if idx.get("unique")
    ]
    if {"user_id", "broker", "broker_trade_id"} not in unique_sets:
        logger.info("Migrating: adding unique index on trade(user_id, broker, broker_trade_id)")
        index_names = {idx["name"] for idx in inspector.get_indexes("trade")}
        with bind.connect() as conn:
            if LEGACY_BROKER_TRADE_INDEX in index_names:
                conn.execute(text(f"DROP INDEX {LEGACY_BROKER_TRADE_INDEX}"))
            conn.execute(text(
                f"CREATE UNIQUE INDEX {BROKER_TRADE_INDEX} "
                "ON trade (user_id, broker, broker_trade_id)"
            ))
            conn.commit()
        if {"broker", "broker_trade_id"} in constraint_sets:
            logger.warning(
                "trade still has a table-level UNIQUE(broker, broker_trade_id); "
                "broker fills shared between users will be skipped until the table is rebuilt"
            )


def create_db_and_tables():
    """Create all tables. Called on startup."""
    import tradevault.models  # noqa: F401  (registers table metadata)

    SQLModel.metadata.create_all(engine)
    _run_migrations()


def get_session() -> Session:
    """Dependency that yields a database session."""
    with Session(engine) as session:
        yield session
