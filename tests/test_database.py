"""Startup migrations for databases created by earlier versions."""

from sqlalchemy import inspect, text
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from tradevault.database import BROKER_TRADE_INDEX, LEGACY_BROKER_TRADE_INDEX, _run_migrations


def _legacy_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with engine.connect() as conn:
        conn.execute(text(
            "CREATE TABLE trade ("
            "id VARCHAR PRIMARY KEY, symbol VARCHAR, broker VARCHAR, broker_trade_id VARCHAR)"
        ))
        conn.execute(text(
            f"CREATE UNIQUE INDEX {LEGACY_BROKER_TRADE_INDEX} ON trade (broker, broker_trade_id)"
        ))
        conn.commit()
    return engine


def test_migration_scopes_broker_ids_to_owner():
    engine = _legacy_engine()

    _run_migrations(bind=engine)

    inspector = inspect(engine)
    assert "user_id" in {col["name"] for col in inspector.get_columns("trade")}
    indexes = {idx["name"]: idx for idx in inspector.get_indexes("trade")}
    assert LEGACY_BROKER_TRADE_INDEX not in indexes
    assert indexes[BROKER_TRADE_INDEX]["column_names"] == ["user_id", "broker", "broker_trade_id"]


def test_migration_allows_same_fill_for_two_owners():
    engine = _legacy_engine()
    _run_migrations(bind=engine)

    with engine.connect() as conn:
        for trade_id, owner in (("a", 1), ("b", 2)):
            conn.execute(text(
                "INSERT INTO trade (id, symbol, broker, broker_trade_id, user_id) "
                "VALUES (:id, 'BTCUSDT', 'binance', '42', :owner)"
            ), {"id": trade_id, "owner": owner})
        conn.commit()
        count = conn.execute(text("SELECT COUNT(*) FROM trade")).scalar()

    assert count == 2


def test_migration_is_a_no_op_when_current(db_engine):
    _run_migrations(bind=db_engine)
    _run_migrations(bind=db_engine)

    unique = inspect(db_engine).get_unique_constraints("trade")
    assert any(
        set(uc["column_names"]) == {"user_id", "broker", "broker_trade_id"} for uc in unique
    )
