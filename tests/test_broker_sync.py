"""Broker sync: fetch via a mocked adapter, import into the test database."""

import asyncio

import httpx
import pytest
from sqlmodel import select

from tradevault.engine import broker_sync
from tradevault.models.broker_connection import BrokerConnection
from tradevault.models.trade import Trade
from tradevault.services.brokers import BrokerRequestError
from tradevault.services.brokers.alpaca import AlpacaAdapter
from tradevault.services.brokers.metatrader import MetaTraderAdapter
from tradevault.services.encryption import encrypt

DEALS = [
    {"deal": 9001, "symbol": "EURUSD", "type": 0, "price": 1.1, "volume": 1,
     "time": 1736519400, "commission": 0, "profit": 15.5},
    {"deal": 9002, "symbol": "GBPUSD", "type": 1, "price": 1.25, "volume": 2,
     "time": 1736519400, "commission": 0, "profit": -4.25},
]


def _client(payload, status_code=200):
    return httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(status_code, json=payload))
    )


@pytest.fixture
def connection(session, user) -> BrokerConnection:
    connection = BrokerConnection(
        user_id=user.id,
        broker_name="metatrader",
        api_key_encrypted=encrypt("token"),
        account_id="42",
        server_url="https://mt.example.com",
    )
    session.add(connection)
    session.commit()
    session.refresh(connection)
    return connection


def use_adapter(monkeypatch, adapter_cls, payload, status_code=200):
    client = _client(payload, status_code)
    monkeypatch.setattr(broker_sync, "get_adapter", lambda name: adapter_cls(client=client))


@pytest.mark.asyncio
async def test_sync_persists_reported_profit(session, connection, monkeypatch):
    use_adapter(monkeypatch, MetaTraderAdapter, DEALS)

    result = await broker_sync.sync_connection(session, connection)

    assert result.imported_count == 2
    trades = session.exec(select(Trade).order_by(Trade.broker_trade_id)).all()
    assert [t.pnl for t in trades] == [15.5, -4.25]
    assert {t.broker for t in trades} == {"metatrader"}
    assert {t.user_id for t in trades} == {connection.user_id}
    assert connection.last_sync is not None


@pytest.mark.asyncio
async def test_resync_imports_nothing_new(session, connection, monkeypatch):
    use_adapter(monkeypatch, MetaTraderAdapter, DEALS)

    await broker_sync.sync_connection(session, connection)
    again = await broker_sync.sync_connection(session, connection)

    assert again.imported_count == 0
    assert again.skipped_duplicates == 2
    assert len(session.exec(select(Trade)).all()) == 2


@pytest.mark.asyncio
async def test_failed_fetch_imports_nothing(session, connection, monkeypatch):
    use_adapter(monkeypatch, MetaTraderAdapter, {"error": "down"}, status_code=503)

    with pytest.raises(BrokerRequestError):
        await broker_sync.sync_connection(session, connection)

    session.refresh(connection)
    assert connection.last_sync is None
    assert session.exec(select(Trade)).all() == []


@pytest.mark.asyncio
async def test_alpaca_fills_are_not_trusted_for_pnl(session, user, monkeypatch):
    orders = [{
        "id": "ord-9", "symbol": "AAPL", "side": "buy", "filled_avg_price": "10",
        "filled_qty": "5", "submitted_at": "2025-01-10T14:00:00Z",
        "filled_at": "2025-01-10T14:30:00Z", "order_type": "market",
    }]
    use_adapter(monkeypatch, AlpacaAdapter, orders)
    connection = BrokerConnection(
        user_id=user.id,
        broker_name="alpaca",
        api_key_encrypted=encrypt("key"),
        api_secret_encrypted=encrypt("secret"),
    )
    session.add(connection)
    session.commit()
    session.refresh(connection)

    result = await broker_sync.sync_connection(session, connection)

    assert AlpacaAdapter.reports_realized_pnl is False
    assert result.imported_count == 1
    trade = session.exec(select(Trade)).one()
    assert trade.broker_trade_id == "ord-9"
    assert trade.entry_price == trade.exit_price == 10.0
    assert trade.pnl == 0.0


def test_credentials_are_decrypted(connection):
    credentials = broker_sync.credentials_for(connection, paper=True)
    assert credentials.api_key == "token"
    assert credentials.api_secret is None
    assert credentials.server_url == "https://mt.example.com"
    assert credentials.paper is True


@pytest.mark.asyncio
async def test_sync_all_isolates_failures(session, db_engine, connection, user, monkeypatch):
    broken = BrokerConnection(
        user_id=user.id, broker_name="metatrader", api_key_encrypted=encrypt("token"),
    )
    session.add(broken)
    session.commit()
    session.refresh(broken)

    client = _client(DEALS)
    monkeypatch.setattr(broker_sync, "engine", db_engine)
    monkeypatch.setattr(broker_sync, "get_adapter", lambda name: MetaTraderAdapter(client=client))

    results = await broker_sync.sync_all_connections()

    assert results[connection.id].imported_count == 2
    assert "server_url" in results[broken.id]
    assert len(session.exec(select(Trade)).all()) == 2


@pytest.mark.asyncio
async def test_concurrent_syncs_of_one_connection_import_once(session, connection, monkeypatch):
    use_adapter(monkeypatch, MetaTraderAdapter, DEALS)

    results = await asyncio.gather(
        broker_sync.sync_connection(session, connection),
        broker_sync.sync_connection(session, connection),
    )

    assert sorted(r.imported_count for r in results) == [0, 2]
    assert sorted(r.skipped_duplicates for r in results) == [0, 2]
    assert len(session.exec(select(Trade)).all()) == 2


@pytest.mark.asyncio
async def test_same_fill_syncs_for_two_users(session, user, monkeypatch):
    use_adapter(monkeypatch, MetaTraderAdapter, DEALS)
    connections = []
    for owner in (user.id, user.id + 1):
        connection = BrokerConnection(
            user_id=owner, broker_name="metatrader", api_key_encrypted=encrypt("token"),
            server_url="https://mt.example.com",
        )
        session.add(connection)
        session.commit()
        session.refresh(connection)
        connections.append(connection)

    first = await broker_sync.sync_connection(session, connections[0])
    second = await broker_sync.sync_connection(session, connections[1])

    assert first.imported_count == second.imported_count == 2
    trades = session.exec(select(Trade)).all()
    assert sorted({t.user_id for t in trades}) == [user.id, user.id + 1]
