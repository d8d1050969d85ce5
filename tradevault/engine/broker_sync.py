"""Broker sync — pull a connection's trades and run them through the importer.

Fetch and import are separate phases: the broker call completes (or fails)
before the import transaction opens, so a network error can never leave a
half-applied batch. The blocking import runs in the default executor while a
per-connection lock is held, so two syncs of one connection in this process
import one after the other. Across processes only the trade table's unique
constraints prevent duplicates.
"""

import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from datetime import datetime, timezone

from sqlmodel import Session, select

from tradevault.database import engine
from tradevault.models.broker_connection import BrokerConnection
from tradevault.services.brokers import BrokerAdapter, BrokerCredentials, BrokerError, get_adapter
from tradevault.services.encryption import decrypt, decrypt_optional
from tradevault.services.importer import BatchResult, ImportPersistenceError, import_batch

logger = logging.getLogger(__name__)
_connection_locks: dict[int, asyncio.Lock] = {}
_connection_locks_guard = asyncio.Lock()


@dataclass
class SyncResult:
    broker_name: str
    imported_count: int = 0
    skipped_duplicates: int = 0
    invalid_count: int = 0


async def _get_connection_lock(connection_id: int) -> asyncio.Lock:
    async with _connection_locks_guard:
        lock = _connection_locks.get(connection_id)
        if lock is None:
            lock = asyncio.Lock()
            _connection_locks[connection_id] = lock
        return lock


def credentials_for(connection: BrokerConnection, paper: bool = False) -> BrokerCredentials:
    return BrokerCredentials(
        api_key=decrypt(connection.api_key_encrypted),
        api_secret=decrypt_optional(connection.api_secret_encrypted),
        account_id=connection.account_id,
        server_url=connection.server_url,
        paper=paper,
    )


async def fetch_connection_rows(connection: BrokerConnection, paper: bool = False) -> list[dict]:
    """Phase 1: ask the broker for trades. Raises BrokerError on any failure."""
    adapter = get_adapter(connection.broker_name)
    rows = await adapter.fetch(credentials_for(connection, paper=paper))
    logger.info(f"[{adapter.name}] connection {connection.id}: fetched {len(rows)} rows")
    return rows


def _import_and_stamp(
    session: Session,
    connection: BrokerConnection,
    rows: list[dict],
    adapter: BrokerAdapter,
) -> BatchResult:
    batch = import_batch(
        session,
        rows,
        source=adapter.name,
        user_id=connection.user_id,
        trust_source_pnl=adapter.reports_realized_pnl,
        from_broker=True,
    )
    connection.last_sync = datetime.now(timezone.utc)
    session.add(connection)
    session.commit()
    session.refresh(connection)
    return batch


async def import_connection_rows(
    session: Session,
    connection: BrokerConnection,
    rows: list[dict],
) -> SyncResult:
    """Phase 2: import fetched rows and stamp the connection's last_sync."""
    adapter = get_adapter(connection.broker_name)
    lock = await _get_connection_lock(connection.id)
    async with lock:
        # import_batch blocks on the database
        batch = await asyncio.get_running_loop().run_in_executor(
            None, partial(_import_and_stamp, session, connection, rows, adapter)
        )

    return SyncResult(
        broker_name=connection.broker_name,
        imported_count=batch.inserted_count,
        skipped_duplicates=batch.skipped_duplicates,
        invalid_count=len(batch.invalid_rows),
    )


async def sync_connection(
    session: Session,
    connection: BrokerConnection,
    paper: bool = False,
) -> SyncResult:
    """Fetch then import one connection.

    Raises:
        BrokerError: the broker could not be queried; nothing was imported.
        ImportPersistenceError: the import transaction failed.
    """
    rows = await fetch_connection_rows(connection, paper=paper)
    if not rows:
        logger.info(f"[{connection.broker_name}] connection {connection.id}: no new trades")
    return await import_connection_rows(session, connection, rows)


async def sync_all_connections() -> dict[int, SyncResult | str]:
    """Sync every active connection. Fetches run concurrently, imports in turn.

    Returns connection id -> SyncResult, or the error message for connections
    that failed. One broker failing does not stop the others.
    """
    with Session(engine) as session:
        connections = session.exec(
            select(BrokerConnection).where(BrokerConnection.is_active == True)  # noqa: E712
        ).all()

        if not connections:
            logger.info("Broker sync: no active connections")
            return {}

        fetched = await asyncio.gather(
            *(fetch_connection_rows(c) for c in connections),
            return_exceptions=True,
        )

        results: dict[int, SyncResult | str] = {}
        for connection, rows in zip(connections, fetched):
            if isinstance(rows, BrokerError):
                logger.warning(f"Broker sync: connection {connection.id} ({connection.broker_name}) failed: {rows}")
                results[connection.id] = str(rows)
                continue
            if isinstance(rows, BaseException):
                logger.error(f"Broker sync: connection {connection.id} raised unexpectedly: {rows!r}")
                results[connection.id] = str(rows)
                continue
            try:
                results[connection.id] = await import_connection_rows(session, connection, rows)
            except ImportPersistenceError as e:
                logger.error(f"Broker sync: import for connection {connection.id} rolled back: {e}")
                results[connection.id] = str(e)

    logger.info(f"Broker sync complete for {len(results)} connections")
    return results
