"""Broker connections API — stored credentials, sync and connectivity test."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from tradevault.database import get_session
from tradevault.models.broker_connection import BrokerConnection
from tradevault.models.user import User
from tradevault.schemas.broker_connection import (
    BrokerConnectionCreate,
    BrokerConnectionRead,
    BrokerTestRequest,
    SyncRequest,
    SyncResponse,
)
from tradevault.services.brokers import (
    BrokerConfigurationError,
    BrokerCredentials,
    BrokerError,
    UnsupportedBrokerError,
    get_adapter,
)
from tradevault.services.encryption import encrypt, encrypt_optional
from tradevault.services.importer import ImportPersistenceError
from tradevault.engine.broker_sync import sync_connection
from tradevault.api.deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/brokers", tags=["brokers"])


def broker_http_error(error: BrokerError) -> HTTPException:
    """Configuration problems are the caller's to fix (400); upstream failures are 502."""
    if isinstance(error, (BrokerConfigurationError, UnsupportedBrokerError)):
        return HTTPException(status_code=400, detail=str(error))
    return HTTPException(status_code=502, detail=str(error))


def _get_owned_connection(session: Session, connection_id: int, user: User) -> BrokerConnection:
    connection = session.get(BrokerConnection, connection_id)
    if not connection or connection.user_id != user.id:
        raise HTTPException(status_code=404, detail="Broker connection not found")
    return connection


@router.get("", response_model=list[BrokerConnectionRead])
def list_connections(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return session.exec(select(BrokerConnection).where(BrokerConnection.user_id == user.id)).all()


@router.post("", response_model=BrokerConnectionRead, status_code=201)
def create_connection(
    data: BrokerConnectionCreate,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    connection = BrokerConnection(
        user_id=user.id,
        broker_name=data.broker_name,
        api_key_encrypted=encrypt(data.api_key),
        api_secret_encrypted=encrypt_optional(data.api_secret),
        account_id=data.account_id,
        server_url=data.server_url,
    )
    session.add(connection)
    session.commit()
    session.refresh(connection)
    return connection


@router.delete("/{connection_id}", status_code=204)
def delete_connection(
    connection_id: int,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    connection = _get_owned_connection(session, connection_id, user)
    session.delete(connection)
    session.commit()


@router.post("/test")
async def check_connection(
    data: BrokerTestRequest,
    user: User = Depends(get_current_user),
):
    """Fetch with unsaved credentials to check they work. Nothing is imported."""
    credentials = BrokerCredentials(
        api_key=data.api_key,
        api_secret=data.api_secret,
        account_id=data.account_id,
        server_url=data.server_url,
        paper=data.paper,
    )
    try:
        trades = await get_adapter(data.broker_name).fetch(credentials)
    except BrokerError as e:
        raise broker_http_error(e)
    return {"status": "ok", "message": f"Connected. Found {len(trades)} trades."}


@router.post("/{connection_id}/sync", response_model=SyncResponse)
async def sync(
    connection_id: int,
    data: SyncRequest | None = None,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    connection = _get_owned_connection(session, connection_id, user)
    paper = data.paper if data else False

    try:
        result = await sync_connection(session, connection, paper=paper)
    except BrokerError as e:
        logger.warning(f"Sync of connection {connection_id} ({connection.broker_name}) failed: {e}")
        raise broker_http_error(e)
    except ImportPersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return SyncResponse(
        broker=result.broker_name,
        imported=result.imported_count,
        skipped_duplicates=result.skipped_duplicates,
        invalid=result.invalid_count,
    )
