"""Trade ledger API — manual entry, bulk JSON import, edits and stats."""

import uuid
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from tradevault.database import get_session
from tradevault.models.trade import Trade
from tradevault.models.user import User
from tradevault.schemas.trade import (
    BatchImportResponse,
    BulkTradesRequest,
    RowError,
    TradeStats,
    TradeUpdate,
)
from tradevault.services.importer import (
    BatchResult,
    ImportPersistenceError,
    import_batch,
    process_row,
    trade_values,
)
from tradevault.services.pnl import calculate_pnl
from tradevault.utils.constants import SOURCE_MANUAL
from tradevault.api.deps import get_current_user

router = APIRouter(prefix="/api/trades", tags=["trades"])

_NOT_NULL_FIELDS = {
    "symbol", "asset_type", "direction", "entry_price", "exit_price", "quantity", "commission",
}


def batch_response(result: BatchResult) -> BatchImportResponse:
    return BatchImportResponse(
        inserted=result.inserted_count,
        skipped_duplicates=result.skipped_duplicates,
        invalid=len(result.invalid_rows),
        invalid_rows=[RowError(index=r.index, errors=r.errors) for r in result.invalid_rows],
    )


def _get_owned_trade(session: Session, trade_id: str, user: User) -> Trade:
    trade = session.get(Trade, trade_id)
    if not trade or trade.user_id != user.id:
        raise HTTPException(status_code=404, detail="Trade not found")
    return trade


@router.get("")
def list_trades(
    asset_type: str | None = None,
    direction: str | None = None,
    limit: int | None = None,
    offset: int | None = None,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    stmt = select(Trade).where(Trade.user_id == user.id).order_by(Trade.created_at.desc())
    if asset_type and asset_type != "all":
        stmt = stmt.where(Trade.asset_type == asset_type)
    if direction and direction != "all":
        stmt = stmt.where(Trade.direction == direction)
    if offset:
        stmt = stmt.offset(offset)
    if limit:
        stmt = stmt.limit(limit)
    return session.exec(stmt).all()


# Must be registered before /{trade_id}
@router.get("/stats/summary", response_model=TradeStats)
def trade_stats(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    trades = session.exec(select(Trade).where(Trade.user_id == user.id)).all()
    return summarize(trades)


def summarize(trades: list[Trade]) -> TradeStats:
    """Win/loss statistics over realized pnl."""
    winning = [t.pnl for t in trades if t.pnl > 0]
    losing = [t.pnl for t in trades if t.pnl < 0]
    total_wins = sum(winning)
    total_losses = abs(sum(losing))
    avg_win = total_wins / len(winning) if winning else 0.0
    avg_loss = total_losses / len(losing) if losing else 0.0

    return TradeStats(
        total_trades=len(trades),
        total_pnl=round(sum(t.pnl for t in trades), 2),
        winning_trades=len(winning),
        losing_trades=len(losing),
        win_rate=round(len(winning) / len(trades) * 100, 1) if trades else 0.0,
        avg_win=round(avg_win, 2),
        avg_loss=round(avg_loss, 2),
        profit_factor=round(total_wins / total_losses, 2) if total_losses > 0 else None,
        r_multiple=round(avg_win / avg_loss, 2) if avg_loss > 0 else None,
    )


@router.get("/{trade_id}")
def get_trade(
    trade_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return _get_owned_trade(session, trade_id, user)


@router.post("", status_code=201)
def create_trade(
    data: dict[str, Any] = Body(...),
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    """Manual single-trade entry. Accepts the same loose field names as CSV."""
    outcome = process_row(0, data)
    if not outcome.ok:
        raise HTTPException(status_code=422, detail={"errors": outcome.errors})

    row = outcome.row
    trade = Trade(**trade_values(
        row,
        trade_id=str(uuid.uuid4()),
        broker=SOURCE_MANUAL,
        pnl=outcome.pnl,
        user_id=user.id,
    ))
    session.add(trade)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Trade already exists")
    session.refresh(trade)
    return trade


@router.post("/bulk", response_model=BatchImportResponse, status_code=201)
def bulk_import(
    data: BulkTradesRequest,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    """Import a JSON array of raw trades. Re-posting the same array is a no-op."""
    try:
        result = import_batch(session, data.trades, SOURCE_MANUAL, user_id=user.id)
    except ImportPersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return batch_response(result)


@router.put("/{trade_id}")
def update_trade(
    trade_id: str,
    data: TradeUpdate,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    trade = _get_owned_trade(session, trade_id, user)

    for key, value in data.model_dump(exclude_unset=True).items():
        if value is None and key in _NOT_NULL_FIELDS:
            continue
        setattr(trade, key, value)
    trade.pnl = calculate_pnl(
        trade.entry_price, trade.exit_price, trade.quantity, trade.direction, trade.commission
    )

    session.add(trade)
    session.commit()
    session.refresh(trade)
    return trade


@router.delete("/{trade_id}", status_code=204)
def delete_trade(
    trade_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    trade = _get_owned_trade(session, trade_id, user)
    session.delete(trade)
    session.commit()
