"""Batch importer: raw rows from any source -> validated, deduplicated ledger rows.

Every row runs normalize -> coerce -> validate. Invalid rows are returned with
their errors and never written. Valid rows are inserted in one transaction
where each insert is ON CONFLICT DO NOTHING, so a retried batch cannot create
duplicates and a duplicate never fails the batch.
"""

import json
import logging
import math
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from tradevault.models.trade import Trade
from tradevault.services.coercion import CandidateRow, coerce_row
from tradevault.services.csv_parser import parse_csv_text
from tradevault.services.normalizer import normalize_fields
from tradevault.services.pnl import calculate_pnl
from tradevault.services.validation import validate_row
from tradevault.utils.constants import SOURCE_CSV

logger = logging.getLogger(__name__)

# Namespace for deterministic trade ids
TRADE_ID_NAMESPACE = uuid.UUID("6f1c9a52-8d1e-4c0b-9a57-2b7f0c3e4d11")


class ImportPersistenceError(RuntimeError):
    """The batch transaction could not be committed; nothing was written."""


@dataclass
class RowResult:
    """Outcome of running one raw row through the pipeline."""

    index: int
    row: CandidateRow | None
    errors: list[str] = field(default_factory=list)
    pnl: float | None = None

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class BatchResult:
    inserted_count: int = 0
    skipped_duplicates: int = 0
    invalid_rows: list[RowResult] = field(default_factory=list)
    inserted_ids: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.inserted_count + self.skipped_duplicates + len(self.invalid_rows)


@dataclass
class ImportPreview:
    total: int
    valid_count: int
    error_count: int
    rows: list[dict[str, Any]]


def process_row(index: int, raw: Any, trust_source_pnl: bool = False) -> RowResult:
    """Normalize, coerce and validate one raw row; compute pnl if it is valid."""
    if not isinstance(raw, Mapping):
        return RowResult(index=index, row=None, errors=["row is not an object"])

    row = coerce_row(normalize_fields(raw))
    errors = validate_row(row)
    if errors:
        return RowResult(index=index, row=row, errors=errors)

    if trust_source_pnl and row.source_pnl is not None:
        pnl = row.source_pnl
    else:
        pnl = calculate_pnl(
            row.entry_price, row.exit_price, row.quantity, row.direction, row.commission
        )
    return RowResult(index=index, row=row, pnl=pnl)


def trade_id_for(row: CandidateRow, broker: str, user_id: int | None) -> str:
    """Identity used for duplicate suppression.

    An explicit id wins, then the broker's own trade id scoped to the owner.
    Anything else gets a fingerprint of its content so re-submitting the same
    rows is a no-op.
    """
    if row.id:
        return row.id
    if row.broker_trade_id:
        return str(uuid.uuid5(TRADE_ID_NAMESPACE, f"{user_id}:{broker}:{row.broker_trade_id}"))

    content = row.to_dict()
    content.pop("source_pnl")
    content.pop("id")
    content.update(broker=broker, user_id=user_id)
    fingerprint = json.dumps(content, sort_keys=True, default=str)
    return str(uuid.uuid5(TRADE_ID_NAMESPACE, fingerprint))


def trade_values(
    row: CandidateRow,
    *,
    trade_id: str,
    broker: str,
    pnl: float,
    user_id: int | None,
) -> dict[str, Any]:
    """Column values for a Trade insert."""
    return {
        "id": trade_id,
        "user_id": user_id,
        "symbol": row.symbol,
        "asset_type": row.asset_type,
        "direction": row.direction,
        "entry_price": row.entry_price,
        "exit_price": row.exit_price,
        "quantity": row.quantity,
        "entry_date": row.entry_date,
        "exit_date": row.exit_date,
        "stop_loss": row.stop_loss,
        "take_profit": row.take_profit,
        "strategy": row.strategy,
        "notes": row.notes,
        "commission": row.commission,
        "market_conditions": row.market_conditions,
        "pnl": pnl,
        "broker": broker,
        "broker_trade_id": row.broker_trade_id,
        "created_at": datetime.now(timezone.utc),
    }


def _insert_ignore(session: Session):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise ImportPersistenceError(f"Idempotent inserts are not supported on {dialect}")

    def build(values: dict[str, Any]):
        return insert(Trade.__table__).values(**values).on_conflict_do_nothing()

    return build


def import_batch(
    session: Session,
    raw_rows: Iterable[Any],
    source: str,
    user_id: int | None = None,
    trust_source_pnl: bool = False,
    from_broker: bool = False,
) -> BatchResult:
    """Run raw rows through the pipeline and persist the valid ones atomically.

    Args:
        session: Open session; the batch is committed on it.
        raw_rows: Dict-like rows from CSV, JSON or a broker adapter.
        source: Provenance tag stored on every row.
        user_id: Owner of the imported trades.
        trust_source_pnl: Keep a row's own pnl instead of recomputing it.
        from_broker: Rows come from a broker adapter and may name their own
            broker. Uploaded and posted rows are always tagged with `source`.

    Raises:
        ImportPersistenceError: the transaction failed and was rolled back.
    """
    result = BatchResult()
    pending: list[RowResult] = []

    for index, raw in enumerate(raw_rows):
        outcome = process_row(index, raw, trust_source_pnl=trust_source_pnl)
        if outcome.ok:
            pending.append(outcome)
        else:
            logger.debug(f"[{source}] row {index} rejected: {', '.join(outcome.errors)}")
            result.invalid_rows.append(outcome)

    if pending:
        build_insert = _insert_ignore(session)
        inserted_ids: list[str] = []
        skipped = 0
        try:
            conn = session.connection()
            for outcome in pending:
                broker = (outcome.row.broker or source) if from_broker else source
                trade_id = trade_id_for(outcome.row, broker, user_id)
                values = trade_values(
                    outcome.row, trade_id=trade_id, broker=broker,
                    pnl=outcome.pnl, user_id=user_id,
                )
                if conn.execute(build_insert(values)).rowcount:
                    inserted_ids.append(trade_id)
                else:
                    skipped += 1
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"[{source}] batch of {len(pending)} rows rolled back: {e}")
            raise ImportPersistenceError(f"Import failed, no rows were written: {e}") from e

        result.inserted_ids = inserted_ids
        result.inserted_count = len(inserted_ids)
        result.skipped_duplicates = skipped

    logger.info(
        f"[{source}] import: {result.inserted_count} inserted, "
        f"{result.skipped_duplicates} duplicates, {len(result.invalid_rows)} invalid"
    )
    return result


def _json_safe(value: Any) -> Any:
    if isinstance(value, float) and (math.isinf(value) or math.isnan(value)):
        return None
    return value


def preview_row(outcome: RowResult) -> dict[str, Any]:
    """Flatten a RowResult for display: coerced fields, pnl and errors."""
    data = outcome.row.to_dict() if outcome.row else {}
    data.pop("source_pnl", None)
    data.pop("id", None)
    data = {k: _json_safe(v) for k, v in data.items()}
    data["pnl"] = outcome.pnl
    data["errors"] = list(outcome.errors)
    return data


def preview_rows(raw_rows: Iterable[Any]) -> ImportPreview:
    outcomes = [process_row(i, raw) for i, raw in enumerate(raw_rows)]
    valid = sum(1 for o in outcomes if o.ok)
    return ImportPreview(
        total=len(outcomes),
        valid_count=valid,
        error_count=len(outcomes) - valid,
        rows=[preview_row(o) for o in outcomes],
    )


def preview_import(csv_text: str) -> ImportPreview:
    """Parse CSV text and annotate every row without touching the database.

    Raises:
        MalformedInputError: the text has no header or no data rows.
    """
    return preview_rows(parse_csv_text(csv_text))


def confirm_import(
    session: Session,
    rows: list[Any],
    user_id: int | None,
) -> BatchResult:
    """Persist rows the caller kept after a preview."""
    return import_batch(session, rows, SOURCE_CSV, user_id=user_id)
