"""CSV import API — preview an upload, confirm the kept rows, download a template."""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import PlainTextResponse
from sqlmodel import Session

from tradevault.config import settings
from tradevault.database import get_session
from tradevault.models.user import User
from tradevault.schemas.imports import (
    ConfirmImportRequest,
    ConfirmImportResponse,
    ImportPreviewResponse,
)
from tradevault.services.csv_parser import MalformedInputError, decode_upload
from tradevault.services.importer import ImportPersistenceError, confirm_import, preview_import
from tradevault.utils.constants import CSV_TEMPLATE
from tradevault.api.deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/import", tags=["import"])


@router.post("/preview", response_model=ImportPreviewResponse)
async def preview(
    file: UploadFile | None = File(default=None),
    user: User = Depends(get_current_user),
):
    """Parse an uploaded CSV and show what would be imported. Nothing is saved."""
    if file is None:
        raise HTTPException(status_code=400, detail="No file")
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files allowed")

    content = await file.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="CSV file is too large")

    try:
        result = preview_import(decode_upload(content))
    except MalformedInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(
        f"User {user.id} previewed {file.filename}: "
        f"{result.valid_count} valid, {result.error_count} with errors"
    )
    return ImportPreviewResponse(
        total=result.total,
        valid=result.valid_count,
        errors=result.error_count,
        rows=result.rows,
    )


@router.post("/confirm", response_model=ConfirmImportResponse)
def confirm(
    data: ConfirmImportRequest,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    """Persist previewed rows. Rows still carrying errors are rejected again, not saved."""
    if not data.rows:
        raise HTTPException(status_code=400, detail="No valid rows")

    try:
        result = confirm_import(session, data.rows, user_id=user.id)
    except ImportPersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return ConfirmImportResponse(
        imported=result.inserted_count,
        skipped_duplicates=result.skipped_duplicates,
        invalid=len(result.invalid_rows),
    )


@router.get("/template", response_class=PlainTextResponse)
def template():
    return PlainTextResponse(
        CSV_TEMPLATE,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="sample.csv"'},
    )
