"""Pydantic schemas for CSV preview/confirm."""

from typing import Any

from pydantic import BaseModel


class ImportPreviewResponse(BaseModel):
    total: int
    valid: int
    errors: int
    rows: list[dict[str, Any]]


class ConfirmImportRequest(BaseModel):
    rows: list[Any] = []


class ConfirmImportResponse(BaseModel):
    imported: int
    skipped_duplicates: int
    invalid: int
