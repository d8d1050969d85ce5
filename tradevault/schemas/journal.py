"""Pydantic schemas for journal entries."""

from pydantic import BaseModel, Field


class JournalEntryCreate(BaseModel):
    entry_date: str = Field(min_length=1, max_length=32)
    content: str = Field(min_length=1)


class JournalEntryUpdate(BaseModel):
    entry_date: str | None = Field(default=None, min_length=1, max_length=32)
    content: str | None = Field(default=None, min_length=1)
