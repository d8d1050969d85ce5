"""Pydantic schemas for BrokerConnection API."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from tradevault.services.brokers import SUPPORTED_BROKERS


def _check_broker_name(value: str) -> str:
    name = value.strip().lower()
    if name not in SUPPORTED_BROKERS:
        raise ValueError(f"must be one of: {', '.join(SUPPORTED_BROKERS)}")
    return name


def _check_server_url(value: str | None) -> str | None:
    if value is None:
        return None
    url = value.strip()
    if not url:
        return None
    if not (url.startswith("http://") or url.startswith("https://")):
        raise ValueError("must start with http:// or https://")
    return url.rstrip("/")


class BrokerConnectionCreate(BaseModel):
    broker_name: str
    api_key: str = Field(min_length=1)  # encrypted before storage
    api_secret: str | None = None
    account_id: str | None = Field(default=None, max_length=120)
    server_url: str | None = None

    @field_validator("broker_name")
    @classmethod
    def _validate_broker_name(cls, value: str) -> str:
        return _check_broker_name(value)

    @field_validator("api_key")
    @classmethod
    def _trim_api_key(cls, value: str) -> str:
        key = value.strip()
        if not key:
            raise ValueError("must not be empty")
        return key

    @field_validator("server_url")
    @classmethod
    def _validate_server_url(cls, value: str | None) -> str | None:
        return _check_server_url(value)


class BrokerTestRequest(BrokerConnectionCreate):
    paper: bool = False


class BrokerConnectionRead(BaseModel):
    id: int
    broker_name: str
    account_id: str | None
    server_url: str | None
    is_active: bool
    last_sync: datetime | None
    created_at: datetime
    # api_key / api_secret are NEVER exposed

    model_config = {"from_attributes": True}


class SyncRequest(BaseModel):
    paper: bool = False


class SyncResponse(BaseModel):
    broker: str
    imported: int
    skipped_duplicates: int
    invalid: int
