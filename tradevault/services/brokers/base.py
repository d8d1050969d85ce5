"""Common plumbing for broker adapters.

An adapter turns one broker's trade/order history into raw rows the import
pipeline understands. Adapters never touch the database.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx

from tradevault.config import settings
from tradevault.services.brokers.errors import BrokerConfigurationError, BrokerRequestError

logger = logging.getLogger(__name__)


@dataclass
class BrokerCredentials:
    api_key: str
    api_secret: str | None = None
    account_id: str | None = None
    server_url: str | None = None
    paper: bool = False


class BrokerAdapter(ABC):
    """Fetches closed trades from one broker as raw pipeline rows."""

    name: str = ""
    # True when the broker reports realized pnl we should store as-is
    reports_realized_pnl: bool = False

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client

    @abstractmethod
    async def fetch(self, credentials: BrokerCredentials) -> list[dict[str, Any]]:
        """Return the broker's recent fills/deals as raw rows."""

    def _require_secret(self, credentials: BrokerCredentials) -> str:
        if not credentials.api_secret:
            raise BrokerConfigurationError(f"{self.name} requires an api_secret")
        return credentials.api_secret

    async def _get_json(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """GET a JSON document, mapping transport/HTTP failures to BrokerRequestError."""
        try:
            if self._client is not None:
                response = await self._client.get(url, headers=headers, params=params)
            else:
                async with httpx.AsyncClient(timeout=settings.broker_timeout_seconds) as client:
                    response = await client.get(url, headers=headers, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(f"{self.name} returned HTTP {status}: {e.response.text[:200]}")
            raise BrokerRequestError(
                f"{self.name} rejected the request (HTTP {status})", status_code=status
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"{self.name} request failed: {e}")
            raise BrokerRequestError(f"Could not reach {self.name}: {e}") from e
        except ValueError as e:
            raise BrokerRequestError(f"{self.name} returned invalid JSON") from e

    def _map_rows(
        self,
        payload: Any,
        mapper: Callable[[dict[str, Any]], dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Apply `mapper` to every item of a list payload.

        A payload that is not a list of the expected objects raises
        BrokerRequestError instead of leaking KeyError/TypeError to callers.
        """
        if not isinstance(payload, list):
            raise BrokerRequestError(f"{self.name} returned an unexpected payload")
        try:
            return [mapper(item) for item in payload]
        except (KeyError, TypeError, ValueError, AttributeError, OverflowError) as e:
            logger.warning(f"{self.name} payload could not be mapped: {e!r}")
            raise BrokerRequestError(f"{self.name} returned an unexpected payload") from e


def iso_from_millis(millis: int | float) -> str:
    """Epoch milliseconds -> ISO-8601 UTC string, e.g. 2025-01-10T14:30:00.000Z."""
    moment = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
