"""Binance adapter — signed request against the spot myTrades endpoint."""

import hashlib
import hmac
import time
from typing import Any
from urllib.parse import urlencode

from tradevault.config import settings
from tradevault.services.brokers.base import BrokerAdapter, BrokerCredentials, iso_from_millis


def sign_query(query_string: str, secret: str) -> str:
    """HMAC-SHA256 hex signature Binance expects over the exact query string."""
    return hmac.new(secret.encode(), query_string.encode(), hashlib.sha256).hexdigest()


class BinanceAdapter(BrokerAdapter):
    name = "binance"

    async def fetch(self, credentials: BrokerCredentials) -> list[dict[str, Any]]:
        secret = self._require_secret(credentials)
        params: dict[str, Any] = {
            "timestamp": int(time.time() * 1000),
            "limit": settings.broker_fetch_limit,
        }
        # signature must be appended after the signed fields, in the same order
        params["signature"] = sign_query(urlencode(params), secret)

        fills = await self._get_json(
            f"{settings.binance_url}/api/v3/myTrades",
            headers={"X-MBX-APIKEY": credentials.api_key},
            params=params,
        )
        return self._map_rows(fills, _fill_to_row)


def _fill_to_row(fill: dict[str, Any]) -> dict[str, Any]:
    executed_at = iso_from_millis(fill["time"])
    return {
        "symbol": fill.get("symbol"),
        "asset_type": "crypto",
        "direction": "long" if fill.get("isBuyer") else "short",
        "entry_price": float(fill["price"]),
        "exit_price": float(fill["price"]),
        "quantity": float(fill["qty"]),
        "entry_date": executed_at,
        "exit_date": executed_at,
        "commission": float(fill.get("commission") or 0),
        "broker": "binance",
        "broker_trade_id": str(fill["id"]),
        "pnl": 0,
    }
