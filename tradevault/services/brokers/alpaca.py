"""Alpaca adapter — closed orders from the v2 orders endpoint."""

from typing import Any

from tradevault.config import settings
from tradevault.services.brokers.base import BrokerAdapter, BrokerCredentials


class AlpacaAdapter(BrokerAdapter):
    name = "alpaca"

    async def fetch(self, credentials: BrokerCredentials) -> list[dict[str, Any]]:
        secret = self._require_secret(credentials)
        base_url = settings.alpaca_paper_url if credentials.paper else settings.alpaca_live_url
        orders = await self._get_json(
            f"{base_url}/v2/orders",
            headers={"APCA-API-KEY-ID": credentials.api_key, "APCA-API-SECRET-KEY": secret},
            params={"status": "closed", "limit": settings.broker_fetch_limit, "direction": "desc"},
        )
        rows = self._map_rows(orders, _order_to_row)
        return [row for row in rows if row["exit_date"]]


def _order_to_row(order: dict[str, Any]) -> dict[str, Any]:
    # Orders are single fills: entry and exit share the fill price and pnl is
    # left for the pipeline to derive.
    return {
        "symbol": order.get("symbol"),
        "asset_type": "crypto" if order.get("asset_class") == "crypto" else "stock",
        "direction": "long" if order.get("side") == "buy" else "short",
        "entry_price": float(order.get("filled_avg_price") or order.get("limit_price") or 0),
        "exit_price": float(order.get("filled_avg_price") or 0),
        "quantity": float(order.get("filled_qty") or 0),
        "entry_date": order.get("submitted_at"),
        "exit_date": order.get("filled_at"),
        "commission": 0,
        "broker": "alpaca",
        "broker_trade_id": order.get("id"),
        "strategy": "Alpaca Import",
        "notes": f"Type: {order.get('order_type')}",
        "pnl": 0,
    }
