"""MetaTrader adapter — deals from a broker-hosted REST gateway.

Unlike the other brokers, MetaTrader reports realized profit per deal, so
its `profit` is stored as the trade's pnl instead of being recomputed.
"""

from typing import Any

from tradevault.config import settings
from tradevault.services.brokers.base import BrokerAdapter, BrokerCredentials, iso_from_millis
from tradevault.services.brokers.errors import BrokerConfigurationError

DEAL_TYPE_BUY = 0


class MetaTraderAdapter(BrokerAdapter):
    name = "metatrader"
    reports_realized_pnl = True

    async def fetch(self, credentials: BrokerCredentials) -> list[dict[str, Any]]:
        if not credentials.server_url:
            raise BrokerConfigurationError("MetaTrader requires a server_url from your broker")

        deals = await self._get_json(
            f"{credentials.server_url.rstrip('/')}/api/mt/deals",
            headers={"Authorization": f"Bearer {credentials.api_key}"},
            params={"account": credentials.account_id, "limit": settings.broker_fetch_limit},
        )
        return self._map_rows(deals, _deal_to_row)


def _deal_to_row(deal: dict[str, Any]) -> dict[str, Any]:
    executed_at = iso_from_millis(deal["time"] * 1000)
    return {
        "symbol": deal.get("symbol"),
        "asset_type": "forex",
        "direction": "long" if deal.get("type") == DEAL_TYPE_BUY else "short",
        "entry_price": deal.get("price"),
        "exit_price": deal.get("price"),
        "quantity": deal.get("volume"),
        "entry_date": executed_at,
        "exit_date": executed_at,
        "commission": deal.get("commission") or 0,
        "broker": "metatrader",
        "broker_trade_id": str(deal["deal"]),
        "pnl": deal.get("profit"),
    }
