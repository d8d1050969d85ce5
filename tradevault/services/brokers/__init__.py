"""Broker adapters, looked up by broker name."""

from types import MappingProxyType

import httpx

from tradevault.services.brokers.alpaca import AlpacaAdapter
from tradevault.services.brokers.base import BrokerAdapter, BrokerCredentials
from tradevault.services.brokers.binance import BinanceAdapter
from tradevault.services.brokers.errors import (
    BrokerConfigurationError,
    BrokerError,
    BrokerRequestError,
    UnsupportedBrokerError,
)
from tradevault.services.brokers.ibkr import IBKRAdapter
from tradevault.services.brokers.metatrader import MetaTraderAdapter

ADAPTERS = MappingProxyType({
    AlpacaAdapter.name: AlpacaAdapter,
    BinanceAdapter.name: BinanceAdapter,
    MetaTraderAdapter.name: MetaTraderAdapter,
    IBKRAdapter.name: IBKRAdapter,
})

SUPPORTED_BROKERS = tuple(ADAPTERS)


def get_adapter(broker_name: str, client: httpx.AsyncClient | None = None) -> BrokerAdapter:
    """Instantiate the adapter for a broker name (case-insensitive)."""
    adapter_cls = ADAPTERS.get((broker_name or "").strip().lower())
    if adapter_cls is None:
        raise UnsupportedBrokerError(f"Unsupported broker: {broker_name}")
    return adapter_cls(client=client)


__all__ = [
    "ADAPTERS",
    "SUPPORTED_BROKERS",
    "get_adapter",
    "BrokerAdapter",
    "BrokerCredentials",
    "BrokerError",
    "BrokerConfigurationError",
    "BrokerRequestError",
    "UnsupportedBrokerError",
]
