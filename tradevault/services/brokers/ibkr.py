"""Interactive Brokers placeholder.

IBKR history is only reachable through a locally running IB Gateway/TWS,
which this service cannot talk to. Users import IBKR Flex/CSV exports instead.
"""

from typing import Any

from tradevault.services.brokers.base import BrokerAdapter, BrokerCredentials
from tradevault.services.brokers.errors import UnsupportedBrokerError


class IBKRAdapter(BrokerAdapter):
    name = "ibkr"

    async def fetch(self, credentials: BrokerCredentials) -> list[dict[str, Any]]:
        raise UnsupportedBrokerError(
            "IBKR requires IB Gateway running locally. Use CSV export instead for now."
        )
