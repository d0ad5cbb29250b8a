# microstellar/horizon.py
"""Live ledger backend talking to a Horizon server."""

from typing import AsyncIterator, Optional

from loguru import logger
from stellar_sdk import Network, TransactionEnvelope
from stellar_sdk.client.aiohttp_client import AiohttpClient
from stellar_sdk.sep.federation import resolve_stellar_address_async
from stellar_sdk.server_async import ServerAsync

from .models import Account, Payment


# ============ Stellar Network Configuration ============

PUBLIC_HORIZON_URL = "https://horizon.stellar.org"
TESTNET_HORIZON_URL = "https://horizon-testnet.stellar.org"

NETWORKS = {
    "public": (PUBLIC_HORIZON_URL, Network.PUBLIC_NETWORK_PASSPHRASE),
    "test": (TESTNET_HORIZON_URL, Network.TESTNET_NETWORK_PASSPHRASE),
    "fake": (None, Network.TESTNET_NETWORK_PASSPHRASE),
}


def get_network_config(network: str, horizon_url: Optional[str] = None,
                       passphrase: Optional[str] = None) -> tuple[Optional[str], str]:
    """
    Resolve the Horizon URL and passphrase for a network name.

    Args:
        network: "public", "test", "fake" or "custom"
        horizon_url: Overrides the default URL (required for "custom")
        passphrase: Overrides the default passphrase (required for "custom")

    Returns:
        (horizon_url, network_passphrase)
    """
    if network == "custom":
        if not horizon_url or not passphrase:
            raise ValueError("custom network needs both a horizon url and a passphrase")
        return horizon_url, passphrase

    if network not in NETWORKS:
        raise ValueError(f"unknown network: {network}")

    default_url, default_passphrase = NETWORKS[network]
    return horizon_url or default_url, passphrase or default_passphrase


class HorizonLedger:
    """Ledger service backed by Horizon through stellar_sdk's ServerAsync."""

    fake = False

    def __init__(self, horizon_url: str, network_passphrase: str):
        self.horizon_url = horizon_url
        self.network_passphrase = network_passphrase

    def _server(self) -> ServerAsync:
        return ServerAsync(horizon_url=self.horizon_url, client=AiohttpClient())

    async def submit(self, envelope: TransactionEnvelope) -> dict:
        async with self._server() as server:
            return await server.submit_transaction(envelope)

    async def load_account(self, address: str) -> Account:
        async with self._server() as server:
            record = await server.accounts().account_id(address).call()
        return Account.from_horizon(record)

    async def stream_payments(self, address: str, cursor: Optional[str] = None) -> AsyncIterator[Payment]:
        """
        Stream payments for address over server-sent events.

        Starts at cursor, or at the feed tip when no cursor is given.
        """
        async with self._server() as server:
            builder = server.payments().for_account(address).cursor(cursor or "now")
            logger.debug(f"streaming payments for {address} from {cursor or 'now'}")
            async for record in builder.stream():
                yield Payment.from_horizon(record)

    async def resolve_federation(self, name: str) -> str:
        record = await resolve_stellar_address_async(name)
        return record.account_id
