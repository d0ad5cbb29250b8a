# microstellar/fake_ledger.py
"""Deterministic in-process ledger used by the "fake" network."""

import asyncio
from typing import AsyncIterator, Optional

from loguru import logger
from stellar_sdk import Network, TransactionEnvelope

from .models import Account, Payment

FAKE_PAYMENT_INTERVAL = 0.2


def fake_payment() -> Payment:
    return Payment(
        from_account="FAKESOURCE",
        to_account="FAKEDEST",
        type="payment",
        asset_code="QBIT",
        asset_type="credit_alphanum4",
        amount="5",
    )


class FakeLedger:
    """
    Ledger service that never touches the network.

    Transactions are accepted as-is, accounts are synthetic and the
    payment feed emits a fixed payment every `interval` seconds.
    Federation names can be registered with `add_federation`.
    """

    fake = True

    def __init__(self, interval: float = FAKE_PAYMENT_INTERVAL,
                 network_passphrase: str = Network.TESTNET_NETWORK_PASSPHRASE):
        self.interval = interval
        self.network_passphrase = network_passphrase
        self._federation: dict[str, str] = {}
        self._submitted: list[str] = []

    async def submit(self, envelope: TransactionEnvelope) -> dict:
        xdr = envelope.to_xdr()
        self._submitted.append(xdr)
        logger.debug(f"fake submit #{len(self._submitted)}")
        return {
            "hash": envelope.hash_hex(),
            "successful": True,
            "ledger": len(self._submitted),
            "envelope_xdr": xdr,
        }

    async def load_account(self, address: str) -> Account:
        return Account.default(address)

    async def stream_payments(self, address: str, cursor: Optional[str] = None) -> AsyncIterator[Payment]:
        while True:
            yield fake_payment()
            await asyncio.sleep(self.interval)

    async def resolve_federation(self, name: str) -> str:
        if name not in self._federation:
            raise LookupError(f"federation address not found: {name}")
        return self._federation[name]

    def add_federation(self, name: str, address: str) -> None:
        self._federation[name] = address

    @property
    def submitted(self) -> list[str]:
        return self._submitted.copy()
