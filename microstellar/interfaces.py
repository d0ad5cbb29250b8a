# microstellar/interfaces.py
"""Ledger service interface definition."""

from typing import AsyncIterator, Optional, Protocol

from stellar_sdk import TransactionEnvelope

from .models import Account, Payment


class ILedger(Protocol):
    """Interface for the remote ledger service."""

    fake: bool
    network_passphrase: str

    async def submit(self, envelope: TransactionEnvelope) -> dict:
        """Submit a signed transaction envelope."""
        ...

    async def load_account(self, address: str) -> Account:
        """Load account state."""
        ...

    def stream_payments(self, address: str, cursor: Optional[str] = None) -> AsyncIterator[Payment]:
        """Yield payments to and from address in feed order until cancelled."""
        ...

    async def resolve_federation(self, name: str) -> str:
        """Resolve a federation address (name*domain) to an account ID."""
        ...
