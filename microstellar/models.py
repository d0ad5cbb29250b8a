# microstellar/models.py
"""Ledger snapshots: payments, accounts and key pairs."""

from dataclasses import dataclass, field
from typing import Any, Optional

from .asset import Asset, AssetType, NATIVE_ASSET


@dataclass(frozen=True)
class KeyPair:
    seed: str
    address: str


@dataclass(frozen=True)
class Payment:
    """
    One payment event from the ledger feed.

    Immutable snapshot. `raw` keeps the server record untouched for
    callers that need fields not mapped here.
    """
    from_account: str
    to_account: str
    amount: str
    asset_code: str = ""
    asset_issuer: str = ""
    asset_type: str = AssetType.NATIVE.value
    type: str = "payment"
    id: str = ""
    paging_token: str = ""
    created_at: Optional[str] = None
    transaction_hash: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def asset(self) -> Asset:
        if self.asset_type == AssetType.NATIVE.value:
            return NATIVE_ASSET
        return Asset(self.asset_code, self.asset_issuer, AssetType(self.asset_type))

    @classmethod
    def from_horizon(cls, record: dict[str, Any]) -> "Payment":
        """
        Convert a Horizon payments-endpoint record.

        create_account records have no from/to/amount, they are mapped
        from funder/account/starting_balance as a native payment.
        """
        op_type = record.get("type", "payment")
        if op_type == "create_account":
            return cls(
                from_account=record.get("funder", ""),
                to_account=record.get("account", ""),
                amount=record.get("starting_balance", "0"),
                type=op_type,
                id=str(record.get("id", "")),
                paging_token=str(record.get("paging_token", "")),
                created_at=record.get("created_at"),
                transaction_hash=record.get("transaction_hash"),
                raw=dict(record),
            )

        if op_type == "account_merge":
            return cls(
                from_account=record.get("account", ""),
                to_account=record.get("into", ""),
                amount=record.get("amount", "0"),
                type=op_type,
                id=str(record.get("id", "")),
                paging_token=str(record.get("paging_token", "")),
                created_at=record.get("created_at"),
                transaction_hash=record.get("transaction_hash"),
                raw=dict(record),
            )

        return cls(
            from_account=record.get("from", ""),
            to_account=record.get("to", ""),
            amount=record.get("amount", "0"),
            asset_code=record.get("asset_code", ""),
            asset_issuer=record.get("asset_issuer", ""),
            asset_type=record.get("asset_type", AssetType.NATIVE.value),
            type=op_type,
            id=str(record.get("id", "")),
            paging_token=str(record.get("paging_token", "")),
            created_at=record.get("created_at"),
            transaction_hash=record.get("transaction_hash"),
            raw=dict(record),
        )


@dataclass(frozen=True)
class Balance:
    asset: Asset
    amount: str
    limit: Optional[str] = None


@dataclass(frozen=True)
class Signer:
    public_key: str
    weight: int


@dataclass(frozen=True)
class Thresholds:
    low: int = 0
    medium: int = 0
    high: int = 0


@dataclass(frozen=True)
class Account:
    """Account state snapshot."""
    address: str
    sequence: int = 0
    balances: tuple[Balance, ...] = ()
    signers: tuple[Signer, ...] = ()
    thresholds: Thresholds = Thresholds()
    flags: dict[str, bool] = field(default_factory=dict, compare=False)
    home_domain: str = ""

    @property
    def native_balance(self) -> str:
        return self.get_balance(NATIVE_ASSET)

    def get_balance(self, asset: Asset) -> str:
        """Balance for asset, "0" if the account holds no trustline for it."""
        for balance in self.balances:
            if balance.asset == asset:
                return balance.amount
        return "0"

    @property
    def master_weight(self) -> int:
        for signer in self.signers:
            if signer.public_key == self.address:
                return signer.weight
        return 0

    @classmethod
    def default(cls, address: str) -> "Account":
        """Synthetic account used by the fake network."""
        return cls(
            address=address,
            sequence=0,
            balances=(Balance(NATIVE_ASSET, "0"),),
            signers=(Signer(address, 1),),
        )

    @classmethod
    def from_horizon(cls, record: dict[str, Any]) -> "Account":
        balances = tuple(
            Balance(
                asset=Asset.from_horizon(b),
                amount=b.get("balance", "0"),
                limit=b.get("limit"),
            )
            for b in record.get("balances", [])
            if b.get("asset_type") != "liquidity_pool_shares"
        )
        signers = tuple(
            Signer(public_key=s.get("key", ""), weight=int(s.get("weight", 0)))
            for s in record.get("signers", [])
        )
        thresholds = record.get("thresholds", {})
        return cls(
            address=record.get("account_id") or record.get("id", ""),
            sequence=int(record.get("sequence", 0)),
            balances=balances,
            signers=signers,
            thresholds=Thresholds(
                low=int(thresholds.get("low_threshold", 0)),
                medium=int(thresholds.get("med_threshold", 0)),
                high=int(thresholds.get("high_threshold", 0)),
            ),
            flags=dict(record.get("flags", {})),
            home_domain=record.get("home_domain", "") or "",
        )
