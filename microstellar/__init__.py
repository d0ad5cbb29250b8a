"""
Easy to use client for the Stellar network.

This package is organized by responsibility:

- address_utils: Address and seed validation
- asset: Asset value type
- errors: Error types and error_string()
- models: Payment, Account and KeyPair snapshots
- options: Immutable per-transaction options
- transaction: The build -> sign -> submit pipeline
- watcher: Cancellable payment subscription
- horizon: Live Horizon ledger backend
- fake_ledger: In-process ledger for the "fake" network
- client: The MicroStellar facade
"""

from .address_utils import (
    address_from_seed,
    is_federation_address,
    source_address,
    valid_address,
    valid_address_or_seed,
    valid_seed,
)
from .asset import (
    NATIVE_ASSET,
    Asset,
    AssetType,
    infer_asset_type,
    new_asset,
)
from .client import MicroStellar
from .errors import (
    BuildError,
    InvalidAddressError,
    InvalidAssetError,
    InvalidInputError,
    InvalidStateError,
    LoadError,
    MicroStellarError,
    PipelineError,
    RemoteError,
    SignError,
    StreamError,
    error_string,
)
from .fake_ledger import FakeLedger
from .horizon import HorizonLedger
from .models import Account, Balance, KeyPair, Payment
from .options import TxOptions, opts
from .transaction import Transaction, TxState
from .watcher import PaymentWatcher

__all__ = [
    "Account",
    "Asset",
    "AssetType",
    "Balance",
    "BuildError",
    "FakeLedger",
    "HorizonLedger",
    "InvalidAddressError",
    "InvalidAssetError",
    "InvalidInputError",
    "InvalidStateError",
    "KeyPair",
    "LoadError",
    "MicroStellar",
    "MicroStellarError",
    "NATIVE_ASSET",
    "Payment",
    "PaymentWatcher",
    "PipelineError",
    "RemoteError",
    "SignError",
    "StreamError",
    "Transaction",
    "TxOptions",
    "TxState",
    "address_from_seed",
    "error_string",
    "infer_asset_type",
    "is_federation_address",
    "new_asset",
    "opts",
    "source_address",
    "valid_address",
    "valid_address_or_seed",
    "valid_seed",
]
