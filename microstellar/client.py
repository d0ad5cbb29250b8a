# microstellar/client.py
"""MicroStellar: one call per ledger operation.

In Stellar lingo a private key is a seed (S...) and a public key is an
address (G...). Most calls take the signing `source_seed` first and an
optional TxOptions last:

    ms = MicroStellar("test")
    await ms.pay(source_seed, target_address, "3", NATIVE_ASSET,
                 opts().with_memo_text("for shelter"))

When extra signers are set in the options, `source_seed` may be a plain
address: only the extra signers sign.

The "fake" network never touches Horizon; it builds and signs real
envelopes and accepts them, which is what the tests run against.
"""

from typing import Optional

from loguru import logger
from stellar_sdk import Keypair
from stellar_sdk import Signer as SdkSigner
from stellar_sdk.operation import ChangeTrust, CreateAccount, Payment as PaymentOp, SetOptions

from .address_utils import source_address, valid_address, valid_address_or_seed
from .asset import Asset, NATIVE_ASSET
from .errors import InvalidAddressError, InvalidInputError, LoadError
from .fake_ledger import FAKE_PAYMENT_INTERVAL, FakeLedger
from .horizon import HorizonLedger, get_network_config
from .interfaces import ILedger
from .models import Account, KeyPair
from .options import TxOptions
from .transaction import DEFAULT_BASE_FEE, Transaction
from .watcher import PaymentWatcher

MAX_WEIGHT = 255


def _check_address_or_seed(value: str, what: str, action: str) -> None:
    if not valid_address_or_seed(value):
        raise InvalidAddressError(f"can't {action}: invalid {what} address or seed: {value}")


def _check_weight(value: int, what: str, action: str) -> None:
    if not isinstance(value, int) or not 0 <= value <= MAX_WEIGHT:
        raise InvalidInputError(f"can't {action}: invalid {what}: {value}")


class MicroStellar:
    """
    User handle to the Stellar network.

    Networks: "public", "test", "fake" and "custom" (custom needs
    horizon_url and passphrase). A ready ledger backend can be injected
    with `ledger`.
    """

    def __init__(self, network: str = "test", horizon_url: Optional[str] = None,
                 passphrase: Optional[str] = None, base_fee: int = DEFAULT_BASE_FEE,
                 fake_interval: float = FAKE_PAYMENT_INTERVAL, ledger: Optional[ILedger] = None):
        self.network = network
        self.base_fee = base_fee
        url, network_passphrase = get_network_config(network, horizon_url, passphrase)

        if ledger is not None:
            self.ledger = ledger
        elif network == "fake":
            self.ledger = FakeLedger(interval=fake_interval, network_passphrase=network_passphrase)
        else:
            self.ledger = HorizonLedger(url, network_passphrase)

    @property
    def fake(self) -> bool:
        return self.ledger.fake

    def new_tx(self, options: Optional[TxOptions] = None) -> Transaction:
        return Transaction(self.ledger, options, base_fee=self.base_fee)

    async def _run(self, action: str, source_seed: str, operation,
                   options: Optional[TxOptions]) -> Optional[dict]:
        tx = self.new_tx(options)
        await tx.build(source_seed, operation)
        tx.sign(source_seed)
        await tx.submit()
        if tx.err is not None:
            logger.debug(f"{action} failed: {tx.err}")
            raise tx.err
        return tx.response

    # === Keys and lookups ===

    def create_keypair(self) -> KeyPair:
        pair = Keypair.random()
        return KeyPair(seed=pair.secret, address=pair.public_key)

    async def resolve(self, federation_address: str) -> str:
        """Resolve name*domain to an account address."""
        address = await self.ledger.resolve_federation(federation_address)
        if not valid_address(address):
            raise InvalidAddressError(f"federation server returned a bad address: {address}")
        return address

    async def load_account(self, address: str) -> Account:
        """Load account information; seeds are converted to their address."""
        if not valid_address_or_seed(address):
            raise InvalidAddressError(f"can't load account: invalid address or seed: {address}")

        try:
            return await self.ledger.load_account(source_address(address))
        except Exception as ex:
            raise LoadError("could not load account", cause=ex) from ex

    # === Payments ===

    async def fund_account(self, source_seed: str, address_or_seed: str, amount: str,
                           options: Optional[TxOptions] = None) -> Optional[dict]:
        """Create a new account by funding it with lumens from source_seed."""
        _check_address_or_seed(source_seed, "source", "fund account")
        _check_address_or_seed(address_or_seed, "target", "fund account")

        try:
            operation = CreateAccount(destination=source_address(address_or_seed), starting_balance=amount)
        except (ValueError, TypeError, ArithmeticError) as ex:
            raise InvalidInputError(f"can't fund account: {ex}") from ex
        return await self._run("fund account", source_seed, operation, options)

    async def pay_native(self, source_seed: str, target_address: str, amount: str,
                         options: Optional[TxOptions] = None) -> Optional[dict]:
        return await self.pay(source_seed, target_address, amount, NATIVE_ASSET, options)

    async def pay(self, source_seed: str, target_address: str, amount: str, asset: Asset,
                  options: Optional[TxOptions] = None) -> Optional[dict]:
        """Pay amount of asset from source_seed to target_address."""
        asset.validate()
        _check_address_or_seed(source_seed, "source", "pay")
        if not valid_address_or_seed(target_address):
            raise InvalidAddressError(f"can't pay: invalid address: {target_address}")

        try:
            operation = PaymentOp(
                destination=source_address(target_address),
                asset=asset.to_sdk(),
                amount=amount,
            )
        except (ValueError, TypeError, ArithmeticError) as ex:
            raise InvalidInputError(f"can't pay: {ex}") from ex
        return await self._run("pay", source_seed, operation, options)

    # === Trust lines ===

    async def create_trust_line(self, source_seed: str, asset: Asset, limit: str = "",
                                options: Optional[TxOptions] = None) -> Optional[dict]:
        """Trust asset up to limit; an empty limit means no limit."""
        _check_address_or_seed(source_seed, "source", "create trust line")
        asset.validate()
        if asset.is_native:
            raise InvalidInputError("can't create trust line: native asset needs no trust line")

        try:
            operation = ChangeTrust(asset=asset.to_sdk(), limit=limit or None)
        except (ValueError, TypeError, ArithmeticError) as ex:
            raise InvalidInputError(f"can't create trust line: {ex}") from ex
        return await self._run("create trust line", source_seed, operation, options)

    async def remove_trust_line(self, source_seed: str, asset: Asset,
                                options: Optional[TxOptions] = None) -> Optional[dict]:
        _check_address_or_seed(source_seed, "source", "remove trust line")
        asset.validate()
        if asset.is_native:
            raise InvalidInputError("can't remove trust line: native asset has no trust line")

        operation = ChangeTrust(asset=asset.to_sdk(), limit="0")
        return await self._run("remove trust line", source_seed, operation, options)

    # === Signers and thresholds ===

    async def set_master_weight(self, source_seed: str, weight: int,
                                options: Optional[TxOptions] = None) -> Optional[dict]:
        _check_address_or_seed(source_seed, "source", "set master weight")
        _check_weight(weight, "weight", "set master weight")

        operation = SetOptions(master_weight=weight)
        return await self._run("set master weight", source_seed, operation, options)

    async def add_signer(self, source_seed: str, signer_address: str, signer_weight: int,
                         options: Optional[TxOptions] = None) -> Optional[dict]:
        _check_address_or_seed(source_seed, "source", "add signer")
        _check_address_or_seed(signer_address, "signer", "add signer")
        _check_weight(signer_weight, "signer weight", "add signer")

        signer = SdkSigner.ed25519_public_key(source_address(signer_address), signer_weight)
        return await self._run("add signer", source_seed, SetOptions(signer=signer), options)

    async def remove_signer(self, source_seed: str, signer_address: str,
                            options: Optional[TxOptions] = None) -> Optional[dict]:
        _check_address_or_seed(source_seed, "source", "remove signer")
        _check_address_or_seed(signer_address, "signer", "remove signer")

        signer = SdkSigner.ed25519_public_key(source_address(signer_address), 0)
        return await self._run("remove signer", source_seed, SetOptions(signer=signer), options)

    async def set_thresholds(self, source_seed: str, low: int, medium: int, high: int,
                             options: Optional[TxOptions] = None) -> Optional[dict]:
        _check_address_or_seed(source_seed, "source", "set thresholds")
        for name, value in (("low", low), ("medium", medium), ("high", high)):
            _check_weight(value, f"{name} threshold", "set thresholds")

        operation = SetOptions(low_threshold=low, med_threshold=medium, high_threshold=high)
        return await self._run("set thresholds", source_seed, operation, options)

    # === Streaming ===

    async def watch_payments(self, address: str, options: Optional[TxOptions] = None) -> PaymentWatcher:
        """
        Watch the ledger for payments to and from address.

        Use TxOptions.with_cursor to resume from a feed position and
        TxOptions.with_context to tie the watcher to a parent event.
        """
        if not valid_address(address):
            raise InvalidAddressError(f"can't watch payments, invalid address: {address}")

        options = options or TxOptions()
        stream = self.ledger.stream_payments(address, options.cursor)
        logger.debug(f"watching payments for {address}")
        return PaymentWatcher(stream, context=options.context)
