# microstellar/transaction.py
"""Single-use build -> sign -> submit pipeline.

A Transaction records the first error it hits and skips every later
step, so `err` tells the caller which stage failed:

    tx = Transaction(ledger, options)
    await tx.build(source, Payment, destination=target, asset=asset, amount="10")
    tx.sign(seed)
    await tx.submit()
    if tx.err:
        ...

Retrying means building a new Transaction.
"""

import inspect
from enum import Enum
from typing import Any, Optional, Union

from loguru import logger
from stellar_sdk import Account as SdkAccount
from stellar_sdk import Keypair, TransactionBuilder, TransactionEnvelope
from stellar_sdk.exceptions import SdkError
from stellar_sdk.operation import Operation

from .address_utils import source_address, valid_address_or_seed, valid_seed
from .errors import (
    BuildError,
    InvalidStateError,
    LoadError,
    MicroStellarError,
    PipelineError,
    RemoteError,
    SignError,
)
from .interfaces import ILedger
from .options import TxOptions

DEFAULT_BASE_FEE = 100
DEFAULT_TIMEOUT = 180


class TxState(Enum):
    UNBUILT = "unbuilt"
    BUILT = "built"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    VETOED = "vetoed"


class Transaction:
    def __init__(self, ledger: ILedger, options: Optional[TxOptions] = None,
                 base_fee: int = DEFAULT_BASE_FEE):
        self.ledger = ledger
        self.options = options or TxOptions()
        self.base_fee = self.options.base_fee or base_fee
        self.state = TxState.UNBUILT
        self.envelope: Optional[TransactionEnvelope] = None
        self.signed_by: list[str] = []
        self.response: Optional[dict] = None
        self.err: Optional[MicroStellarError] = None
        self.source: Optional[str] = None

    def _fail(self, error: MicroStellarError) -> None:
        logger.debug(f"transaction failed at {error.stage}: {error}")
        self.err = error
        self.state = TxState.FAILED

    async def build(self, source: str, operation: Union[Operation, type], **kwargs: Any) -> None:
        """
        Build the envelope for one operation from source.

        `operation` is either a stellar_sdk operation instance or an
        operation class, called with kwargs. Constructor failures
        (bad amount, bad destination...) are recorded as BuildError.
        """
        if self.err is not None:
            return
        if self.state != TxState.UNBUILT:
            self._fail(InvalidStateError("transaction already built", stage="build"))
            return
        if not valid_address_or_seed(source):
            self._fail(BuildError(f"invalid source address or seed: {source}"))
            return

        self.source = source_address(source)

        try:
            account = await self.ledger.load_account(self.source)
        except Exception as ex:
            self._fail(LoadError("could not load source account", cause=ex))
            return

        try:
            if isinstance(operation, Operation):
                op = operation
            else:
                op = operation(**kwargs)

            builder = TransactionBuilder(
                source_account=SdkAccount(self.source, account.sequence),
                network_passphrase=self.ledger.network_passphrase,
                base_fee=self.base_fee,
            )
            builder.set_timeout(self.options.timeout or DEFAULT_TIMEOUT)
            if self.options.memo_text is not None:
                builder.add_text_memo(self.options.memo_text)
            elif self.options.memo_id is not None:
                builder.add_id_memo(self.options.memo_id)
            builder.append_operation(op)

            envelope = builder.build()
            # Serializing validates amounts and keys that the builder only stores.
            envelope.to_xdr()
        except (SdkError, ValueError, TypeError, ArithmeticError) as ex:
            self._fail(BuildError(f"can't build transaction: {ex}"))
            return

        self.envelope = envelope
        self.state = TxState.BUILT
        logger.debug(f"built {type(op).__name__} from {self.source}")

    def _sign_with(self, seed: str) -> None:
        keypair = Keypair.from_secret(seed)
        self.envelope.sign(keypair)
        self.signed_by.append(keypair.public_key)

    def sign(self, seed: str) -> None:
        """
        Sign with seed and every extra signer from the options.

        When extra signers are set the primary value may be an address,
        in which case only the extra signers sign.
        """
        if self.err is not None:
            return
        if self.state == TxState.UNBUILT:
            self._fail(SignError("can't sign: transaction not built"))
            return
        if self.state != TxState.BUILT:
            self._fail(InvalidStateError(f"can't sign in state {self.state.value}", stage="sign"))
            return

        if self.options.skip_signatures_flag:
            logger.debug("skipping signatures")
            self.state = TxState.SIGNED
            return

        try:
            if valid_seed(seed):
                self._sign_with(seed)
            elif not self.options.signers:
                self._fail(SignError(f"can't sign with address, need a seed: {seed}"))
                return

            for signer in self.options.signers:
                if not valid_seed(signer):
                    self._fail(SignError(f"signer is not a seed: {signer}"))
                    return
                self._sign_with(signer)
        except (SdkError, ValueError) as ex:
            self._fail(SignError(f"can't sign transaction: {ex}"))
            return

        self.state = TxState.SIGNED
        logger.debug(f"signed by {len(self.signed_by)} key(s)")

    async def submit(self) -> None:
        """
        Submit the envelope, after the before_submit hook (if any).

        A hook returning a falsy value stops here with no error and no
        network call; the transaction is then VETOED and can not be
        submitted again. A hook that raises fails the transaction.
        """
        if self.err is not None:
            return
        if self.state != TxState.SIGNED:
            self._fail(InvalidStateError(f"can't submit in state {self.state.value}", stage="submit"))
            return

        xdr = self.envelope.to_xdr()
        handler = self.options.before_submit
        if handler is not None:
            try:
                proceed = handler(xdr)
                if inspect.isawaitable(proceed):
                    proceed = await proceed
            except Exception as ex:
                error = PipelineError(f"before_submit hook failed: {ex}", stage="submit")
                error.__cause__ = ex
                self._fail(error)
                return
            if not proceed:
                logger.debug("submission vetoed by before_submit hook")
                self.state = TxState.VETOED
                return

        self.state = TxState.SUBMITTED
        try:
            self.response = await self.ledger.submit(self.envelope)
        except Exception as ex:
            self._fail(RemoteError("transaction submission failed", cause=ex))
            return

        self.state = TxState.SUCCEEDED
        logger.debug(f"submitted {self.response.get('hash') if self.response else ''}")

    def raise_for_error(self) -> None:
        if self.err is not None:
            raise self.err

    @property
    def hash(self) -> Optional[str]:
        if self.envelope is None:
            return None
        return self.envelope.hash_hex()
