# microstellar/options.py
"""Per-transaction options.

TxOptions is an immutable builder: every `with_*` call returns a new
instance, so one value can be handed to a single transaction or watcher
without worrying about later mutation.

    options = opts().with_memo_text("rent").with_signer(seed)
"""

import asyncio
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Optional, Union

from .errors import InvalidInputError

MAX_MEMO_ID = 2 ** 64 - 1
MAX_MEMO_TEXT_BYTES = 28

# Receives the signed envelope XDR; a falsy result vetoes submission.
BeforeSubmitHandler = Callable[[str], Union[bool, Awaitable[bool]]]


@dataclass(frozen=True)
class TxOptions:
    memo_text: Optional[str] = None
    memo_id: Optional[int] = None
    signers: tuple[str, ...] = ()
    skip_signatures_flag: bool = False
    cursor: Optional[str] = None
    context: Optional[asyncio.Event] = None
    before_submit: Optional[BeforeSubmitHandler] = None
    timeout: Optional[int] = None
    base_fee: Optional[int] = None

    @property
    def has_memo(self) -> bool:
        return self.memo_text is not None or self.memo_id is not None

    def with_memo_text(self, text: str) -> "TxOptions":
        if len(text.encode("utf-8")) > MAX_MEMO_TEXT_BYTES:
            raise InvalidInputError(f"memo text too long: {text}")
        return replace(self, memo_text=text, memo_id=None)

    def with_memo_id(self, memo_id: int) -> "TxOptions":
        if not 0 <= memo_id <= MAX_MEMO_ID:
            raise InvalidInputError(f"bad memo id: {memo_id}")
        return replace(self, memo_id=memo_id, memo_text=None)

    def with_signer(self, seed: str) -> "TxOptions":
        """Add an extra signing seed; duplicates are ignored, order is kept."""
        if seed in self.signers:
            return self
        return replace(self, signers=self.signers + (seed,))

    def skip_signatures(self) -> "TxOptions":
        return replace(self, skip_signatures_flag=True)

    def with_cursor(self, cursor: str) -> "TxOptions":
        return replace(self, cursor=str(cursor))

    def with_context(self, event: asyncio.Event) -> "TxOptions":
        """Parent cancellation scope: setting the event stops the watcher."""
        return replace(self, context=event)

    def with_timeout(self, seconds: int) -> "TxOptions":
        return replace(self, timeout=seconds)

    def with_base_fee(self, stroops: int) -> "TxOptions":
        return replace(self, base_fee=stroops)

    def on_before_submit(self, handler: BeforeSubmitHandler) -> "TxOptions":
        return replace(self, before_submit=handler)


def opts() -> TxOptions:
    return TxOptions()
