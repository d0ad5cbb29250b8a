# microstellar/watcher.py
"""Background payment subscription exposed as an async iterator."""

import asyncio
from typing import AsyncIterator, Optional

from loguru import logger

from .errors import StreamError
from .models import Payment


class PaymentWatcher:
    """
    Owns one background task that copies a payment feed into a queue.

    Consume it with `async for payment in watcher`; the loop ends once
    the watcher is closed and the queue is drained. Then check `err`:
    None means the watcher was cancelled (or the feed ended) cleanly,
    a StreamError means the subscription broke.

    `cancel()` can be called any number of times, from anywhere, also
    after the watcher closed on its own.
    """

    def __init__(self, stream: AsyncIterator[Payment], context: Optional[asyncio.Event] = None,
                 maxsize: int = 1):
        self.err: Optional[StreamError] = None
        self._stream = stream
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = asyncio.Event()
        self._cancelled = False

        self._task = asyncio.create_task(self._run())
        self._task.add_done_callback(self._on_done)

        self._context_task: Optional[asyncio.Task] = None
        if context is not None:
            self._context_task = asyncio.create_task(self._follow_context(context))

    # === Producer ===

    async def _run(self) -> None:
        try:
            async for payment in self._stream:
                await self._queue.put(payment)
            logger.debug("payment stream ended")
        except asyncio.CancelledError:
            if not self._cancelled:
                raise
        except Exception as ex:
            logger.warning(f"payment stream disconnected: {ex}")
            self.err = StreamError("payment stream disconnected", cause=ex)
            self._cancelled = True
        finally:
            aclose = getattr(self._stream, "aclose", None)
            if aclose is not None:
                await aclose()

    def _on_done(self, _task: asyncio.Task) -> None:
        # Also fires when the task is cancelled before it ever ran.
        if self._context_task is not None:
            self._context_task.cancel()
        self._closed.set()

    async def _follow_context(self, context: asyncio.Event) -> None:
        await context.wait()
        logger.debug("parent context done, cancelling watcher")
        self.cancel()

    # === Control ===

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if not self._task.done():
            self._task.cancel()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    async def wait_closed(self) -> None:
        await self._closed.wait()

    async def aclose(self) -> None:
        self.cancel()
        await self.wait_closed()

    async def __aenter__(self) -> "PaymentWatcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # === Consumer ===

    def __aiter__(self) -> "PaymentWatcher":
        return self

    async def __anext__(self) -> Payment:
        while True:
            if not self._queue.empty():
                return self._queue.get_nowait()
            if self._closed.is_set():
                raise StopAsyncIteration

            getter = asyncio.ensure_future(self._queue.get())
            closer = asyncio.ensure_future(self._closed.wait())
            try:
                done, _ = await asyncio.wait({getter, closer}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                getter.cancel()
                closer.cancel()

            if getter in done:
                return getter.result()
