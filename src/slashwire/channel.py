"""One-shot response channel between a handler task and its dispatcher.

The handler side may resolve the channel at most once. The dispatcher side
receives that single item, then closes the channel; closing wakes every
`closed()` waiter so handler code can sequence work after the reply has
been handed to the web transport.
"""

from __future__ import annotations

import asyncio
from typing import Generic, Optional, TypeVar

from .errors import HandlerNoResponseError

T = TypeVar("T")


class ResponseChannelClosed(Exception):
    """The channel was already resolved or closed by the consumer."""


class ResponseChannel(Generic[T]):
    def __init__(self, *, description: str = "Command handler") -> None:
        self._description = description
        self._future: Optional[asyncio.Future[T]] = None
        self._closed = asyncio.Event()

    def _get_future(self) -> asyncio.Future[T]:
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
        return self._future

    def send(self, item: T) -> None:
        future = self._get_future()
        if self._closed.is_set() or future.done():
            raise ResponseChannelClosed()
        future.set_result(item)

    def producer_finished(self) -> None:
        """Mark the producer as gone; a pending `recv` fails."""
        future = self._get_future()
        if not future.done():
            future.set_exception(
                HandlerNoResponseError(
                    f"{self._description} finished without responding"
                )
            )

    async def recv(self) -> T:
        return await self._get_future()

    def close(self) -> None:
        future = self._get_future()
        if not future.done():
            future.cancel()
        elif not future.cancelled():
            # Mark a stored exception as retrieved.
            future.exception()
        self._closed.set()

    def is_closed(self) -> bool:
        return self._closed.is_set()

    async def closed(self) -> None:
        await self._closed.wait()
