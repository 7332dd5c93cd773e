"""Async message queue for decoupled core-store communication."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Awaitable, Callable

from loguru import logger

from frame_commander.bus.events import StorePush, StoreRequest

PushHandler = Callable[[StorePush], Awaitable[None] | None]


class MessageBus:
    """Two one-way queues: requests to the store and pushes back to the core.

    Publishing never blocks (queues are unbounded), so the synchronous core
    can send from inside a listener.
    """

    def __init__(self) -> None:
        self.requests: asyncio.Queue[StoreRequest] = asyncio.Queue()
        self.pushes: asyncio.Queue[StorePush] = asyncio.Queue()
        self._push_subscribers: dict[type, list[PushHandler]] = defaultdict(list)
        self._running = False

    def publish_request(self, msg: StoreRequest) -> None:
        self.requests.put_nowait(msg)

    async def consume_request(self) -> StoreRequest:
        return await self.requests.get()

    def publish_push(self, msg: StorePush) -> None:
        self.pushes.put_nowait(msg)

    def subscribe_push(self, push_type: type[StorePush], handler: PushHandler) -> None:
        self._push_subscribers[push_type].append(handler)

    async def deliver(self, msg: StorePush) -> None:
        """Hand one push to its subscribers."""
        handlers = self._push_subscribers.get(type(msg), [])
        if not handlers:
            logger.debug("No subscriber for {}", type(msg).__name__)
        for handler in handlers:
            try:
                result = handler(msg)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                logger.error("Error dispatching {} for {}: {}", type(msg).__name__, msg.path, exc)

    async def dispatch_pushes(self) -> None:
        """Deliver pushes to subscribers until stopped."""
        self._running = True
        while self._running:
            try:
                msg = await asyncio.wait_for(self.pushes.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            await self.deliver(msg)

    def stop(self) -> None:
        self._running = False

    @property
    def pending_requests(self) -> int:
        return self.requests.qsize()

    @property
    def pending_pushes(self) -> int:
        return self.pushes.qsize()
