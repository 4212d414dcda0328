"""Broadcast event streams used for dispatch results and received messages."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Generic, List, Optional, TypeVar

from .logging import StructuredLogger

T = TypeVar("T")

_CLOSED = object()


class Subscription(Generic[T]):
    """Async iterator over events published after it was created."""

    def __init__(self, stream: "EventStream[T]") -> None:
        self._stream = stream
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._done = False

    def _push(self, item: Any) -> None:
        self._queue.put_nowait(item)

    def cancel(self) -> None:
        if self._done:
            return
        self._done = True
        self._stream._drop(self)
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> "Subscription[T]":
        return self

    async def __anext__(self) -> T:
        item = await self._queue.get()
        if item is _CLOSED:
            self._done = True
            raise StopAsyncIteration
        return item


class EventStream(Generic[T]):
    """Multi-subscriber channel without replay.

    Every published event reaches the listeners registered at that moment.
    Listeners added later never see it. Once closed, publishing is ignored.
    """

    def __init__(self, name: str, logger: Optional[StructuredLogger] = None) -> None:
        self.name = name
        self._logger = logger
        self._listeners: List[Callable[[T], None]] = []
        self._subscriptions: List[Subscription[T]] = []
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners) + len(self._subscriptions)

    def subscribe(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Register a callback; returns a function that removes it."""

        if self._closed:
            return lambda: None
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def listen(self) -> Subscription[T]:
        subscription: Subscription[T] = Subscription(self)
        if self._closed:
            subscription._push(_CLOSED)
            return subscription
        self._subscriptions.append(subscription)
        return subscription

    def publish(self, event: T) -> bool:
        if self._closed:
            return False
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as error:  # noqa: BLE001
                if self._logger is not None:
                    self._logger.error("stream.listener.failed", stream=self.name, error=str(error))
        for subscription in list(self._subscriptions):
            subscription._push(event)
        return True

    def close(self) -> bool:
        if self._closed:
            return False
        self._closed = True
        self._listeners.clear()
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription._push(_CLOSED)
        return True

    def _drop(self, subscription: Subscription[T]) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
