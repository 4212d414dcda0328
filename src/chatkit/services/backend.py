# Mock dispatch backends for the demo page and tests.

from __future__ import annotations

import asyncio
from typing import Iterable, List, Optional, Protocol

from chatkit.core.timestamps import utcnow_iso
from chatkit.models import message as message_models


class MessageDispatcher(Protocol):
    """Anything awaitable as a send callback: returns the confirmed message or ``None``."""

    async def __call__(self, message: message_models.Message) -> Optional[message_models.Message]: ...


class EchoDispatcher:
    """Confirms every message unchanged after an optional delay."""

    def __init__(self, delay_seconds: float = 0.0):
        self.delay_seconds = delay_seconds
        self.calls: List[message_models.Message] = []

    async def __call__(self, message: message_models.Message) -> Optional[message_models.Message]:
        self.calls.append(message)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        return message.copy_with(is_loading=False, is_failed=False)


class FailingDispatcher:
    """Never confirms anything."""

    def __init__(self, delay_seconds: float = 0.0):
        self.delay_seconds = delay_seconds
        self.calls: List[message_models.Message] = []

    async def __call__(self, message: message_models.Message) -> Optional[message_models.Message]:
        self.calls.append(message)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        return None


class ScriptedDispatcher:
    """Plays back a fixed list of outcomes; ``True`` confirms, ``False`` fails."""

    def __init__(self, outcomes: Iterable[bool]):
        self._outcomes = list(outcomes)
        self.calls: List[message_models.Message] = []

    async def __call__(self, message: message_models.Message) -> Optional[message_models.Message]:
        self.calls.append(message)
        await asyncio.sleep(0)
        succeed = self._outcomes.pop(0) if self._outcomes else False
        return message.copy_with(is_loading=False, is_failed=False) if succeed else None


class ReplyingDispatcher:
    """Answers a send with an incoming reply, as some bot transports do."""

    def __init__(self, author: str = "Assistant", prefix: str = "Echo: "):
        self.author = author
        self.prefix = prefix

    async def __call__(self, message: message_models.Message) -> Optional[message_models.Message]:
        await asyncio.sleep(0)
        texts = [
            element.text for element in message.content if isinstance(element, message_models.TextElement)
        ]
        return message_models.Message.incoming(
            id=message_models.new_message_id(),
            timestamp=utcnow_iso(),
            author=self.author,
            content=[message_models.TextElement(f"{self.prefix}{' '.join(texts)}")],
        )
