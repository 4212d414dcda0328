"""HTTP send callback built on httpx."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, Optional

import httpx

from chatkit.models.message import Direction, Message, TextElement

from .logging import StructuredLogger


def message_to_payload(message: Message) -> Dict[str, Any]:
    return {
        "id": message.id,
        "timestamp": message.timestamp,
        "author": message.author,
        "direction": message.direction.value,
        "content": [
            {"type": "text", "text": element.text}
            for element in message.content
            if isinstance(element, TextElement)
        ],
    }


def message_from_payload(payload: Dict[str, Any]) -> Message:
    """Decode a confirmed message; only text elements are carried over the wire."""

    direction = Direction(payload.get("direction", Direction.OUTGOING.value))
    content = [
        TextElement(str(item.get("text", "")))
        for item in payload.get("content", [])
        if isinstance(item, dict) and item.get("type") == "text"
    ]
    return Message(
        id=str(payload["id"]),
        timestamp=str(payload["timestamp"]),
        author=str(payload.get("author", "")),
        direction=direction,
        content=tuple(content),
    )


class HttpDispatcher:
    """POSTs each message as JSON and returns the confirmed message.

    Any HTTP error status, transport error, or undecodable body becomes
    ``None`` so the session records a failed dispatch. Requests go through a
    blocking ``httpx.Client`` on a worker thread; the client holds no event
    loop state, so sends scheduled on successive ``asyncio.run`` loops share
    its connection pool.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        logger: Optional[StructuredLogger] = None,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._endpoint = endpoint
        self._logger = logger or StructuredLogger("chatkit.transport", component="http-dispatcher")
        self._client = client or httpx.Client(timeout=timeout)

    async def __call__(self, message: Message) -> Optional[Message]:
        try:
            response = await asyncio.to_thread(self._client.post, self._endpoint, json=message_to_payload(message))
            response.raise_for_status()
        except httpx.HTTPStatusError as error:
            self._logger.warning(
                "transport.dispatch.rejected",
                message_id=message.id,
                status_code=error.response.status_code,
            )
            return None
        except httpx.HTTPError as error:
            self._logger.warning("transport.dispatch.unreachable", message_id=message.id, error=str(error))
            return None
        try:
            return message_from_payload(response.json())
        except (json.JSONDecodeError, KeyError, ValueError, TypeError) as error:
            self._logger.warning("transport.dispatch.undecodable", message_id=message.id, error=str(error))
            return None

    def close(self) -> None:
        self._client.close()
