"""Dispatch results, failure records, and the chat error taxonomy."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from .group import MessageGroup
from .message import Message

DispatchCallback = Callable[[Message], Awaitable[Optional[Message]]]


class ChatError(Exception):
    """Base class for failures reported as data on a :class:`DispatchResult`."""

    def __init__(self, message_id: str, detail: str | None = None) -> None:
        self.message_id = message_id
        self.detail = detail
        super().__init__(detail or self.default_detail)

    default_detail = "Chat operation failed"


class DispatchFailure(ChatError):
    default_detail = "Failed to dispatch message"


class RetryWithoutRecord(ChatError):
    default_detail = "No failed dispatch recorded for message"


class EmptyFailedGroup(ChatError):
    default_detail = "Failed message group is already empty"


@dataclass(frozen=True, slots=True)
class DispatchResult:
    message: Message
    success: bool
    error: Optional[ChatError] = None

    @classmethod
    def ok(cls, message: Message) -> "DispatchResult":
        return cls(message=message, success=True)

    @classmethod
    def failed(cls, message: Message, error: ChatError) -> "DispatchResult":
        return cls(message=message, success=False, error=error)


@dataclass(frozen=True, slots=True)
class FailedMessageEntry:
    """Retry record for a message whose dispatch failed.

    ``group`` is only a lookup hint; the session revalidates it whenever the
    group layout changes.
    """

    message_id: str
    group: MessageGroup
    send_callback: DispatchCallback

    def copy_with(
        self,
        *,
        group: Optional[MessageGroup] = None,
        send_callback: Optional[DispatchCallback] = None,
    ) -> "FailedMessageEntry":
        changes = {}
        if group is not None:
            changes["group"] = group
        if send_callback is not None:
            changes["send_callback"] = send_callback
        return dataclasses.replace(self, **changes)
