"""Data contracts used across the chat session."""

from .chat import ChatSessionState
from .dispatch import (
    ChatError,
    DispatchCallback,
    DispatchFailure,
    DispatchResult,
    EmptyFailedGroup,
    FailedMessageEntry,
    RetryWithoutRecord,
)
from .group import MessageGroup
from .message import (
    Direction,
    FileElement,
    ImageElement,
    Message,
    MessageElement,
    TextElement,
    new_message_id,
)

__all__ = [
    "ChatSessionState",
    "ChatError",
    "DispatchCallback",
    "DispatchFailure",
    "DispatchResult",
    "EmptyFailedGroup",
    "FailedMessageEntry",
    "RetryWithoutRecord",
    "MessageGroup",
    "Direction",
    "FileElement",
    "ImageElement",
    "Message",
    "MessageElement",
    "TextElement",
    "new_message_id",
]
