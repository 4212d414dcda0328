"""
Reactive chat-session state for Solara chat components.

Exports the data models, the session controller, and the broadcast streams
used by the presentation layer.
"""

from .core.config import ChatAlignment, ChatSettings, load_settings
from .models import (
    ChatSessionState,
    Direction,
    DispatchResult,
    FailedMessageEntry,
    Message,
    MessageGroup,
    TextElement,
)
from .state import ChatSession

__all__ = [
    "ChatAlignment",
    "ChatSettings",
    "load_settings",
    "ChatSessionState",
    "Direction",
    "DispatchResult",
    "FailedMessageEntry",
    "Message",
    "MessageGroup",
    "TextElement",
    "ChatSession",
]
