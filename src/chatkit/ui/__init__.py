"""UI components and layout helpers for the chat session."""

from . import chat, layout

__all__ = ["chat", "layout"]
