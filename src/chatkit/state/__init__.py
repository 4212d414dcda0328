"""Reactive state controllers for the chat component."""

from .session import ChatSession

__all__ = ["ChatSession"]
