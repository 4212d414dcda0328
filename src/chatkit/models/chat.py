"""Reactive snapshot published by the chat session on every change."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .group import MessageGroup


@dataclass(slots=True)
class ChatSessionState:
    """Read-only view handed to the presentation layer.

    ``groups`` holds the live group objects; renderers must not mutate them.
    """

    groups: Tuple[MessageGroup, ...] = ()
    failed_message_ids: Tuple[str, ...] = ()
    is_collapsed: bool = False
    is_disposed: bool = False
    revision: int = 0

    def message_count(self) -> int:
        return sum(len(group.messages) for group in self.groups)
