# Visual clusters of consecutive same-direction messages.

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import List, Optional

from chatkit.core.timestamps import compare_timestamps

from .message import Message


def _compare_messages(a: Message, b: Message) -> int:
    if a.is_outgoing and b.is_outgoing:
        if a.is_failed and not b.is_failed:
            return 1
        if not a.is_failed and b.is_failed:
            return -1
    return compare_timestamps(a.timestamp, b.timestamp)


@dataclass(eq=False, slots=True)
class MessageGroup:
    """Ordered run of messages rendered together under one author.

    ``anchor_timestamp`` is the timestamp of the message that created the
    group and is never recomputed afterwards. Groups compare by identity.
    """

    author: str
    is_outgoing: bool
    anchor_timestamp: str
    messages: List[Message] = field(default_factory=list)

    @classmethod
    def from_message(cls, message: Message) -> "MessageGroup":
        return cls(
            author=message.author,
            is_outgoing=message.is_outgoing,
            anchor_timestamp=message.timestamp,
            messages=[message],
        )

    @property
    def first_message(self) -> Optional[Message]:
        return self.messages[0] if self.messages else None

    def index_of(self, message_id: str) -> Optional[int]:
        for idx, msg in enumerate(self.messages):
            if msg.id == message_id:
                return idx
        return None

    def contains(self, message_id: str) -> bool:
        return self.index_of(message_id) is not None

    def sort_messages(self) -> None:
        """Order by timestamp, keeping failed outgoing messages last."""
        self.messages.sort(key=functools.cmp_to_key(_compare_messages))
