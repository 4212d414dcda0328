"""Message builders shared by the test modules."""

from __future__ import annotations

from chatkit.models.message import Message, TextElement


def stamp(minute: int = 0, second: int = 0, *, hour: int = 12, day: int = 5) -> str:
    """ISO timestamp on 2024-03-<day> at <hour>:<minute>:<second> UTC."""
    return f"2024-03-{day:02d}T{hour:02d}:{minute:02d}:{second:02d}+00:00"


def outgoing(message_id: str, minute: int = 0, second: int = 0, **kwargs) -> Message:
    return Message.outgoing(
        id=message_id,
        timestamp=stamp(minute, second, **kwargs),
        author="Me",
        content=[TextElement(message_id)],
    )


def incoming(message_id: str, minute: int = 0, second: int = 0, **kwargs) -> Message:
    return Message.incoming(
        id=message_id,
        timestamp=stamp(minute, second, **kwargs),
        author="Ada",
        content=[TextElement(message_id)],
    )


def ids(group) -> list[str]:
    return [message.id for message in group.messages]
