# Message and content element contracts used by the chat session.

from __future__ import annotations

import dataclasses
import enum
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Protocol, Tuple, runtime_checkable


def new_message_id() -> str:
    """Generate a stable unique identifier for messages."""
    return str(uuid.uuid4())


class Direction(str, enum.Enum):
    OUTGOING = "outgoing"
    INCOMING = "incoming"


@runtime_checkable
class MessageElement(Protocol):
    """Opaque renderable fragment of a message.

    The session never looks inside an element; only the presentation layer
    calls :meth:`render`.
    """

    def render(self) -> Any: ...

    def copy_with(self) -> "MessageElement": ...


@dataclass(frozen=True, slots=True)
class TextElement:
    text: str

    def render(self) -> str:
        return self.text

    def copy_with(self, text: Optional[str] = None) -> "TextElement":
        return TextElement(text=self.text if text is None else text)


@dataclass(frozen=True, slots=True)
class ImageElement:
    src: str
    alt: str = ""

    def render(self) -> dict[str, str]:
        return {"src": self.src, "alt": self.alt}

    def copy_with(self, src: Optional[str] = None, alt: Optional[str] = None) -> "ImageElement":
        return ImageElement(src=src or self.src, alt=self.alt if alt is None else alt)


@dataclass(frozen=True, slots=True)
class FileElement:
    name: str
    url: str
    size_bytes: Optional[int] = None

    def render(self) -> dict[str, Any]:
        return {"name": self.name, "url": self.url, "size_bytes": self.size_bytes}

    def copy_with(self, name: Optional[str] = None, url: Optional[str] = None) -> "FileElement":
        return FileElement(name=name or self.name, url=url or self.url, size_bytes=self.size_bytes)


@dataclass(frozen=True, slots=True)
class Message:
    """Chat message tagged with its direction.

    Instances are never mutated. Every state change goes through
    :meth:`copy_with`, which keeps ``id``, ``author`` and ``direction``.
    """

    id: str
    timestamp: str
    author: str
    direction: Direction
    content: Tuple[MessageElement, ...] = field(default_factory=tuple)
    is_loading: bool = False
    is_failed: bool = False
    display_width: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("message id must not be empty")
        if not isinstance(self.content, tuple):
            object.__setattr__(self, "content", tuple(self.content))
        if self.direction is Direction.INCOMING and self.is_failed:
            object.__setattr__(self, "is_failed", False)

    @property
    def is_outgoing(self) -> bool:
        return self.direction is Direction.OUTGOING

    @classmethod
    def outgoing(
        cls,
        *,
        timestamp: str,
        author: str,
        content: Iterable[MessageElement] = (),
        id: Optional[str] = None,  # noqa: A002
        is_loading: bool = False,
        is_failed: bool = False,
        display_width: Optional[float] = None,
    ) -> "Message":
        return cls(
            id=id or new_message_id(),
            timestamp=timestamp,
            author=author,
            direction=Direction.OUTGOING,
            content=tuple(content),
            is_loading=is_loading,
            is_failed=is_failed,
            display_width=display_width,
        )

    @classmethod
    def incoming(
        cls,
        *,
        id: str,  # noqa: A002
        timestamp: str,
        author: str,
        content: Iterable[MessageElement] = (),
        is_loading: bool = False,
        display_width: Optional[float] = None,
    ) -> "Message":
        return cls(
            id=id,
            timestamp=timestamp,
            author=author,
            direction=Direction.INCOMING,
            content=tuple(content),
            is_loading=is_loading,
            display_width=display_width,
        )

    def copy_with(
        self,
        *,
        timestamp: Optional[str] = None,
        content: Optional[Iterable[MessageElement]] = None,
        is_loading: Optional[bool] = None,
        is_failed: Optional[bool] = None,
        display_width: Optional[float] = None,
    ) -> "Message":
        changes: dict[str, Any] = {}
        if timestamp is not None:
            changes["timestamp"] = timestamp
        if content is not None:
            changes["content"] = tuple(content)
        if is_loading is not None:
            changes["is_loading"] = is_loading
        if is_failed is not None:
            changes["is_failed"] = is_failed
        if display_width is not None:
            changes["display_width"] = display_width
        return dataclasses.replace(self, **changes)
