"""Scroll position port and the new-message follow behaviour.

The message list is rendered bottom-up, so offset ``0`` is the newest
message and ``max_scroll_extent`` is the top of the loaded history.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional, Protocol

from chatkit.models.message import Message

if TYPE_CHECKING:
    from chatkit.state.session import ChatSession


class ScrollPort(Protocol):
    @property
    def has_clients(self) -> bool: ...

    @property
    def pixels(self) -> float: ...

    @property
    def max_scroll_extent(self) -> float: ...

    def jump_to(self, offset: float) -> None: ...

    def animate_to(self, offset: float) -> None: ...


class ViewportScroll:
    """In-memory scroll position used by headless sessions and tests."""

    def __init__(self, *, pixels: float = 0.0, max_scroll_extent: float = 0.0, attached: bool = True) -> None:
        self.pixels = pixels
        self.max_scroll_extent = max_scroll_extent
        self.attached = attached
        self.history: list[tuple[str, float]] = []

    @property
    def has_clients(self) -> bool:
        return self.attached

    def _clamp(self, offset: float) -> float:
        return max(0.0, min(offset, self.max_scroll_extent))

    def jump_to(self, offset: float) -> None:
        self.pixels = self._clamp(offset)
        self.history.append(("jump", self.pixels))

    def animate_to(self, offset: float) -> None:
        self.pixels = self._clamp(offset)
        self.history.append(("animate", self.pixels))


class NewMessageFollower:
    """Keeps the viewport pinned to new incoming messages.

    When a message arrives while the reader is near the bottom the viewport
    snaps to it; otherwise the message is held as ``pending`` so the UI can
    show a "new message" banner until the reader scrolls back down.
    """

    def __init__(
        self,
        session: "ChatSession",
        *,
        threshold: Optional[float] = None,
        on_change: Optional[Callable[[Optional[Message]], None]] = None,
    ) -> None:
        self._session = session
        self._threshold = threshold if threshold is not None else session.settings.new_message_scroll_threshold
        self._on_change = on_change
        self.pending: Optional[Message] = None
        self._awaiting_bottom = False
        self._unsubscribe = session.received_messages.subscribe(self._handle_received)

    def _set_pending(self, message: Optional[Message]) -> None:
        self.pending = message
        if self._on_change is not None:
            self._on_change(message)

    def _handle_received(self, message: Message) -> None:
        self._awaiting_bottom = True
        if self._session.is_at_bottom(self._threshold):
            self._set_pending(None)
            self._session.scroll_to_bottom()
        else:
            self._set_pending(message)

    def on_scroll(self) -> None:
        if not self._awaiting_bottom:
            return
        if self._session.is_at_bottom(self._threshold):
            self._session.scroll_to_bottom()
            self._set_pending(None)
            self._awaiting_bottom = False

    def near_top(self, margin: float = 20.0) -> bool:
        """True when the reader has scrolled to the oldest loaded message."""
        return self._session.is_near_top(margin)

    def close(self) -> None:
        self._unsubscribe()
