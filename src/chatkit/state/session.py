"""Chat session controller: grouping, optimistic dispatch, and failure repair."""

from __future__ import annotations

import asyncio
import functools
import uuid
from typing import Dict, Iterable, List, Optional, Tuple

import solara

from chatkit.core.config import ChatSettings
from chatkit.core.timestamps import compare_timestamps, is_same_day, is_same_minute, parse_timestamp
from chatkit.models import chat as chat_models
from chatkit.models.dispatch import (
    DispatchCallback,
    DispatchFailure,
    DispatchResult,
    EmptyFailedGroup,
    FailedMessageEntry,
    RetryWithoutRecord,
)
from chatkit.models.group import MessageGroup
from chatkit.models.message import Message
from chatkit.services.logging import StructuredLogger
from chatkit.services.scroll import ScrollPort
from chatkit.services.streams import EventStream
from chatkit.services.telemetry import telemetry_span


class ChatSession:
    """Authoritative in-memory model of one conversation.

    Messages are clustered into :class:`MessageGroup` runs by direction and
    calendar minute. Outgoing messages go through an optimistic dispatch:
    they are shown as loading, then replaced by the confirmed message or
    turned into a failed placeholder that can be retried with the original
    send callback. Failed placeholders are kept at the tail of the
    conversation by a repair pass that runs after every insertion.

    Every change bumps ``state`` (a ``solara.Reactive``) so components
    re-render. Dispatch outcomes and messages that arrive as the result of a
    send are published on two broadcast streams.
    """

    def __init__(
        self,
        *,
        settings: Optional[ChatSettings] = None,
        logger: Optional[StructuredLogger] = None,
        scroll: Optional[ScrollPort] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.settings = settings or ChatSettings()
        self.logger = logger or StructuredLogger("chatkit.session")
        self.session_id = session_id or uuid.uuid4().hex[:8]
        self._groups: List[MessageGroup] = []
        self._failed_entries: Dict[str, FailedMessageEntry] = {}
        self._is_collapsed = False
        self._is_disposed = False
        self._scroll = scroll
        self.dispatch_results: EventStream[DispatchResult] = EventStream("dispatch_results", self.logger)
        self.received_messages: EventStream[Message] = EventStream("received_messages", self.logger)
        self.state: solara.Reactive[chat_models.ChatSessionState] = solara.reactive(
            chat_models.ChatSessionState()
        )

    # ------------------------------------------------------------------ read accessors
    @property
    def groups(self) -> List[MessageGroup]:
        return list(self._groups)

    @property
    def failed_entries(self) -> Dict[str, FailedMessageEntry]:
        return dict(self._failed_entries)

    @property
    def is_collapsed(self) -> bool:
        return self._is_collapsed

    @property
    def is_disposed(self) -> bool:
        return self._is_disposed

    def contains_message_id(self, message_id: str) -> bool:
        return any(group.contains(message_id) for group in self._groups)

    def is_date_changed(self, message: Message, other: Message) -> bool:
        """True when the two messages fall on different calendar days."""
        this_date = parse_timestamp(message.timestamp)
        other_date = parse_timestamp(other.timestamp)
        if this_date is None or other_date is None:
            return False
        return not is_same_day(this_date, other_date)

    def set_collapsed(self, value: bool) -> None:
        if self._is_disposed:
            return
        self._is_collapsed = value
        self._notify()

    # ------------------------------------------------------------------ notifications
    def _notify(self) -> None:
        if self._is_disposed:
            return
        groups = tuple(self._groups)
        failed_ids = tuple(self._failed_entries)
        collapsed = self._is_collapsed

        def updater(prev: chat_models.ChatSessionState):
            return {
                "groups": groups,
                "failed_message_ids": failed_ids,
                "is_collapsed": collapsed,
                "revision": prev.revision + 1,
            }

        self.state.update(updater)

    # ------------------------------------------------------------------ bulk loading
    def set_messages(self, messages: Iterable[Message]) -> None:
        """Replace the conversation, inserting messages oldest first."""

        if self._is_disposed:
            return
        self._groups.clear()
        self._failed_entries.clear()
        ordered = sorted(
            messages,
            key=functools.cmp_to_key(lambda a, b: compare_timestamps(a.timestamp, b.timestamp)),
        )
        for message in ordered:
            self.add_message(message)
        if not ordered:
            self._notify()
        self.logger.info("chat.messages.loaded", session_id=self.session_id, count=len(ordered))

    def append_messages(self, messages: Iterable[Message]) -> None:
        """Prepend older history.

        Each message is placed in front of everything loaded so far, so the
        caller supplies the batch newest first.
        """

        if self._is_disposed:
            return
        count = 0
        for message in messages:
            first = self._groups[0] if self._groups else None
            if first is not None and not self._starts_new_group(first, message):
                first.messages.insert(0, message)
            else:
                self._groups.insert(0, MessageGroup.from_message(message))
            count += 1
        self.logger.debug("chat.history.prepended", session_id=self.session_id, count=count)
        self._notify()

    # ------------------------------------------------------------------ grouping
    def _starts_new_group(self, group: MessageGroup, message: Message) -> bool:
        if group.is_outgoing != message.is_outgoing:
            return True
        anchor = parse_timestamp(group.anchor_timestamp)
        stamp = parse_timestamp(message.timestamp)
        if anchor is None or stamp is None:
            self.logger.warning(
                "chat.timestamp.unparseable",
                message_id=message.id,
                timestamp=message.timestamp,
                anchor=group.anchor_timestamp,
            )
            return True
        return not is_same_minute(anchor, stamp)

    def add_message(self, message: Message) -> MessageGroup:
        """Insert a message at the tail and return the group that now holds it."""

        if self._is_disposed:
            return MessageGroup.from_message(message)

        if not self._groups or self._starts_new_group(self._groups[-1], message):
            group = MessageGroup.from_message(message)
            self._groups.append(group)
        else:
            group = self._groups[-1]
            group.messages.append(message)

        entry = self._failed_entries.get(message.id)
        if entry is not None:
            self._failed_entries[message.id] = entry.copy_with(group=group)

        if self._failed_entries:
            self._repair_failed_messages()

        self.logger.debug(
            "chat.message.added",
            message_id=message.id,
            outgoing=message.is_outgoing,
            failed=message.is_failed,
            group_count=len(self._groups),
        )
        self._notify()
        return self._group_holding(message) or group

    def _group_holding(self, message: Message) -> Optional[MessageGroup]:
        for group in reversed(self._groups):
            if any(candidate is message for candidate in group.messages):
                return group
        return None

    @staticmethod
    def _position_of(group: MessageGroup, message: Message) -> Optional[int]:
        for idx, candidate in enumerate(group.messages):
            if candidate is message:
                return idx
        return None

    def _drop_group_if_empty(self, group: MessageGroup) -> None:
        if group.messages:
            return
        for idx, candidate in enumerate(self._groups):
            if candidate is group:
                del self._groups[idx]
                return

    # ------------------------------------------------------------------ failure repair
    def _locate_failed(self, entry: FailedMessageEntry) -> Tuple[Optional[MessageGroup], Optional[int]]:
        recorded = entry.group
        if any(group is recorded for group in self._groups):
            idx = recorded.index_of(entry.message_id)
            if idx is not None:
                return recorded, idx
        for group in self._groups:
            idx = group.index_of(entry.message_id)
            if idx is not None:
                return group, idx
        return None, None

    def _repair_failed_messages(self) -> None:
        """Move every failed placeholder to the tail of the conversation."""

        for failed_id in list(self._failed_entries):
            entry = self._failed_entries.get(failed_id)
            if entry is None:
                continue
            group, idx = self._locate_failed(entry)
            if group is None or idx is None:
                self._failed_entries.pop(failed_id, None)
                self.logger.warning("chat.repair.orphaned", message_id=failed_id)
                continue

            failed_message = group.messages.pop(idx)
            self._drop_group_if_empty(group)

            if self._groups and self._groups[-1].is_outgoing == failed_message.is_outgoing:
                target = self._groups[-1]
                target.messages.append(failed_message)
            else:
                target = MessageGroup.from_message(failed_message)
                self._groups.append(target)
            self._failed_entries[failed_id] = entry.copy_with(group=target)

    # ------------------------------------------------------------------ dispatch
    async def _invoke(self, send_callback: DispatchCallback, message: Message) -> Optional[Message]:
        try:
            return await send_callback(message)
        except Exception as error:  # noqa: BLE001
            self.logger.error("chat.dispatch.callback_error", message_id=message.id, error=str(error))
            return None

    async def dispatch_message(self, message: Message, send_callback: DispatchCallback) -> DispatchResult:
        """Send ``message`` optimistically and settle it once the callback returns."""

        if self._is_disposed:
            return DispatchResult.failed(message, DispatchFailure(message.id, "Session is disposed"))

        optimistic = message.copy_with(is_loading=True, is_failed=False)
        group = self.add_message(optimistic)
        index = self._position_of(group, optimistic)

        with telemetry_span(self.logger, "chat.dispatch", message_id=message.id) as span:
            confirmed = await self._invoke(send_callback, message)
            if confirmed is not None:
                result = self._settle_success(message, optimistic, group, index, confirmed)
                span.mark("sent")
            else:
                result = self._settle_failure(message, optimistic, group, index, send_callback)
                span.mark("failed")

        if not self._is_disposed:
            self.dispatch_results.publish(result)
        return result

    def _resolve_position(
        self, group: MessageGroup, optimistic: Message, index: Optional[int]
    ) -> Optional[int]:
        position = self._position_of(group, optimistic)
        if position is not None:
            return position
        if index is not None and index < len(group.messages) and group.messages[index].id == optimistic.id:
            return index
        return None

    def _settle_success(
        self,
        message: Message,
        optimistic: Message,
        group: MessageGroup,
        index: Optional[int],
        confirmed: Message,
    ) -> DispatchResult:
        result = DispatchResult.ok(message)
        if self._is_disposed:
            return result

        position = self._resolve_position(group, optimistic, index)
        if position is None:
            self.logger.warning("chat.dispatch.orphaned", message_id=message.id)
        else:
            group.messages[position] = confirmed
            group.sort_messages()

        if confirmed.direction is not message.direction:
            self.logger.warning(
                "chat.dispatch.direction_changed",
                message_id=message.id,
                confirmed_id=confirmed.id,
                direction=confirmed.direction.value,
            )
        if not confirmed.is_outgoing:
            self.received_messages.publish(confirmed)

        self.logger.info("chat.dispatch.sent", message_id=message.id)
        self._notify()
        return result

    def _settle_failure(
        self,
        message: Message,
        optimistic: Message,
        group: MessageGroup,
        index: Optional[int],
        send_callback: DispatchCallback,
    ) -> DispatchResult:
        result = DispatchResult.failed(message, DispatchFailure(message.id))
        if self._is_disposed:
            return result

        position = self._resolve_position(group, optimistic, index)
        if position is not None:
            self.remove_message_at(group, position)

        self._failed_entries[message.id] = FailedMessageEntry(
            message_id=message.id,
            group=group,
            send_callback=send_callback,
        )
        self.add_message(message.copy_with(is_loading=False, is_failed=True))
        self.logger.warning("chat.dispatch.failed", message_id=message.id)
        return result

    async def retry_message(self, message: Message) -> DispatchResult:
        """Re-send a failed message with the callback of its first dispatch."""

        if self._is_disposed:
            return DispatchResult.failed(message, RetryWithoutRecord(message.id, "Session is disposed"))

        entry = self._failed_entries.get(message.id)
        if entry is None:
            result = DispatchResult.failed(message, RetryWithoutRecord(message.id))
            self.logger.warning("chat.retry.unknown", message_id=message.id)
            self.dispatch_results.publish(result)
            return result

        failed_group = entry.group
        if not failed_group.messages:
            result = DispatchResult.failed(message, EmptyFailedGroup(message.id))
            self.logger.error("chat.retry.empty_group", message_id=message.id)
            self.dispatch_results.publish(result)
            return result

        if failed_group.contains(message.id):
            self.remove_message_from_group(failed_group, message)
        else:
            self.remove_message_everywhere(message)

        self.logger.info("chat.retry.started", message_id=message.id)
        result = await self.dispatch_message(
            message.copy_with(is_loading=False, is_failed=False),
            entry.send_callback,
        )
        if result.success:
            self._failed_entries.pop(message.id, None)
        return result

    # ------------------------------------------------------------------ fire-and-forget helpers
    def _spawn(self, coroutine):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(coroutine)
            return None
        return loop.create_task(coroutine)

    def submit_message(self, message: Message, send_callback: DispatchCallback):
        """Schedule :meth:`dispatch_message` from synchronous UI handlers."""
        return self._spawn(self.dispatch_message(message, send_callback))

    def submit_retry(self, message: Message):
        return self._spawn(self.retry_message(message))

    # ------------------------------------------------------------------ removal
    def remove_message_everywhere(self, message: Message) -> None:
        if self._is_disposed:
            return
        for group in self._groups:
            group.messages[:] = [candidate for candidate in group.messages if candidate.id != message.id]
        self._groups[:] = [group for group in self._groups if group.messages]
        self._failed_entries.pop(message.id, None)
        self.logger.debug("chat.message.removed", message_id=message.id, scope="everywhere")
        self._notify()

    def remove_message_from_group(self, group: MessageGroup, message: Message) -> None:
        if self._is_disposed:
            return
        position = self._position_of(group, message)
        if position is None:
            position = group.index_of(message.id)
        if position is not None:
            del group.messages[position]
        self._drop_group_if_empty(group)
        self._failed_entries.pop(message.id, None)
        self.logger.debug("chat.message.removed", message_id=message.id, scope="group")
        self._notify()

    def remove_message_at(self, group: MessageGroup, index: int) -> Optional[Message]:
        if self._is_disposed:
            return None
        if not 0 <= index < len(group.messages):
            self.logger.warning("chat.message.remove_out_of_range", index=index, size=len(group.messages))
            return None
        removed = group.messages.pop(index)
        self._drop_group_if_empty(group)
        self._failed_entries.pop(removed.id, None)
        self.logger.debug("chat.message.removed", message_id=removed.id, scope="index")
        self._notify()
        return removed

    # ------------------------------------------------------------------ scrolling
    def attach_scroll(self, scroll: Optional[ScrollPort]) -> None:
        self._scroll = scroll

    def _scroll_ready(self) -> bool:
        return self._scroll is not None and self._scroll.has_clients and not self._is_disposed

    def is_at_bottom(self, threshold: Optional[float] = None) -> bool:
        if not self._scroll_ready():
            return True
        limit = self.settings.bottom_threshold if threshold is None else threshold
        return self._scroll.pixels <= limit

    def is_near_top(self, margin: float = 20.0) -> bool:
        if not self._scroll_ready():
            return False
        return self._scroll.pixels >= self._scroll.max_scroll_extent - margin

    def scroll_to_bottom(self) -> None:
        if not self._scroll_ready():
            return
        self._scroll.jump_to(0.0)
        self._scroll.animate_to(0.0)

    def scroll_up_by(self, offset: float) -> None:
        if not self._scroll_ready():
            return
        current = self._scroll.pixels
        if current < self.settings.resize_nudge_threshold:
            return
        self._scroll.jump_to(current + offset)

    def scroll_down_by(self, offset: float) -> None:
        if not self._scroll_ready():
            return
        current = self._scroll.pixels
        if current <= 0 or current >= self._scroll.max_scroll_extent:
            return
        self._scroll.jump_to(current - offset)

    def handle_viewport_resize(self, old_height: float, new_height: float) -> None:
        """Keep the visible messages in place when the list viewport changes height."""
        if new_height < old_height:
            self.scroll_up_by(old_height - new_height)
        elif new_height > old_height:
            self.scroll_down_by(new_height - old_height)

    # ------------------------------------------------------------------ lifecycle
    def dispose(self) -> None:
        if self._is_disposed:
            return
        self._is_disposed = True
        self._groups.clear()
        self._failed_entries.clear()
        self.dispatch_results.close()
        self.received_messages.close()
        self.state.update(
            lambda prev: {
                "groups": (),
                "failed_message_ids": (),
                "is_disposed": True,
                "revision": prev.revision + 1,
            }
        )
        self.logger.info("chat.session.disposed", session_id=self.session_id)
