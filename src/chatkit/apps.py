"""
Demo chat page wiring a session to a send backend.

Run with ``solara run chatkit.apps``.
"""

from __future__ import annotations

import datetime as _dt
from typing import List

import solara

from chatkit.core.config import load_settings
from chatkit.core.timestamps import parse_timestamp
from chatkit.models import message as message_models
from chatkit.services.backend import ReplyingDispatcher
from chatkit.services.logging import StructuredLogger
from chatkit.services.scroll import ViewportScroll
from chatkit.services.transport import HttpDispatcher
from chatkit.state import ChatSession
from chatkit.ui import chat as chat_view

VIEWPORT_HEIGHTS = {"Tall": 560.0, "Compact": 380.0}


def build_dispatcher(settings, logger: StructuredLogger):
    if settings.dispatch_endpoint:
        return HttpDispatcher(settings.dispatch_endpoint, logger=logger, timeout=settings.dispatch_timeout)
    return ReplyingDispatcher()


def older_history(session: ChatSession, count: int = 4, step_minutes: int = 7) -> List[message_models.Message]:
    """Demo messages older than everything loaded, newest first.

    Directions alternate starting with the assistant, spaced ``step_minutes``
    apart, so each one lands in its own group when prepended.
    """

    groups = session.groups
    oldest = groups[0].first_message if groups else None
    anchor = parse_timestamp(oldest.timestamp) if oldest is not None else None
    if anchor is None:
        anchor = _dt.datetime.now(_dt.timezone.utc).replace(tzinfo=None)

    history = []
    for step in range(1, count + 1):
        stamp = (anchor - _dt.timedelta(minutes=step * step_minutes)).replace(tzinfo=_dt.timezone.utc).isoformat()
        text = [message_models.TextElement(f"Earlier message #{step}")]
        if step % 2:
            history.append(
                message_models.Message.incoming(
                    id=message_models.new_message_id(), timestamp=stamp, author="Assistant", content=text
                )
            )
        else:
            history.append(message_models.Message.outgoing(timestamp=stamp, author="You", content=text))
    return history


@solara.component
def Page():
    settings = solara.use_memo(load_settings, [])
    logger = solara.use_memo(lambda: StructuredLogger("chatkit.app"), [])
    session = solara.use_memo(lambda: ChatSession(settings=settings, logger=logger), [])
    dispatcher = solara.use_memo(lambda: build_dispatcher(settings, logger), [])
    scroll = solara.use_memo(ViewportScroll, [])
    height_label, set_height_label = solara.use_state("Tall")

    def teardown():
        def release():
            session.dispose()
            if isinstance(dispatcher, HttpDispatcher):
                dispatcher.close()

        return release

    solara.use_effect(teardown, [])

    def load_older():
        session.append_messages(older_history(session))

    solara.ToggleButtonsSingle(height_label, values=list(VIEWPORT_HEIGHTS), on_value=set_height_label)
    chat_view.ChatSurface(
        session,
        dispatcher,
        on_load_older=load_older,
        scroll=scroll,
        viewport_height=VIEWPORT_HEIGHTS[height_label],
    )
