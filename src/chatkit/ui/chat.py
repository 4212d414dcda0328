# UI components rendering a chat session.

from __future__ import annotations

from typing import Callable, Optional

import solara
import solara.lab

from chatkit.core.timestamps import utcnow_iso
from chatkit.models import message as message_models
from chatkit.models.dispatch import DispatchCallback
from chatkit.models.group import MessageGroup
from chatkit.services.scroll import NewMessageFollower, ScrollPort
from chatkit.state.session import ChatSession

from . import layout

SENDER_BUBBLE_COLOR = "#F4F4F4"
RECEIVER_BUBBLE_COLOR = "#E9EEFF"


@solara.component
def ElementView(element: message_models.MessageElement):
    """Render one content element from whatever its ``render`` returns."""

    rendered = element.render()
    if isinstance(rendered, str):
        solara.Markdown(rendered)
    elif isinstance(rendered, dict) and rendered.get("src"):
        solara.Image(rendered["src"], width="100%")
    elif isinstance(rendered, dict) and rendered.get("url"):
        solara.Markdown(f"[{rendered.get('name') or rendered['url']}]({rendered['url']})")
    else:
        solara.Text(str(rendered))


@solara.component
def MessageBubble(message: message_models.Message, group: MessageGroup, session: ChatSession):
    def delete():
        session.remove_message_from_group(group, message)

    def retry():
        session.submit_retry(message)

    style = {"width": "100%"}
    if message.display_width:
        style["maxWidth"] = f"{message.display_width}px"

    with solara.Column(classes=["chat-bubble-wrapper"], style={"gap": "0.25rem"}):
        with solara.lab.ChatMessage(
            user=message.is_outgoing,
            name=message.author,
            color=SENDER_BUBBLE_COLOR if message.is_outgoing else RECEIVER_BUBBLE_COLOR,
            avatar=False,
            notch=True,
            classes=["chat-bubble"],
            style=style,
        ):
            for element in message.content:
                ElementView(element)
        if message.is_loading:
            solara.ProgressLinear(True)
        if message.is_failed:
            with solara.Row(justify="end", classes=["chat-bubble-actions"], style={"gap": "0.5rem"}):
                solara.Text("Not delivered", style={"color": "#B00020"})
                solara.Button("Retry", text=True, on_click=retry)
                solara.Button("Delete", text=True, on_click=delete)


@solara.component
def Profile(name: str):
    with solara.Column(align="center", style={"width": "56px"}):
        solara.Text(name[:1].upper() or "?", classes=["chat-avatar"])
        solara.Text(name, style={"fontSize": "14px"})


@solara.component
def MessageGroupView(row: layout.GroupRow, session: ChatSession):
    group = row.group
    if row.divider_label:
        with solara.Row(justify="center", classes=["chat-date-divider"]):
            solara.Text(row.divider_label, style={"color": "#565656", "fontWeight": "500"})
    else:
        solara.Div(style={"height": "24px"})

    with solara.Row(style={"alignItems": "flex-start", "gap": "12px"}):
        if row.profile_leading:
            Profile(group.author)
        with solara.Column(style={"flex": "1 1 auto", "gap": "8px"}):
            for message in group.messages:
                MessageBubble(message, group, session)
        if not row.profile_leading:
            Profile(group.author)


@solara.component
def NewMessageBanner(message: message_models.Message, on_click: Callable[[], None]):
    preview = " ".join(
        element.text for element in message.content if isinstance(element, message_models.TextElement)
    )
    with solara.Row(justify="center", classes=["chat-new-message"]):
        solara.Button(f"{message.author}: {preview[:48]}", outlined=True, on_click=on_click)


@solara.component
def ReadOnlyBanner():
    with solara.Row(justify="center"):
        solara.Text("Read Only", classes=["chat-read-only"], style={"fontSize": "12px"})


@solara.component
def ChatSurface(
    session: ChatSession,
    send_callback: DispatchCallback,
    author: str = "You",
    on_load_older: Optional[Callable[[], None]] = None,
    scroll: Optional[ScrollPort] = None,
    viewport_height: float = 560.0,
):
    """Message list, new-message banner, and composer bound to one session.

    ``scroll`` is the list's scroll position port; without one the list is
    treated as pinned to the newest message. Changing ``viewport_height``
    keeps the visible messages in place.
    """

    chat_state = session.state.use()
    pending, set_pending = solara.use_state(None, key="chat-pending-message")
    follower = solara.use_memo(lambda: NewMessageFollower(session, on_change=set_pending), [session])

    def cleanup_follower():
        return follower.close

    solara.use_effect(cleanup_follower, [follower])

    def bind_scroll():
        session.attach_scroll(scroll)

        def unbind():
            session.attach_scroll(None)

        return unbind

    solara.use_effect(bind_scroll, [scroll])

    previous_height = solara.use_ref(viewport_height)

    def follow_resize():
        if previous_height.current != viewport_height:
            session.handle_viewport_resize(previous_height.current, viewport_height)
            previous_height.current = viewport_height

    solara.use_effect(follow_resize, [viewport_height])
    # the viewport may have returned to the bottom since the last render
    solara.use_effect(follower.on_scroll, [chat_state.revision])

    def jump_latest():
        session.scroll_to_bottom()
        follower.on_scroll()
        set_pending(None)

    def send(text: str):
        text = text.strip()
        if not text:
            return
        message = message_models.Message.outgoing(
            timestamp=utcnow_iso(),
            author=author,
            content=[message_models.TextElement(text)],
        )
        session.submit_message(message, send_callback)

    rows = layout.build_rows(session, chat_state.groups)

    with solara.Column(classes=["chat-surface"], style={"height": "100%", "gap": "0.5rem"}):
        list_style = {"flex": "1 1 auto", "overflow": "auto", "height": f"{viewport_height}px"}
        with solara.Column(classes=["chat-message-list"], style=list_style):
            at_oldest = scroll is None or follower.near_top()
            if on_load_older is not None and rows and at_oldest:
                solara.Button("Load earlier messages", text=True, on_click=on_load_older)
            for row in rows:
                MessageGroupView(row, session)
        if pending is not None:
            NewMessageBanner(pending, on_click=jump_latest)
        if session.settings.read_only:
            ReadOnlyBanner()
        else:
            solara.lab.ChatInput(send_callback=send, disabled=chat_state.is_disposed)
