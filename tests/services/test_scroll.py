import asyncio

from chatkit.core.config import ChatSettings
from chatkit.services.backend import ReplyingDispatcher
from chatkit.services.logging import StructuredLogger
from chatkit.services.scroll import NewMessageFollower, ViewportScroll
from chatkit.state.session import ChatSession
from factories import outgoing


def make_session(pixels=0.0, extent=1000.0):
    viewport = ViewportScroll(pixels=pixels, max_scroll_extent=extent)
    chat = ChatSession(logger=StructuredLogger("test-scroll"), scroll=viewport, settings=ChatSettings())
    return chat, viewport


def test_is_at_bottom_without_scroll_port_is_true(session):
    assert session.is_at_bottom() is True
    assert session.is_near_top() is False


def test_is_at_bottom_uses_threshold():
    chat, viewport = make_session(pixels=15.0)
    assert chat.is_at_bottom() is True
    assert chat.is_at_bottom(10.0) is False
    viewport.attached = False
    assert chat.is_at_bottom(10.0) is True


def test_scroll_to_bottom_jumps_then_animates():
    chat, viewport = make_session(pixels=400.0)
    chat.scroll_to_bottom()
    assert viewport.pixels == 0.0
    assert viewport.history == [("jump", 0.0), ("animate", 0.0)]


def test_viewport_resize_nudges_scroll_offset():
    chat, viewport = make_session(pixels=200.0)
    chat.handle_viewport_resize(600.0, 550.0)
    assert viewport.pixels == 250.0
    chat.handle_viewport_resize(550.0, 580.0)
    assert viewport.pixels == 220.0


def test_nudges_are_skipped_at_the_edges():
    chat, viewport = make_session(pixels=5.0)
    chat.scroll_up_by(50.0)
    assert viewport.pixels == 5.0
    viewport.pixels = 0.0
    chat.scroll_down_by(50.0)
    assert viewport.pixels == 0.0
    viewport.pixels = viewport.max_scroll_extent
    chat.scroll_down_by(50.0)
    assert viewport.pixels == viewport.max_scroll_extent
    assert chat.is_near_top() is True


def test_follower_snaps_to_new_message_when_near_bottom():
    chat, viewport = make_session(pixels=120.0)
    follower = NewMessageFollower(chat)

    asyncio.run(chat.dispatch_message(outgoing("q", 0), ReplyingDispatcher()))

    assert follower.pending is None
    assert viewport.pixels == 0.0


def test_follower_holds_banner_until_reader_returns():
    chat, viewport = make_session(pixels=800.0)
    changes = []
    follower = NewMessageFollower(chat, on_change=changes.append)

    asyncio.run(chat.dispatch_message(outgoing("q", 0), ReplyingDispatcher(author="Bot")))
    assert follower.pending is not None
    assert follower.pending.author == "Bot"
    assert viewport.pixels == 800.0

    follower.on_scroll()
    assert follower.pending is not None

    viewport.pixels = 100.0
    follower.on_scroll()
    assert follower.pending is None
    assert viewport.pixels == 0.0
    assert changes[-1] is None

    follower.close()
    assert chat.received_messages.subscriber_count == 0
