from chatkit.apps import build_dispatcher, older_history
from chatkit.core.config import ChatSettings
from chatkit.models.message import Direction
from chatkit.services.backend import ReplyingDispatcher
from chatkit.services.transport import HttpDispatcher
from factories import ids, outgoing, stamp


def test_older_history_is_newest_first_and_precedes_loaded_messages(session):
    session.add_message(outgoing("a", 30))

    history = older_history(session)

    assert [message.timestamp for message in history] == [stamp(23), stamp(16), stamp(9), stamp(2)]
    assert [message.direction for message in history] == [
        Direction.INCOMING,
        Direction.OUTGOING,
        Direction.INCOMING,
        Direction.OUTGOING,
    ]


def test_loading_older_history_prepends_groups(session):
    session.add_message(outgoing("a", 30))
    history = older_history(session)

    session.append_messages(history)

    groups = session.groups
    assert len(groups) == 5
    assert [group.first_message.timestamp for group in groups] == [stamp(2), stamp(9), stamp(16), stamp(23), stamp(30)]
    assert ids(groups[-1]) == ["a"]


def test_older_history_on_empty_session(session):
    history = older_history(session, count=2)
    assert len(history) == 2
    assert history[0].timestamp > history[1].timestamp


def test_dispatcher_follows_endpoint_setting(logger):
    assert isinstance(build_dispatcher(ChatSettings(), logger), ReplyingDispatcher)
    dispatcher = build_dispatcher(ChatSettings(dispatch_endpoint="http://127.0.0.1:9/messages"), logger)
    assert isinstance(dispatcher, HttpDispatcher)
    dispatcher.close()
