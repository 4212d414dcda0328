import asyncio

from chatkit.services.backend import FailingDispatcher
from factories import ids, incoming, outgoing


def test_removing_only_message_deletes_group(session):
    group = session.add_message(incoming("solo", 0))
    session.add_message(outgoing("other", 1))

    session.remove_message_from_group(group, group.messages[0])

    assert all(g is not group for g in session.groups)
    assert not session.contains_message_id("solo")
    assert [ids(g) for g in session.groups] == [["other"]]


def test_remove_from_group_falls_back_to_id_match(session):
    group = session.add_message(outgoing("a", 0))
    session.add_message(outgoing("b", 0, 10))
    session.remove_message_from_group(group, outgoing("a", 0))
    assert ids(group) == ["b"]


def test_remove_everywhere_scans_all_groups(session):
    session.add_message(outgoing("dup", 0))
    session.add_message(incoming("x", 1))
    session.add_message(outgoing("dup", 2))

    session.remove_message_everywhere(outgoing("dup", 0))

    assert [ids(g) for g in session.groups] == [["x"]]


def test_remove_at_index_returns_removed_message(session):
    group = session.add_message(outgoing("a", 0))
    session.add_message(outgoing("b", 0, 5))

    removed = session.remove_message_at(group, 0)

    assert removed.id == "a"
    assert ids(group) == ["b"]
    assert session.remove_message_at(group, 5) is None


def test_removing_failed_message_drops_its_entry(session):
    asyncio.run(session.dispatch_message(outgoing("F", 0), FailingDispatcher()))
    group = session.groups[0]
    session.remove_message_from_group(group, group.messages[0])
    assert session.failed_entries == {}
    assert session.groups == []


def test_remove_everywhere_drops_failed_entry(session):
    asyncio.run(session.dispatch_message(outgoing("F", 0), FailingDispatcher()))
    session.remove_message_everywhere(session.groups[0].messages[0])
    assert session.failed_entries == {}
    assert session.state.value.failed_message_ids == ()


def test_dispose_is_idempotent_and_closes_streams(session):
    session.add_message(outgoing("a", 0))
    listener_calls = []
    session.dispatch_results.subscribe(listener_calls.append)

    session.dispose()
    session.dispose()

    assert session.is_disposed
    assert session.groups == []
    assert session.dispatch_results.is_closed
    assert session.received_messages.is_closed
    assert session.dispatch_results.subscriber_count == 0
    assert session.state.value.is_disposed is True


def test_mutations_after_dispose_are_no_ops(session):
    session.dispose()
    revision = session.state.value.revision

    detached = session.add_message(outgoing("a", 0))
    session.append_messages([incoming("b", 0)])
    session.set_messages([incoming("c", 0)])
    session.set_collapsed(True)
    session.remove_message_everywhere(outgoing("a", 0))
    assert session.remove_message_at(detached, 0) is None

    assert session.groups == []
    assert session.is_collapsed is False
    assert session.state.value.revision == revision
    assert asyncio.run(session.retry_message(outgoing("a", 0))).success is False
