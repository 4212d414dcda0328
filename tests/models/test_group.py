from chatkit.models.group import MessageGroup
from factories import ids, incoming, outgoing


def test_sort_messages_orders_by_timestamp():
    group = MessageGroup.from_message(outgoing("c", 0, 40))
    group.messages.extend([outgoing("a", 0, 10), outgoing("b", 0, 20)])
    group.sort_messages()
    assert ids(group) == ["a", "b", "c"]


def test_failed_outgoing_messages_sort_last():
    failed = outgoing("early", 0, 1).copy_with(is_failed=True)
    group = MessageGroup.from_message(failed)
    group.messages.extend([outgoing("late", 0, 50), outgoing("mid", 0, 30)])
    group.sort_messages()
    assert ids(group) == ["mid", "late", "early"]


def test_ties_keep_insertion_order():
    group = MessageGroup.from_message(incoming("first", 0, 5))
    group.messages.append(incoming("second", 0, 5))
    group.sort_messages()
    assert ids(group) == ["first", "second"]


def test_anchor_timestamp_is_fixed_at_creation():
    first = outgoing("a", 3, 0)
    group = MessageGroup.from_message(first)
    group.messages.insert(0, outgoing("z", 3, 0, hour=11))
    del group.messages[1]
    assert group.anchor_timestamp == first.timestamp
    assert group.author == "Me"
    assert group.is_outgoing


def test_lookup_helpers_and_identity_equality():
    group = MessageGroup.from_message(outgoing("a"))
    twin = MessageGroup.from_message(outgoing("a"))
    assert group.index_of("a") == 0
    assert group.contains("a")
    assert not group.contains("missing")
    assert group.first_message.id == "a"
    assert group != twin
