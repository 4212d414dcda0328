import uuid

import pytest

from chatkit.models.message import Direction, FileElement, ImageElement, Message, MessageElement, TextElement
from factories import incoming, outgoing, stamp


def test_outgoing_message_generates_uuid_when_id_missing():
    message = Message.outgoing(timestamp=stamp(), author="Me", content=[TextElement("hi")])
    assert uuid.UUID(message.id)
    assert message.is_outgoing
    assert message.direction is Direction.OUTGOING


def test_incoming_message_keeps_caller_id_and_rejects_empty_id():
    message = incoming("remote-1")
    assert message.id == "remote-1"
    assert not message.is_outgoing
    with pytest.raises(ValueError):
        Message.incoming(id="", timestamp=stamp(), author="Ada")


def test_copy_with_preserves_identity_fields():
    original = outgoing("m-1")
    loading = original.copy_with(is_loading=True)
    failed = loading.copy_with(is_loading=False, is_failed=True, timestamp=stamp(5))

    assert original.is_loading is False
    assert loading.is_loading is True
    assert failed.id == original.id == "m-1"
    assert failed.author == original.author
    assert failed.direction is original.direction
    assert failed.is_failed is True
    assert failed.timestamp == stamp(5)
    assert failed.content == original.content


def test_incoming_messages_never_carry_failed_flag():
    message = incoming("remote-2").copy_with(is_failed=True)
    assert message.is_failed is False


def test_content_is_stored_as_tuple():
    message = Message.outgoing(timestamp=stamp(), author="Me", content=[TextElement("a"), TextElement("b")])
    assert isinstance(message.content, tuple)
    assert [element.render() for element in message.content] == ["a", "b"]


def test_rich_elements_render_and_copy():
    image = ImageElement("https://cdn.example/cat.png", alt="cat")
    attachment = FileElement("notes.pdf", "https://cdn.example/notes.pdf", size_bytes=2048)

    assert isinstance(image, MessageElement)
    assert image.render() == {"src": "https://cdn.example/cat.png", "alt": "cat"}
    assert image.copy_with(alt="").alt == ""
    assert attachment.copy_with(name="draft.pdf").render() == {
        "name": "draft.pdf",
        "url": "https://cdn.example/notes.pdf",
        "size_bytes": 2048,
    }
