"""Tests for Chat event parsing."""

import pytest

from knowledge_assistant.models.chat_event import (
    AddedToSpaceEvent,
    CardClickedEvent,
    MessageEvent,
    RemovedFromSpaceEvent,
    UnrecognizedEvent,
    parse_chat_event,
)
from knowledge_assistant.utils.errors import EventParseError
from tests.fixtures.chat_events import (
    REDIRECT_URL,
    SPACE_NAME,
    USER_NAME,
    added_to_space_event,
    card_clicked_event,
    message_event,
    removed_from_space_event,
)


@pytest.mark.unit
@pytest.mark.parametrize("body, model", [
    (added_to_space_event(), AddedToSpaceEvent),
    (message_event(), MessageEvent),
    (removed_from_space_event(), RemovedFromSpaceEvent),
    (card_clicked_event(), CardClickedEvent),
])
def test_known_event_types(body, model):
    event = parse_chat_event(body)

    assert isinstance(event, model)
    assert event.space.name == SPACE_NAME
    assert event.user.name == USER_NAME


@pytest.mark.unit
def test_added_to_space_redirect_url():
    event = parse_chat_event(added_to_space_event())
    assert event.config_complete_redirect_url == REDIRECT_URL


@pytest.mark.unit
def test_added_to_space_without_redirect_url():
    body = added_to_space_event()
    del body["configCompleteRedirectUrl"]

    event = parse_chat_event(body)
    assert event.config_complete_redirect_url is None


@pytest.mark.unit
def test_message_event_payload():
    event = parse_chat_event(message_event(text="Where are the design docs?"))
    message = event.message.to_message()

    assert message.name == f"{SPACE_NAME}/messages/msg-001"
    assert message.text == "Where are the design docs?"
    assert message.create_time == "2024-12-09T12:01:00.000000Z"


@pytest.mark.unit
def test_message_event_without_text():
    """Attachment-only messages carry no text."""
    body = message_event()
    del body["message"]["text"]

    event = parse_chat_event(body)
    assert event.message.text == ""


@pytest.mark.unit
def test_unknown_type_is_unrecognized():
    event = parse_chat_event({"type": "WIDGET_UPDATED"})

    assert isinstance(event, UnrecognizedEvent)
    assert event.type == "WIDGET_UPDATED"


@pytest.mark.unit
def test_missing_type_is_unrecognized():
    assert isinstance(parse_chat_event({}), UnrecognizedEvent)


@pytest.mark.unit
def test_known_type_missing_space_raises():
    body = message_event()
    del body["space"]

    with pytest.raises(EventParseError, match="Invalid MESSAGE event"):
        parse_chat_event(body)


@pytest.mark.unit
def test_non_object_body_raises():
    with pytest.raises(EventParseError):
        parse_chat_event(["MESSAGE"])
