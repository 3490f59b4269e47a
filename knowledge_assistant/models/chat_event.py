"""Google Chat interaction event models."""

from enum import Enum
from typing import Any, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from knowledge_assistant.models.message import Message
from knowledge_assistant.utils.errors import EventParseError


class EventType(str, Enum):
    """Chat interaction event types handled by the app."""
    MESSAGE = "MESSAGE"
    ADDED_TO_SPACE = "ADDED_TO_SPACE"
    REMOVED_FROM_SPACE = "REMOVED_FROM_SPACE"
    CARD_CLICKED = "CARD_CLICKED"


class _ChatModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ChatSpace(_ChatModel):
    name: str = Field(..., description="Space resource name (spaces/S)")
    display_name: Optional[str] = Field(None, alias="displayName")


class ChatUser(_ChatModel):
    name: str = Field(..., description="User resource name (users/U)")
    display_name: Optional[str] = Field(None, alias="displayName")


class ChatEventMessage(_ChatModel):
    """Message payload of a MESSAGE event."""
    name: str
    text: str = ""
    create_time: Optional[str] = Field(None, alias="createTime")

    def to_message(self) -> Message:
        return Message(name=self.name, text=self.text, create_time=self.create_time)


class ChatAction(_ChatModel):
    action_method_name: Optional[str] = Field(None, alias="actionMethodName")
    parameters: list[dict[str, Any]] = Field(default_factory=list)


class AddedToSpaceEvent(_ChatModel):
    type: Literal["ADDED_TO_SPACE"] = "ADDED_TO_SPACE"
    space: ChatSpace
    user: ChatUser
    config_complete_redirect_url: Optional[str] = Field(None, alias="configCompleteRedirectUrl")


class MessageEvent(_ChatModel):
    type: Literal["MESSAGE"] = "MESSAGE"
    space: ChatSpace
    user: ChatUser
    message: ChatEventMessage
    config_complete_redirect_url: Optional[str] = Field(None, alias="configCompleteRedirectUrl")


class RemovedFromSpaceEvent(_ChatModel):
    type: Literal["REMOVED_FROM_SPACE"] = "REMOVED_FROM_SPACE"
    space: ChatSpace
    user: ChatUser


class CardClickedEvent(_ChatModel):
    type: Literal["CARD_CLICKED"] = "CARD_CLICKED"
    space: ChatSpace
    user: ChatUser
    action: Optional[ChatAction] = None


class UnrecognizedEvent(_ChatModel):
    """Any event type the app does not handle."""
    type: Optional[str] = None


ChatEvent = Union[
    AddedToSpaceEvent,
    MessageEvent,
    RemovedFromSpaceEvent,
    CardClickedEvent,
    UnrecognizedEvent,
]

_EVENT_MODELS: dict[str, type[BaseModel]] = {
    EventType.ADDED_TO_SPACE.value: AddedToSpaceEvent,
    EventType.MESSAGE.value: MessageEvent,
    EventType.REMOVED_FROM_SPACE.value: RemovedFromSpaceEvent,
    EventType.CARD_CLICKED.value: CardClickedEvent,
}


def parse_chat_event(body: dict[str, Any]) -> ChatEvent:
    """
    Parse a raw Chat event body into one of the event variants.

    Unknown event types yield UnrecognizedEvent. A known type with a missing
    space, user or message raises EventParseError.
    """
    if not isinstance(body, dict):
        raise EventParseError("Chat event body must be a JSON object")

    event_type = body.get("type")
    model = _EVENT_MODELS.get(event_type) if isinstance(event_type, str) else None
    if model is None:
        return UnrecognizedEvent(type=event_type if isinstance(event_type, str) else None)

    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise EventParseError(f"Invalid {event_type} event: {e}") from e
