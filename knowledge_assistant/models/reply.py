"""Reply payloads returned to Google Chat for a single event."""

from typing import Any, Union
from pydantic import BaseModel, ConfigDict, Field


CARD_CLICK_TEXT = "Please answer the question above."
WELCOME_TEXT = (
    "Thank you for adding me to this space. I help answer"
    " questions based on past conversation in this space. Go ahead and ask"
    " me a question!"
)
CONTACT_SUPPORT_FUNCTION = "doContactSupport"


class _Reply(BaseModel):
    model_config = ConfigDict(frozen=True)


class EmptyReply(_Reply):
    """No message is posted."""

    def to_response(self) -> dict[str, Any]:
        return {}


class TextReply(_Reply):
    text: str

    def to_response(self) -> dict[str, Any]:
        return {"text": self.text}


class AnswerReply(_Reply):
    """Answer posted at the top level of the space, with a "Get help" button."""
    text: str

    def to_response(self) -> dict[str, Any]:
        return {
            "text": self.text,
            # Omitting the question's thread posts the answer directly to the space
            "thread": None,
            "accessoryWidgets": [
                {
                    "buttonList": {
                        "buttons": [get_help_button()]
                    }
                }
            ],
        }


class ConfigRequestReply(_Reply):
    """Asks Chat to send the user through the authorization flow."""
    url: str = Field(..., description="Authorization URL")

    def to_response(self) -> dict[str, Any]:
        return {
            "actionResponse": {
                "type": "REQUEST_CONFIG",
                "url": self.url,
            }
        }


ReplyPayload = Union[EmptyReply, TextReply, AnswerReply, ConfigRequestReply]


def get_help_button() -> dict[str, Any]:
    """Escalation button that notifies the space manager when clicked."""
    return {
        "icon": {
            "material_icon": {
                "name": "contact_support"
            }
        },
        "text": "Get help",
        "altText": "Get additional help from a space manager",
        "onClick": {
            "action": {
                "function": CONTACT_SUPPORT_FUNCTION
            }
        },
    }
