"""Custom assertion helpers."""

from typing import Any, Dict


def assert_config_request(response: Dict[str, Any]) -> str:
    """Assert the reply asks Chat to run the OAuth flow; returns the URL."""
    assert set(response) == {"actionResponse"}
    action = response["actionResponse"]
    assert action["type"] == "REQUEST_CONFIG"
    assert action["url"]
    return action["url"]


def assert_answer_reply(response: Dict[str, Any], text: str) -> None:
    """Assert a top-level answer with exactly one "Get help" button."""
    assert response["text"] == text
    assert "thread" in response and response["thread"] is None
    widgets = response["accessoryWidgets"]
    assert len(widgets) == 1
    buttons = widgets[0]["buttonList"]["buttons"]
    assert len(buttons) == 1
    assert buttons[0]["text"] == "Get help"
    assert buttons[0]["onClick"]["action"]["function"] == "doContactSupport"
