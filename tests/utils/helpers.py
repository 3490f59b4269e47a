"""Test helper functions."""

import base64
import json
from io import BytesIO
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, MagicMock, Mock

import httpx


def http_response(status_code: int, payload: Optional[Dict[str, Any]] = None, text: str = "") -> httpx.Response:
    """Build an httpx response with a JSON (or text) body."""
    request = httpx.Request("GET", "https://test.invalid")
    if payload is not None:
        return httpx.Response(status_code, json=payload, request=request)
    return httpx.Response(status_code, text=text, request=request)


def mock_async_client(*responses: httpx.Response) -> MagicMock:
    """
    Stand-in for the httpx.AsyncClient class. Its get/post/request calls
    return the given responses in order; the client is exposed as `.client`.
    """
    queue = list(responses)

    def _next(*args, **kwargs):
        return queue.pop(0)

    client = MagicMock()
    client.get = AsyncMock(side_effect=_next)
    client.post = AsyncMock(side_effect=_next)
    client.request = AsyncMock(side_effect=_next)

    client_class = MagicMock()
    client_class.return_value.__aenter__.return_value = client
    client_class.return_value.__aexit__.return_value = False
    client_class.client = client
    return client_class


def pubsub_push_body(event_type: str, payload: Optional[Dict[str, Any]] = None, subject: str = "") -> Dict[str, Any]:
    """Pub/Sub push request body wrapping a Workspace event."""
    message: Dict[str, Any] = {
        "attributes": {
            "ce-type": event_type,
            "ce-subject": subject,
            "ce-specversion": "1.0",
        },
        "messageId": "1234567890",
    }
    if payload is not None:
        message["data"] = base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")
    return {"message": message, "subscription": "projects/test-project/subscriptions/chat-events-push"}


def make_handler(handler_class, method: str, path: str, body: Optional[Any] = None):
    """BaseHTTPRequestHandler instance with request state set and output captured."""
    raw = json.dumps(body).encode("utf-8") if body is not None else b""

    h = handler_class.__new__(handler_class)
    h.rfile = BytesIO(raw)
    h.wfile = BytesIO()
    h.headers = {"Content-Length": str(len(raw)), "Content-Type": "application/json"}
    h.path = path
    h.command = method
    h.send_response = Mock()
    h.send_header = Mock()
    h.end_headers = Mock()
    return h


def read_json(h) -> Dict[str, Any]:
    """JSON written by a handler."""
    h.wfile.seek(0)
    return json.loads(h.wfile.read().decode("utf-8"))
