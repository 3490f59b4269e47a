"""Google Chat interaction events endpoint for Vercel."""

from http.server import BaseHTTPRequestHandler
import asyncio
import json
import logging
from typing import Any, Optional

from knowledge_assistant.config import AppConfig
from knowledge_assistant.models.chat_event import parse_chat_event
from knowledge_assistant.services.chat_app import ChatApp
from knowledge_assistant.utils.errors import EventParseError
from knowledge_assistant.utils.logging import correlation_context
from knowledge_assistant.utils.logging_config import LoggingConfig

_logger = logging.getLogger(__name__)

_chat_app: Optional[ChatApp] = None


def get_chat_app() -> ChatApp:
    """Build the chat app once per process."""
    global _chat_app

    if _chat_app is None:
        config = AppConfig.from_env()
        LoggingConfig.setup_logging(config)
        _chat_app = ChatApp.from_config(config)
    return _chat_app


async def process_chat_event(body: Any, app: ChatApp) -> tuple[int, dict]:
    """Handle one Chat event body; returns (status code, response JSON)."""
    try:
        event = parse_chat_event(body)
    except EventParseError as e:
        _logger.warning(f"Rejected Chat event: {e}")
        return 400, {"error": "invalid event"}

    reply = await app.handle_event(event)
    return 200, reply.to_response()


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for Chat events."""

    def _send_json(self, status: int, payload: dict) -> None:
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode('utf-8'))

    def do_POST(self):
        """Handle an event POSTed by Google Chat."""
        with correlation_context():
            try:
                content_length = int(self.headers.get('Content-Length', 0))
                raw_body = self.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""

                try:
                    body = json.loads(raw_body) if raw_body else {}
                except json.JSONDecodeError:
                    self._send_json(400, {"error": "invalid json"})
                    return

                status, payload = asyncio.run(process_chat_event(body, get_chat_app()))
                self._send_json(status, payload)
                _logger.info(f"Chat event processed: type={body.get('type') if isinstance(body, dict) else None}")

            except Exception as e:
                _logger.error(f"Error processing Chat event: {e}", exc_info=True)
                self._send_json(500, {"error": "internal server error"})

    def do_GET(self):
        """Handle GET request (health check)."""
        self._send_json(200, {"status": "ok", "endpoint": "chat/events"})
