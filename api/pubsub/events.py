"""Pub/Sub push endpoint for space subscription events."""

from http.server import BaseHTTPRequestHandler
import asyncio
import json
import logging
from typing import Any, Optional

from knowledge_assistant.config import AppConfig
from knowledge_assistant.services.app_auth import AppCredentials
from knowledge_assistant.services.events_api import AppAuthEventsService
from knowledge_assistant.services.space_events import decode_pubsub_push, process_space_event
from knowledge_assistant.services.supabase_client import SupabaseStore
from knowledge_assistant.utils.errors import EventParseError
from knowledge_assistant.utils.logging import correlation_context
from knowledge_assistant.utils.logging_config import LoggingConfig

_logger = logging.getLogger(__name__)

_services: Optional[tuple[SupabaseStore, AppAuthEventsService]] = None


def get_services() -> tuple[SupabaseStore, AppAuthEventsService]:
    """Build the store and app-auth events client once per process."""
    global _services

    if _services is None:
        config = AppConfig.from_env()
        LoggingConfig.setup_logging(config)
        _services = (
            SupabaseStore(config),
            AppAuthEventsService(config, AppCredentials(config)),
        )
    return _services


async def process_push(
    body: Any,
    store: SupabaseStore,
    app_events: AppAuthEventsService,
) -> tuple[int, dict]:
    """
    Handle one Pub/Sub push. Undecodable messages are acknowledged so that
    Pub/Sub does not redeliver them forever; store and API failures are not.
    """
    try:
        notification = decode_pubsub_push(body)
        stored = await process_space_event(notification, store, app_events)
    except EventParseError as e:
        _logger.warning(f"Dropping undecodable space event: {e}")
        return 200, {"ok": True, "stored": False}

    return 200, {"ok": True, "stored": stored}


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for Pub/Sub push deliveries."""

    def _send_json(self, status: int, payload: dict) -> None:
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode('utf-8'))

    def do_POST(self):
        with correlation_context():
            try:
                content_length = int(self.headers.get('Content-Length', 0))
                raw_body = self.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""

                try:
                    body = json.loads(raw_body) if raw_body else {}
                except json.JSONDecodeError:
                    body = {}

                store, app_events = get_services()
                status, payload = asyncio.run(process_push(body, store, app_events))
                self._send_json(status, payload)

            except Exception as e:
                # Non-2xx makes Pub/Sub retry the delivery
                _logger.error(f"Error processing space event: {e}", exc_info=True)
                self._send_json(500, {"error": "internal server error"})
