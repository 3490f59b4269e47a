"""OAuth2 redirect endpoint: stores the user's tokens and returns them to Chat."""

from http.server import BaseHTTPRequestHandler
from urllib.parse import parse_qs, urlparse
import asyncio
import json
import logging
from typing import Optional

from knowledge_assistant.config import AppConfig
from knowledge_assistant.services.supabase_client import SupabaseStore
from knowledge_assistant.services.user_auth import UserAuth
from knowledge_assistant.utils.errors import InvalidTokenError, OAuthError
from knowledge_assistant.utils.logging import correlation_context
from knowledge_assistant.utils.logging_config import LoggingConfig

_logger = logging.getLogger(__name__)

_user_auth: Optional[UserAuth] = None

COMPLETE_TEXT = "Authorization complete. You can close this page and return to Google Chat."


def get_user_auth() -> UserAuth:
    global _user_auth

    if _user_auth is None:
        config = AppConfig.from_env()
        LoggingConfig.setup_logging(config)
        _user_auth = UserAuth(config, SupabaseStore(config))
    return _user_auth


async def process_callback(query: dict[str, list[str]], user_auth: UserAuth) -> tuple[int, dict]:
    """
    Handle the OAuth redirect query.

    Returns (status, info) where info holds either a `location` to redirect
    to or an `error`/`message` to show.
    """
    if query.get("error"):
        return 400, {"error": query["error"][0]}

    code = (query.get("code") or [None])[0]
    state = (query.get("state") or [None])[0]
    if not code or not state:
        return 400, {"error": "missing code or state"}

    try:
        redirect_url = await user_auth.handle_callback(code, state)
    except (OAuthError, InvalidTokenError) as e:
        _logger.warning(f"OAuth callback rejected: {e}")
        return 400, {"error": "authorization failed"}

    if redirect_url:
        return 302, {"location": redirect_url}
    return 200, {"message": COMPLETE_TEXT}


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for the OAuth redirect."""

    def _send_json(self, status: int, payload: dict) -> None:
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode('utf-8'))

    def do_GET(self):
        with correlation_context():
            try:
                query = parse_qs(urlparse(self.path).query)
                status, info = asyncio.run(process_callback(query, get_user_auth()))

                if status == 302:
                    self.send_response(302)
                    self.send_header('Location', info["location"])
                    self.end_headers()
                    return
                self._send_json(status, info)

            except Exception as e:
                _logger.error(f"Error handling OAuth callback: {e}", exc_info=True)
                self._send_json(500, {"error": "internal server error"})
