"""App-scoped credentials for calling Google APIs as the Chat app itself.

Tokens come from, in order: a static `APP_ACCESS_TOKEN`, a service account
key (`GOOGLE_SERVICE_ACCOUNT_JSON`, used off GCP such as on Vercel), or the
GCP metadata server.
"""

import asyncio
import json
import time
from typing import Optional
import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from knowledge_assistant.config import AppConfig
from knowledge_assistant.utils.errors import AppAuthError
from knowledge_assistant.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


METADATA_TOKEN_URL = (
    "http://metadata.google.internal/computeMetadata/v1/"
    "instance/service-accounts/default/token"
)
APP_AUTH_SCOPES = [
    "https://www.googleapis.com/auth/chat.bot",
    "https://www.googleapis.com/auth/chat.app.memberships",
    "https://www.googleapis.com/auth/chat.app.spaces",
]
# Renew cached tokens this many seconds before they expire
REFRESH_LEEWAY_SECONDS = 60


class AppCredentials:
    """Access tokens for the runtime service account, cached until near expiry."""

    def __init__(self, config: AppConfig, scopes: Optional[list[str]] = None):
        self.config = config
        self.scopes = scopes or APP_AUTH_SCOPES
        self._token: Optional[str] = None
        self._expires_at = 0.0
        self._service_account: Optional[service_account.Credentials] = None

    async def get_access_token(self) -> str:
        if self.config.app_access_token:
            return self.config.app_access_token

        if self.config.google_service_account_json:
            return await self._service_account_token()

        if self._token and time.time() < self._expires_at - REFRESH_LEEWAY_SECONDS:
            return self._token

        try:
            async with httpx.AsyncClient(timeout=self.config.http_timeout_seconds) as client:
                response = await client.get(
                    METADATA_TOKEN_URL,
                    params={"scopes": ",".join(self.scopes)},
                    headers={"Metadata-Flavor": "Google"},
                )
        except httpx.HTTPError as e:
            raise AppAuthError(f"Metadata server unreachable: {e}") from e

        if response.status_code != 200:
            raise AppAuthError(
                f"Metadata server returned {response.status_code}: {response.text[:200]}"
            )

        payload = response.json()
        self._token = payload["access_token"]
        self._expires_at = time.time() + int(payload.get("expires_in", 3600))
        logger.debug("App access token refreshed", expires_in=payload.get("expires_in"))
        return self._token

    async def _service_account_token(self) -> str:
        """Token minted from the service account key, refreshed once expired."""
        if self._service_account is None:
            try:
                info = json.loads(self.config.google_service_account_json)
                self._service_account = service_account.Credentials.from_service_account_info(
                    info, scopes=self.scopes
                )
            except (ValueError, KeyError) as e:
                raise AppAuthError(f"Invalid service account key: {e}") from e

        if not self._service_account.valid:
            try:
                # google-auth refreshes synchronously over requests
                await asyncio.to_thread(self._service_account.refresh, Request())
            except GoogleAuthError as e:
                raise AppAuthError(f"Service account token refresh failed: {e}") from e
            logger.debug(
                "App access token minted from service account key",
                service_account=self._service_account.service_account_email,
            )

        return self._service_account.token
