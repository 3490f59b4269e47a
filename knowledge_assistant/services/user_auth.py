"""OAuth2 flow for delegated (user) access to Chat and Workspace Events."""

import json
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlencode
import httpx

from knowledge_assistant.config import AppConfig
from knowledge_assistant.models.user_tokens import UserTokens
from knowledge_assistant.services.supabase_client import SupabaseStore
from knowledge_assistant.utils.errors import InvalidTokenError, OAuthError
from knowledge_assistant.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

AUTH_URI = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"
TOKENINFO_URI = "https://oauth2.googleapis.com/tokeninfo"

USER_AUTH_SCOPES = [
    "openid",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/chat.messages.readonly",
    "https://www.googleapis.com/auth/chat.spaces.readonly",
]


def build_state(user_name: str, redirect_url: Optional[str]) -> str:
    """Encode the OAuth state; equal inputs always give the same string."""
    return json.dumps(
        {"configCompleteRedirectUrl": redirect_url, "userName": user_name},
        sort_keys=True,
        separators=(",", ":"),
    )


def parse_state(state: str) -> tuple[str, Optional[str]]:
    """Return (user_name, redirect_url) from an OAuth state string."""
    try:
        data = json.loads(state)
    except (TypeError, json.JSONDecodeError) as e:
        raise OAuthError(f"Malformed OAuth state: {e}") from e

    if not isinstance(data, dict) or not data.get("userName"):
        raise OAuthError("OAuth state is missing userName")
    return data["userName"], data.get("configCompleteRedirectUrl")


class UserAuth:
    """Builds authorization URLs and hands out per-user access tokens."""

    def __init__(self, config: AppConfig, store: SupabaseStore):
        self.config = config
        self.store = store

    def generate_auth_url(self, user_name: str, redirect_url: Optional[str]) -> str:
        """
        URL that sends the user through Google's consent screen.

        The Chat user and the post-authorization redirect travel in `state`
        so the callback can store tokens and return the user to Chat.
        """
        params = {
            "access_type": "offline",
            "client_id": self.config.oauth_client_id or "",
            "login_hint": user_name,
            "prompt": "consent",
            "redirect_uri": self.config.oauth_redirect_uri or "",
            "response_type": "code",
            "scope": " ".join(USER_AUTH_SCOPES),
            "state": build_state(user_name, redirect_url),
        }
        return f"{AUTH_URI}?{urlencode(params)}"

    async def get_access_token(self, user_name: str) -> str:
        """
        Valid access token for the user, refreshing it when expired.

        Raises InvalidTokenError when the user never authorized the app or
        the refresh token was revoked.
        """
        tokens = await self.store.get_user_tokens(user_name)
        if tokens is None or not tokens.refresh_token:
            raise InvalidTokenError(user_name)

        if not tokens.is_expired():
            return tokens.access_token

        logger.info("Refreshing user access token", user_name=mask_user_id(user_name))
        payload = await self._post_token({
            "grant_type": "refresh_token",
            "refresh_token": tokens.refresh_token,
        }, user_name=user_name)

        refreshed = UserTokens(
            user_name=user_name,
            access_token=payload["access_token"],
            # Google only returns a refresh token when it rotates it
            refresh_token=payload.get("refresh_token") or tokens.refresh_token,
            expiry_date=_expiry_from(payload),
        )
        await self.store.save_user_tokens(refreshed)
        return refreshed.access_token

    async def handle_callback(self, code: str, state: str) -> Optional[str]:
        """
        Exchange the authorization code, store the user's tokens, and return
        the Chat redirect URL carried in state.
        """
        state_user_name, redirect_url = parse_state(state)

        payload = await self._post_token({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.config.oauth_redirect_uri or "",
        })
        if not payload.get("refresh_token"):
            raise OAuthError("Token response did not include a refresh token")

        user_name = await self._resolve_user_name(payload.get("id_token"))
        if user_name != state_user_name:
            logger.warning(
                "Authorized account differs from requesting Chat user",
                state_user_name=mask_user_id(state_user_name),
                user_name=mask_user_id(user_name),
            )

        await self.store.save_user_tokens(UserTokens(
            user_name=user_name,
            access_token=payload.get("access_token"),
            refresh_token=payload["refresh_token"],
            expiry_date=_expiry_from(payload),
        ))
        logger.info("User tokens saved", user_name=mask_user_id(user_name))
        return redirect_url

    async def _post_token(self, data: dict, user_name: Optional[str] = None) -> dict:
        data = {
            **data,
            "client_id": self.config.oauth_client_id or "",
            "client_secret": self.config.oauth_client_secret or "",
        }
        async with httpx.AsyncClient(timeout=self.config.http_timeout_seconds) as client:
            response = await client.post(TOKEN_URI, data=data)

        if response.status_code == 200:
            return response.json()

        error = _error_code(response)
        if error == "invalid_grant" and user_name:
            raise InvalidTokenError(user_name, reason="refresh token revoked or expired")
        raise OAuthError(f"Token endpoint returned {response.status_code}: {error}")

    async def _resolve_user_name(self, id_token: Optional[str]) -> str:
        """Chat user name (users/<sub>) of the account that granted access."""
        if not id_token:
            raise OAuthError("Token response did not include an id_token")

        async with httpx.AsyncClient(timeout=self.config.http_timeout_seconds) as client:
            response = await client.get(TOKENINFO_URI, params={"id_token": id_token})
        if response.status_code != 200:
            raise OAuthError(f"id_token rejected: {response.status_code}")

        info = response.json()
        if info.get("aud") != self.config.oauth_client_id:
            raise OAuthError("id_token audience does not match the OAuth client")
        return f"users/{info['sub']}"


def _expiry_from(payload: dict) -> datetime:
    return datetime.now(timezone.utc) + timedelta(seconds=int(payload.get("expires_in", 3600)))


def _error_code(response: httpx.Response) -> str:
    try:
        return response.json().get("error", "unknown_error")
    except ValueError:
        return "unknown_error"
