"""Google Chat REST API client, with user-delegated and app-scoped variants."""

from typing import Any, Optional
import httpx

from knowledge_assistant.config import AppConfig
from knowledge_assistant.models.message import Message
from knowledge_assistant.services.app_auth import AppCredentials
from knowledge_assistant.services.user_auth import UserAuth
from knowledge_assistant.utils.errors import ChatApiError
from knowledge_assistant.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

CHAT_API_URL = "https://chat.googleapis.com/v1"
MESSAGES_PAGE_SIZE = 1000
SPACE_MANAGER_FILTER = 'member.type = "HUMAN" AND role = "ROLE_MANAGER"'


async def _chat_get(
    config: AppConfig,
    access_token: str,
    path: str,
    params: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    async with httpx.AsyncClient(timeout=config.http_timeout_seconds) as client:
        try:
            response = await client.get(
                f"{CHAT_API_URL}/{path}",
                params=params,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            raise ChatApiError(f"GET {path} failed: {e}") from e

    if response.status_code != 200:
        raise ChatApiError(
            f"GET {path} returned {response.status_code}: {response.text[:200]}",
            status_code=response.status_code,
        )
    return response.json()


class UserAuthChatService:
    """Chat API calls made on behalf of a user."""

    def __init__(self, config: AppConfig, user_auth: UserAuth):
        self.config = config
        self.user_auth = user_auth

    async def list_user_messages(self, space_name: str, user_name: str) -> list[Message]:
        """Every message in the space that the user can see."""
        access_token = await self.user_auth.get_access_token(user_name)

        messages: list[Message] = []
        page_token: Optional[str] = None
        while True:
            params: dict[str, Any] = {"pageSize": MESSAGES_PAGE_SIZE}
            if page_token:
                params["pageToken"] = page_token

            data = await _chat_get(self.config, access_token, f"{space_name}/messages", params)
            messages.extend(Message.from_chat_api(m) for m in data.get("messages", []))

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        logger.info(
            "Listed space messages",
            space_name=space_name,
            user_name=mask_user_id(user_name),
            message_count=len(messages),
        )
        return messages


class AppAuthChatService:
    """Chat API calls made as the app."""

    def __init__(self, config: AppConfig, credentials: AppCredentials):
        self.config = config
        self.credentials = credentials

    async def list_space_manager(self, space_name: str) -> Optional[str]:
        """User name of a human manager of the space, or None."""
        access_token = await self.credentials.get_access_token()
        data = await _chat_get(
            self.config,
            access_token,
            f"{space_name}/members",
            {"filter": SPACE_MANAGER_FILTER, "pageSize": 1},
        )

        for membership in data.get("memberships", []):
            member = membership.get("member") or {}
            if member.get("name"):
                return member["name"]
        return None
