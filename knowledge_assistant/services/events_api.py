"""Google Workspace Events API client for per-space message subscriptions."""

from typing import Any, Optional
import httpx

from knowledge_assistant.config import AppConfig
from knowledge_assistant.services.app_auth import AppCredentials
from knowledge_assistant.services.user_auth import UserAuth
from knowledge_assistant.utils.errors import EventsApiError
from knowledge_assistant.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

EVENTS_API_URL = "https://workspaceevents.googleapis.com/v1"
MESSAGE_CREATED = "google.workspace.chat.message.v1.created"
MESSAGE_UPDATED = "google.workspace.chat.message.v1.updated"
SUBSCRIBED_EVENT_TYPES = [MESSAGE_CREATED, MESSAGE_UPDATED]
# Lifecycle events Google sends for every subscription
SUBSCRIPTION_EXPIRATION_REMINDER = "google.workspace.events.subscription.v1.expirationReminder"
SUBSCRIPTION_ENDED = "google.workspace.events.subscription.v1.ended"


def target_resource(space_name: str) -> str:
    """Workspace Events target resource for a Chat space."""
    return f"//chat.googleapis.com/{space_name}"


async def _events_request(
    config: AppConfig,
    access_token: str,
    method: str,
    path: str,
    params: Optional[dict[str, Any]] = None,
    json_body: Optional[dict[str, Any]] = None,
) -> httpx.Response:
    async with httpx.AsyncClient(timeout=config.http_timeout_seconds) as client:
        try:
            return await client.request(
                method,
                f"{EVENTS_API_URL}/{path}",
                params=params,
                json=json_body,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            raise EventsApiError(f"{method} {path} failed: {e}") from e


def _raise_for_status(response: httpx.Response, action: str) -> None:
    if response.status_code >= 300:
        raise EventsApiError(
            f"{action} returned {response.status_code}: {response.text[:200]}",
            status_code=response.status_code,
        )


class UserAuthEventsService:
    """Subscriptions created on behalf of a user."""

    def __init__(self, config: AppConfig, user_auth: UserAuth):
        self.config = config
        self.user_auth = user_auth

    async def create_space_subscription(self, space_name: str, user_name: str) -> None:
        """Subscribe the app's Pub/Sub topic to message events in the space."""
        access_token = await self.user_auth.get_access_token(user_name)
        body = {
            "targetResource": target_resource(space_name),
            "eventTypes": SUBSCRIBED_EVENT_TYPES,
            "notificationEndpoint": {"pubsubTopic": self.config.pubsub_topic},
            "payloadOptions": {"includeResource": True},
        }
        response = await _events_request(
            self.config, access_token, "POST", "subscriptions", json_body=body
        )
        if response.status_code == 409:
            logger.info("Space subscription already exists", space_name=space_name)
            return
        _raise_for_status(response, "Create subscription")

        logger.info(
            "Space subscription created",
            space_name=space_name,
            user_name=mask_user_id(user_name),
        )


class AppAuthEventsService:
    """Subscription management done as the app."""

    def __init__(self, config: AppConfig, credentials: AppCredentials):
        self.config = config
        self.credentials = credentials

    async def delete_space_subscriptions(self, space_name: str) -> None:
        """Delete every message subscription targeting the space."""
        access_token = await self.credentials.get_access_token()
        subscription_filter = (
            f'event_types:"{MESSAGE_CREATED}" AND '
            f'target_resource="{target_resource(space_name)}"'
        )

        names: list[str] = []
        page_token: Optional[str] = None
        while True:
            params = {"filter": subscription_filter}
            if page_token:
                params["pageToken"] = page_token
            response = await _events_request(
                self.config, access_token, "GET", "subscriptions", params=params
            )
            _raise_for_status(response, "List subscriptions")
            data = response.json()
            names.extend(s["name"] for s in data.get("subscriptions", []))
            page_token = data.get("nextPageToken")
            if not page_token:
                break

        for name in names:
            response = await _events_request(self.config, access_token, "DELETE", name)
            if response.status_code == 404:
                continue
            _raise_for_status(response, f"Delete {name}")

        logger.info(
            "Space subscriptions deleted",
            space_name=space_name,
            subscription_count=len(names),
        )

    async def renew_subscription(self, subscription_name: str) -> None:
        """Extend the subscription to the longest lifetime Google allows."""
        access_token = await self.credentials.get_access_token()
        # A zero ttl means the maximum allowed for the subscription's payload options
        response = await _events_request(
            self.config,
            access_token,
            "PATCH",
            subscription_name,
            params={"updateMask": "ttl"},
            json_body={"ttl": "0s"},
        )
        _raise_for_status(response, f"Renew {subscription_name}")

        logger.info("Space subscription renewed", subscription_name=subscription_name)
