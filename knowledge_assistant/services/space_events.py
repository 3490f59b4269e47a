"""Ingest Workspace Events notifications (delivered by Pub/Sub push) into the store."""

import base64
import json
from typing import Any, Optional
from pydantic import BaseModel, Field

from knowledge_assistant.models.message import Message
from knowledge_assistant.services.events_api import (
    MESSAGE_CREATED,
    MESSAGE_UPDATED,
    SUBSCRIPTION_ENDED,
    SUBSCRIPTION_EXPIRATION_REMINDER,
    AppAuthEventsService,
)
from knowledge_assistant.services.supabase_client import SupabaseStore
from knowledge_assistant.utils.errors import EventParseError
from knowledge_assistant.utils.logging import get_structured_logger, sanitize_message_text

logger = get_structured_logger(__name__)

SUBSCRIPTION_SUBJECT_PREFIX = "//workspaceevents.googleapis.com/"


class SpaceEventNotification(BaseModel):
    """A decoded CloudEvent from a space subscription."""
    event_type: str = Field(..., description="CloudEvent type (ce-type)")
    subject: Optional[str] = Field(None, description="CloudEvent subject (ce-subject)")
    payload: dict[str, Any] = Field(default_factory=dict)


def space_name_of(message_name: str) -> str:
    """spaces/S/messages/M -> spaces/S"""
    parts = message_name.split("/")
    if len(parts) < 4 or parts[0] != "spaces" or parts[2] != "messages":
        raise EventParseError(f"Unexpected message name: {message_name}")
    return "/".join(parts[:2])


def subscription_name_of(notification: SpaceEventNotification) -> str:
    """Subscription resource name (subscriptions/X) a lifecycle event refers to."""
    subscription = notification.payload.get("subscription")
    if isinstance(subscription, dict) and isinstance(subscription.get("name"), str):
        return subscription["name"]

    subject = notification.subject or ""
    if subject.startswith(SUBSCRIPTION_SUBJECT_PREFIX + "subscriptions/"):
        return subject[len(SUBSCRIPTION_SUBJECT_PREFIX):]
    raise EventParseError(f"{notification.event_type} event names no subscription")


def decode_pubsub_push(body: dict[str, Any]) -> SpaceEventNotification:
    """Decode a Pub/Sub push request body carrying a Workspace event."""
    message = body.get("message") if isinstance(body, dict) else None
    if not isinstance(message, dict):
        raise EventParseError("Pub/Sub push body has no message")

    attributes = message.get("attributes") or {}
    if not isinstance(attributes, dict):
        raise EventParseError("Pub/Sub message attributes must be an object")

    event_type = attributes.get("ce-type")
    if not event_type or not isinstance(event_type, str):
        raise EventParseError("Pub/Sub message has no ce-type attribute")

    payload: Any = {}
    if message.get("data"):
        try:
            payload = json.loads(base64.b64decode(message["data"]).decode("utf-8"))
        except (TypeError, ValueError, UnicodeDecodeError) as e:
            raise EventParseError(f"Pub/Sub data is not base64 JSON: {e}") from e
        if not isinstance(payload, dict):
            raise EventParseError("Pub/Sub data must be a JSON object")

    subject = attributes.get("ce-subject")
    return SpaceEventNotification(
        event_type=event_type,
        subject=subject if isinstance(subject, str) else None,
        payload=payload,
    )


async def process_space_event(
    notification: SpaceEventNotification,
    store: SupabaseStore,
    app_events: AppAuthEventsService,
) -> bool:
    """
    Save created or updated messages to their space's history, and keep
    subscriptions alive when Google warns they are about to expire.

    Returns True when a message was stored, False otherwise.
    """
    event_type = notification.event_type
    if event_type in (MESSAGE_CREATED, MESSAGE_UPDATED):
        return await _store_message(notification, store)

    if event_type == SUBSCRIPTION_EXPIRATION_REMINDER:
        await app_events.renew_subscription(subscription_name_of(notification))
    elif event_type == SUBSCRIPTION_ENDED:
        # Renewal failed or the subscription was deleted; re-adding the app re-subscribes
        logger.warning(
            "Space subscription ended",
            subscription_name=subscription_name_of(notification),
        )
    else:
        logger.info("Ignoring space event", event_type=event_type)
    return False


async def _store_message(notification: SpaceEventNotification, store: SupabaseStore) -> bool:
    resource = notification.payload.get("message")
    if not isinstance(resource, dict) or not resource.get("name"):
        raise EventParseError(f"{notification.event_type} event has no message resource")

    message = Message.from_chat_api(resource)
    space_name = space_name_of(message.name)
    await store.create_or_update_message(space_name, message)

    logger.info(
        "Space event message saved",
        event_type=notification.event_type,
        space_name=space_name,
        message_name=message.name,
        message_preview=sanitize_message_text(message.text, max_length=100),
    )
    return True
