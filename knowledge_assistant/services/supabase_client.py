"""Supabase client wrapper and the space/message/token store built on it.

Tables:
    spaces(name text primary key, created_at timestamptz default now())
    messages(space_name text references spaces(name) on delete cascade,
             name text, text text, create_time timestamptz,
             primary key (space_name, name))
    user_tokens(user_name text primary key, access_token text,
                refresh_token text, expiry_date timestamptz,
                updated_at timestamptz default now())
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from supabase import create_client, Client
from supabase.client import ClientOptions

from knowledge_assistant.config import AppConfig
from knowledge_assistant.models.message import Message
from knowledge_assistant.models.user_tokens import UserTokens
from knowledge_assistant.utils.errors import SupabaseError

logger = logging.getLogger(__name__)

# Supabase caps a single select at 1000 rows
PAGE_SIZE = 1000

_clients: dict[str, Client] = {}


def get_supabase_client(config: AppConfig) -> Client:
    """Get or create the Supabase client for the configured project."""
    url = config.supabase_url
    key = config.supabase_service_role_key
    if not url or not key:
        raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

    client = _clients.get(url)
    if client is None:
        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )
        client = create_client(url, key, options)
        _clients[url] = client
        logger.info("Supabase client initialized", extra={"url": url})

    return client


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self, config: AppConfig):
        self.config = config
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        self.client = get_supabase_client(self.config)
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "type": exc_type.__name__}
            )
        return False


class SupabaseStore:
    """Spaces, their message history, and users' OAuth tokens."""

    def __init__(self, config: AppConfig):
        self.config = config

    # Spaces
    async def create_space(self, space_name: str) -> None:
        """Create the space record; an existing record is left as is."""
        async with SupabaseClient(self.config) as client:
            try:
                client.table("spaces").upsert(
                    {"name": space_name},
                    on_conflict="name",
                    ignore_duplicates=True,
                ).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to create space {space_name}: {e}")

    async def delete_space(self, space_name: str) -> None:
        """Delete the space and all of its messages."""
        async with SupabaseClient(self.config) as client:
            try:
                client.table("messages").delete().eq("space_name", space_name).execute()
                client.table("spaces").delete().eq("name", space_name).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to delete space {space_name}: {e}")

    # Messages
    async def create_or_update_message(self, space_name: str, message: Message) -> None:
        """Insert the message, or overwrite the stored one with the same name."""
        await self.create_or_update_messages(space_name, [message])

    async def create_or_update_messages(self, space_name: str, messages: list[Message]) -> None:
        """Upsert messages by name within the space."""
        if not messages:
            return

        # Last write wins when the same name appears twice in one batch
        rows = {m.name: m.to_row(space_name) for m in messages}
        async with SupabaseClient(self.config) as client:
            try:
                client.table("messages").upsert(
                    list(rows.values()),
                    on_conflict="space_name,name",
                ).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to save messages for {space_name}: {e}")

        logger.info(
            "Messages saved",
            extra={"space_name": space_name, "message_count": len(rows)}
        )

    async def list_messages(self, space_name: str) -> list[Message]:
        """All messages of the space, oldest first."""
        messages: list[Message] = []
        async with SupabaseClient(self.config) as client:
            try:
                start = 0
                while True:
                    result = (
                        client.table("messages")
                        .select("*")
                        .eq("space_name", space_name)
                        .order("create_time")
                        .order("name")
                        .range(start, start + PAGE_SIZE - 1)
                        .execute()
                    )
                    rows = result.data or []
                    messages.extend(Message.from_row(row) for row in rows)
                    if len(rows) < PAGE_SIZE:
                        break
                    start += PAGE_SIZE
            except Exception as e:
                raise SupabaseError(f"Failed to list messages for {space_name}: {e}")
        return messages

    # User tokens
    async def get_user_tokens(self, user_name: str) -> Optional[UserTokens]:
        async with SupabaseClient(self.config) as client:
            try:
                result = client.table("user_tokens").select("*").eq("user_name", user_name).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to get tokens for {user_name}: {e}")

        if not result.data:
            return None
        row = result.data[0]
        expiry = row.get("expiry_date")
        return UserTokens(
            user_name=row["user_name"],
            access_token=row.get("access_token"),
            refresh_token=row.get("refresh_token"),
            expiry_date=datetime.fromisoformat(expiry) if expiry else None,
        )

    async def save_user_tokens(self, tokens: UserTokens) -> None:
        row = tokens.to_row()
        row["updated_at"] = datetime.now(timezone.utc).isoformat()
        async with SupabaseClient(self.config) as client:
            try:
                client.table("user_tokens").upsert(row, on_conflict="user_name").execute()
            except Exception as e:
                raise SupabaseError(f"Failed to save tokens for {tokens.user_name}: {e}")
