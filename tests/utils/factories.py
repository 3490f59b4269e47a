"""Test data factories using Faker."""

from datetime import datetime, timedelta, timezone
from typing import Optional
from faker import Faker

from knowledge_assistant.models.message import Message
from knowledge_assistant.models.user_tokens import UserTokens

fake = Faker()


def create_message(space_name: str = "spaces/AAAA1234", text: Optional[str] = None) -> Message:
    """Create a stored message in the given space."""
    return Message(
        name=f"{space_name}/messages/{fake.uuid4()}",
        text=text if text is not None else fake.sentence(nb_words=8),
        create_time=fake.date_time_this_year(tzinfo=timezone.utc).isoformat(),
    )


def create_chat_api_message(space_name: str = "spaces/AAAA1234", text: Optional[str] = None) -> dict:
    """Create a Chat API message resource."""
    return {
        "name": f"{space_name}/messages/{fake.uuid4()}",
        "text": text if text is not None else fake.sentence(nb_words=8),
        "createTime": fake.date_time_this_year(tzinfo=timezone.utc).isoformat(),
        "sender": {"name": f"users/{fake.random_int(min=100000, max=999999)}", "type": "HUMAN"},
    }


def create_user_tokens(
    user_name: str = "users/1234567890",
    expires_in: timedelta = timedelta(hours=1),
    refresh_token: Optional[str] = "1//refresh-token",
) -> UserTokens:
    """Create stored OAuth tokens expiring `expires_in` from now."""
    return UserTokens(
        user_name=user_name,
        access_token=f"ya29.{fake.sha1()}",
        refresh_token=refresh_token,
        expiry_date=datetime.now(timezone.utc) + expires_in,
    )
