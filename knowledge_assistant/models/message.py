"""Message model - a single Chat message stored under its space."""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    """Stored Chat message. Identified by its resource name within a space."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Message resource name (spaces/S/messages/M)")
    text: str = Field(default="", description="Message text, empty for attachment-only messages")
    create_time: Optional[str] = Field(None, description="RFC 3339 creation timestamp")

    @classmethod
    def from_chat_api(cls, resource: dict[str, Any]) -> "Message":
        """Build from a Chat API message resource (camelCase keys)."""
        return cls(
            name=resource["name"],
            text=resource.get("text") or "",
            create_time=resource.get("createTime"),
        )

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Message":
        """Build from a `messages` table row."""
        return cls(
            name=row["name"],
            text=row.get("text") or "",
            create_time=row.get("create_time"),
        )

    def to_row(self, space_name: str) -> dict[str, Any]:
        """Row for the `messages` table."""
        return {
            "space_name": space_name,
            "name": self.name,
            "text": self.text,
            "create_time": self.create_time,
        }
