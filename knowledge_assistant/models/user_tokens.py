"""OAuth tokens granted by a Chat user."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from pydantic import BaseModel, Field

# Refresh slightly before the real expiry to absorb clock skew
EXPIRY_MARGIN = timedelta(seconds=60)


class UserTokens(BaseModel):
    """Delegated credentials stored per Chat user."""
    user_name: str = Field(..., description="Chat user resource name (users/U)")
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expiry_date: Optional[datetime] = Field(None, description="Access token expiry (UTC)")

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if not self.access_token or self.expiry_date is None:
            return True
        now = now or datetime.now(timezone.utc)
        expiry = self.expiry_date
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return now >= expiry - EXPIRY_MARGIN

    def to_row(self) -> dict[str, Any]:
        return {
            "user_name": self.user_name,
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
        }
