"""Error handling utilities."""

from typing import Optional


class KnowledgeAssistantError(Exception):
    """Base exception for the knowledge assistant backend."""
    pass


class InvalidTokenError(KnowledgeAssistantError):
    """The user has not granted (or has revoked) delegated access."""

    def __init__(self, user_name: str, reason: str = "no refresh token stored"):
        self.user_name = user_name
        self.reason = reason
        super().__init__(f"Invalid credentials for {user_name}: {reason}")


class PredictionError(KnowledgeAssistantError):
    """Generative model call failed or returned an unusable response."""
    pass


class SupabaseError(KnowledgeAssistantError):
    """Supabase operation error."""
    pass


class ApiError(KnowledgeAssistantError):
    """Google API call returned a non-success response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ChatApiError(ApiError):
    """Google Chat API error."""
    pass


class EventsApiError(ApiError):
    """Google Workspace Events API error."""
    pass


class AppAuthError(KnowledgeAssistantError):
    """App-scoped access token could not be obtained."""
    pass


class OAuthError(KnowledgeAssistantError):
    """OAuth authorization flow error."""
    pass


class EventParseError(KnowledgeAssistantError):
    """Inbound Chat or Pub/Sub payload could not be parsed."""
    pass
