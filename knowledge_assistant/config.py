"""Application configuration, read from the environment once at startup."""

import os
from typing import Optional
from pydantic import BaseModel, Field


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() == "true"


class AppConfig(BaseModel):
    """Settings threaded into the chat app and its collaborators."""
    # Storage
    supabase_url: Optional[str] = Field(None, description="Supabase project URL")
    supabase_service_role_key: Optional[str] = Field(None, description="Supabase service role key")

    # Generative model
    llm_provider: str = Field(default="anthropic", description="anthropic or openai")
    llm_model: str = Field(default="claude-sonnet-4-20250514", description="Model name")
    llm_temperature: float = Field(default=0.5, ge=0.0, le=2.0)
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None

    # OAuth (delegated user access)
    oauth_client_id: Optional[str] = None
    oauth_client_secret: Optional[str] = None
    oauth_redirect_uri: Optional[str] = Field(None, description="OAuth callback endpoint URL")

    # Workspace Events
    pubsub_topic: Optional[str] = Field(
        None,
        description="projects/<project>/topics/<topic> receiving space events"
    )

    # App-scoped access
    app_access_token: Optional[str] = Field(
        None,
        description="Static app token override"
    )
    google_service_account_json: Optional[str] = Field(
        None,
        description="Service account key JSON for minting app tokens off GCP; metadata server is used when unset"
    )
    http_timeout_seconds: float = Field(default=30.0, gt=0)

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_message_content: bool = True
    log_mask_sensitive: bool = True
    log_slow_operation_threshold_ms: int = 1000

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build configuration from environment variables."""
        return cls(
            supabase_url=os.environ.get("SUPABASE_URL"),
            supabase_service_role_key=os.environ.get("SUPABASE_SERVICE_ROLE_KEY"),
            llm_provider=os.environ.get("LLM_PROVIDER", "anthropic").lower(),
            llm_model=os.environ.get("LLM_MODEL", "claude-sonnet-4-20250514"),
            llm_temperature=float(os.environ.get("LLM_TEMPERATURE", "0.5")),
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY"),
            openai_api_key=os.environ.get("OPENAI_API_KEY"),
            oauth_client_id=os.environ.get("OAUTH_CLIENT_ID"),
            oauth_client_secret=os.environ.get("OAUTH_CLIENT_SECRET"),
            oauth_redirect_uri=os.environ.get("OAUTH_REDIRECT_URI"),
            pubsub_topic=os.environ.get("PUBSUB_TOPIC"),
            app_access_token=os.environ.get("APP_ACCESS_TOKEN"),
            google_service_account_json=os.environ.get("GOOGLE_SERVICE_ACCOUNT_JSON"),
            http_timeout_seconds=float(os.environ.get("HTTP_TIMEOUT_SECONDS", "30")),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            log_format=os.environ.get("LOG_FORMAT", "json").lower(),
            log_message_content=_env_flag("LOG_MESSAGE_CONTENT", "true"),
            log_mask_sensitive=_env_flag("LOG_MASK_SENSITIVE", "true"),
            log_slow_operation_threshold_ms=int(
                os.environ.get("LOG_SLOW_OPERATION_THRESHOLD_MS", "1000")
            ),
        )
