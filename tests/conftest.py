"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import AsyncMock, Mock

from knowledge_assistant.config import AppConfig
from knowledge_assistant.services.chat_app import ChatApp

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LLM_PROVIDER", "anthropic")
os.environ.setdefault("LLM_MODEL", "claude-sonnet-4-20250514")
os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key")
os.environ.setdefault("OAUTH_CLIENT_ID", "test-client-id.apps.googleusercontent.com")
os.environ.setdefault("OAUTH_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("OAUTH_REDIRECT_URI", "https://assistant.example.com/api/oauth/callback")
os.environ.setdefault("PUBSUB_TOPIC", "projects/test-project/topics/chat-events")
os.environ.setdefault("APP_ACCESS_TOKEN", "test-app-token")


@pytest.fixture
def app_config() -> AppConfig:
    """Configuration with every integration set to test values."""
    return AppConfig(
        supabase_url="https://test.supabase.co",
        supabase_service_role_key="test-key",
        llm_provider="anthropic",
        llm_model="claude-sonnet-4-20250514",
        anthropic_api_key="test-anthropic-key",
        oauth_client_id="test-client-id.apps.googleusercontent.com",
        oauth_client_secret="test-client-secret",
        oauth_redirect_uri="https://assistant.example.com/api/oauth/callback",
        pubsub_topic="projects/test-project/topics/chat-events",
        app_access_token="test-app-token",
    )


@pytest.fixture
def mock_store():
    store = Mock()
    store.create_space = AsyncMock()
    store.delete_space = AsyncMock()
    store.create_or_update_message = AsyncMock()
    store.create_or_update_messages = AsyncMock()
    store.list_messages = AsyncMock(return_value=[])
    store.get_user_tokens = AsyncMock(return_value=None)
    store.save_user_tokens = AsyncMock()
    return store


@pytest.fixture
def mock_user_chat():
    service = Mock()
    service.list_user_messages = AsyncMock(return_value=[])
    return service


@pytest.fixture
def mock_app_chat():
    service = Mock()
    service.list_space_manager = AsyncMock(return_value=None)
    return service


@pytest.fixture
def mock_user_events():
    service = Mock()
    service.create_space_subscription = AsyncMock()
    return service


@pytest.fixture
def mock_app_events():
    service = Mock()
    service.delete_space_subscriptions = AsyncMock()
    service.renew_subscription = AsyncMock()
    return service


@pytest.fixture
def mock_user_auth():
    user_auth = Mock()
    user_auth.generate_auth_url = Mock(
        side_effect=lambda user, redirect: f"https://auth.example.com/?user={user}&redirect={redirect}"
    )
    return user_auth


@pytest.fixture
def mock_answer_service():
    service = Mock()
    service.contains_question = AsyncMock(return_value=False)
    service.answer_question = AsyncMock(return_value="Here is what I found.")
    return service


@pytest.fixture
def chat_app(
    app_config,
    mock_store,
    mock_user_chat,
    mock_app_chat,
    mock_user_events,
    mock_app_events,
    mock_user_auth,
    mock_answer_service,
) -> ChatApp:
    """ChatApp wired to mocked collaborators."""
    return ChatApp(
        config=app_config,
        store=mock_store,
        user_chat=mock_user_chat,
        app_chat=mock_app_chat,
        user_events=mock_user_events,
        app_events=mock_app_events,
        user_auth=mock_user_auth,
        answer_service=mock_answer_service,
    )
