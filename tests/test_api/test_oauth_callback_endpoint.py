"""Tests for the OAuth callback endpoint."""

import pytest
from unittest.mock import AsyncMock, Mock, patch
from urllib.parse import quote

from api.oauth.callback import COMPLETE_TEXT, handler, process_callback
from knowledge_assistant.services.user_auth import build_state
from knowledge_assistant.utils.errors import OAuthError
from tests.fixtures.chat_events import REDIRECT_URL, USER_NAME
from tests.utils.helpers import make_handler, read_json


@pytest.fixture
def user_auth():
    user_auth = Mock()
    user_auth.handle_callback = AsyncMock(return_value=REDIRECT_URL)
    return user_auth


@pytest.mark.unit
@pytest.mark.asyncio
async def test_process_callback_redirects_to_chat(user_auth):
    state = build_state(USER_NAME, REDIRECT_URL)

    status, info = await process_callback({"code": ["4/code"], "state": [state]}, user_auth)

    assert (status, info) == (302, {"location": REDIRECT_URL})
    user_auth.handle_callback.assert_awaited_once_with("4/code", state)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_process_callback_without_redirect(user_auth):
    user_auth.handle_callback.return_value = None

    status, info = await process_callback({"code": ["4/code"], "state": ["{}"]}, user_auth)

    assert (status, info) == (200, {"message": COMPLETE_TEXT})


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("query, error", [
    ({"error": ["access_denied"]}, "access_denied"),
    ({"code": ["4/code"]}, "missing code or state"),
    ({"state": ["{}"]}, "missing code or state"),
])
async def test_process_callback_bad_request(user_auth, query, error):
    status, info = await process_callback(query, user_auth)

    assert (status, info) == (400, {"error": error})
    user_auth.handle_callback.assert_not_called()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_process_callback_exchange_failure(user_auth):
    user_auth.handle_callback.side_effect = OAuthError("invalid_grant")

    status, info = await process_callback({"code": ["4/code"], "state": ["{}"]}, user_auth)

    assert (status, info) == (400, {"error": "authorization failed"})


@pytest.mark.unit
def test_get_sends_location_header(user_auth):
    state = quote(build_state(USER_NAME, REDIRECT_URL))
    h = make_handler(handler, "GET", f"/api/oauth/callback?code=4%2Fcode&state={state}")

    with patch("api.oauth.callback.get_user_auth", return_value=user_auth):
        h.do_GET()

    h.send_response.assert_called_once_with(302)
    h.send_header.assert_called_once_with('Location', REDIRECT_URL)
    user_auth.handle_callback.assert_awaited_once_with("4/code", build_state(USER_NAME, REDIRECT_URL))


@pytest.mark.unit
def test_get_user_denied_consent(user_auth):
    h = make_handler(handler, "GET", "/api/oauth/callback?error=access_denied")

    with patch("api.oauth.callback.get_user_auth", return_value=user_auth):
        h.do_GET()

    h.send_response.assert_called_once_with(400)
    assert read_json(h) == {"error": "access_denied"}
