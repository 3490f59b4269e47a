"""Tests for health check endpoint."""

import pytest
import json
from unittest.mock import Mock
from http.server import BaseHTTPRequestHandler
import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))
from api.health import handler, health_status
from knowledge_assistant.config import AppConfig


@pytest.mark.unit
def test_health_handler_class():
    """Test that handler is a BaseHTTPRequestHandler subclass."""
    assert issubclass(handler, BaseHTTPRequestHandler)


@pytest.mark.unit
def test_health_get_request():
    """Test GET request to health endpoint."""
    from io import BytesIO

    # Create minimal mock socket
    class MockSocket:
        def makefile(self, *args, **kwargs):
            return BytesIO(b"GET /api/health HTTP/1.1\r\n\r\n")
        def sendall(self, data):
            pass
        def close(self):
            pass

    h = handler(MockSocket(), ("127.0.0.1", 8000), None)

    h.wfile = BytesIO()
    h.send_response = Mock()
    h.send_header = Mock()
    h.end_headers = Mock()

    h.do_GET()

    assert h.send_response.call_args[0][0] == 200
    h.send_header.assert_called_with('Content-Type', 'application/json')

    h.wfile.seek(0)
    response_data = json.loads(h.wfile.read().decode('utf-8'))

    # conftest sets every integration variable
    assert response_data["status"] == "ok"
    assert response_data["service"] == "knowledge-assistant"
    assert all(response_data["checks"].values())


@pytest.mark.unit
def test_health_status_all_configured(app_config):
    assert health_status(app_config)["status"] == "ok"


@pytest.mark.unit
def test_health_status_degraded():
    status = health_status(AppConfig(llm_provider="openai", anthropic_api_key="set-but-unused"))

    assert status["status"] == "degraded"
    assert status["checks"] == {
        "supabase": False,
        "llm": False,
        "oauth": False,
        "pubsub": False,
    }
