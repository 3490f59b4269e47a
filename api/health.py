"""Health check endpoint reporting which integrations are configured."""

from http.server import BaseHTTPRequestHandler
import json

from knowledge_assistant.config import AppConfig


def health_status(config: AppConfig) -> dict:
    """Service status plus a flag per required integration setting."""
    llm_key = config.anthropic_api_key if config.llm_provider == "anthropic" else config.openai_api_key
    checks = {
        "supabase": bool(config.supabase_url and config.supabase_service_role_key),
        "llm": bool(llm_key),
        "oauth": bool(config.oauth_client_id and config.oauth_client_secret and config.oauth_redirect_uri),
        "pubsub": bool(config.pubsub_topic),
    }
    return {
        "status": "ok" if all(checks.values()) else "degraded",
        "service": "knowledge-assistant",
        "checks": checks,
    }


class handler(BaseHTTPRequestHandler):
    """Health check handler for Vercel serverless function."""

    def do_GET(self):
        """Handle GET request."""
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        response = json.dumps(health_status(AppConfig.from_env()))
        self.wfile.write(response.encode('utf-8'))

    def do_POST(self):
        """Handle POST request (same as GET for health check)."""
        self.do_GET()
