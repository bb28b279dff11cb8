"""Shared fixtures for the console client tests."""

import json
import time
from typing import Any, Callable, Dict, List
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from agent_cli.auth import TokenProvider
from agent_cli.client import AgentClient
from agent_cli.config import CliConfig
from agent_cli.logging_config import configure_logging
from agent_cli.session import SessionContext

# Route structlog through stdlib logging so log lines stay out of captured stdout
configure_logging()


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Keep developer environment overrides out of the tests."""
    for name in (
        "AGENT_CLI_CLIENT_ID",
        "AGENT_CLI_TENANT_ID",
        "AGENT_CLI_SERVER_URL",
        "AGENT_CLI_TOKEN_CACHE",
        "AGENT_CLI_ACCOUNT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config():
    """Config pointing at a fake tenant and agent service."""
    return CliConfig(
        client_id="test-client-id",
        tenant_id="test-tenant-id",
        server_url="http://agent.test",
    )


@pytest.fixture
def msal_app():
    """MSAL application with an empty cache and a working device flow."""
    app = MagicMock()
    app.get_accounts.return_value = []
    app.acquire_token_silent.return_value = None
    app.initiate_device_flow.return_value = {
        "user_code": "ABCD1234",
        "device_code": "device-code",
        "verification_uri": "https://microsoft.com/devicelogin",
        "message": "To sign in, open https://microsoft.com/devicelogin and enter ABCD1234",
        "expires_at": time.time() + 900,
        "interval": 5,
    }
    app.acquire_token_by_device_flow.return_value = {
        "access_token": "device-token",
        "id_token_claims": {"preferred_username": "alice@example.com"},
    }
    return app


@pytest.fixture
def token_provider(config, msal_app):
    return TokenProvider(config, app=msal_app)


class RecordingHandler:
    """httpx.MockTransport handler that replays canned responses."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.routes: Dict[tuple, Callable[[httpx.Request], httpx.Response]] = {}

    def add(self, method: str, path: str, status: int = 200, body: Any = None):
        if isinstance(body, (dict, list)):
            content = json.dumps(body).encode()
        elif isinstance(body, str):
            content = body.encode()
        else:
            content = b""
        self.routes[(method, path)] = lambda request: httpx.Response(
            status, content=content
        )

    def add_callback(self, method: str, path: str, callback):
        self.routes[(method, path)] = callback

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": "not_found", "message": "no route"})
        return route(request)

    def json_body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def agent_client(handler):
    """AgentClient wired to the recording handler."""
    return AgentClient(
        "http://agent.test",
        "test-token",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def session_context():
    """Session context with mocked client and token provider."""
    client = AsyncMock(spec=AgentClient)
    provider = MagicMock(spec=TokenProvider)
    return SessionContext(client=client, token_provider=provider)


@pytest.fixture
def reader():
    """Build read_line functions that raise EOFError once their lines run out."""

    def make(*values: str) -> Callable[[str], str]:
        remaining = list(values)

        def read_line(prompt: str) -> str:
            if not remaining:
                raise EOFError
            return remaining.pop(0)

        return read_line

    return make
