"""
Shared fixtures for the n8n MCP server tests.

The n8n backend is never contacted: ``FakeN8n`` plugs into httpx through a
``MockTransport`` and records every request it receives.
"""

import json
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from n8n_mcp.config import N8nConfig

N8N_URL = "https://n8n.example.com"
N8N_API_KEY = "test-api-key"

MCP_HEADERS = {
    "Accept": "application/json, text/event-stream",
    "Content-Type": "application/json",
}

INITIALIZE_REQUEST = {
    "jsonrpc": "2.0",
    "id": 1,
    "method": "initialize",
    "params": {
        "protocolVersion": "2025-03-26",
        "capabilities": {},
        "clientInfo": {"name": "pytest", "version": "0.0.1"},
    },
}


class FakeN8n:
    """In-memory stand-in for the n8n REST API"""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._routes: Dict[Tuple[str, str], Tuple[int, Any, Optional[str]]] = {}
        self.raise_timeout = False

    def respond(self, method: str, path: str, status_code: int = 200, json_body: Any = None, text: Optional[str] = None):
        self._routes[(method, path)] = (status_code, json_body, text)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_timeout:
            raise httpx.ReadTimeout("timed out", request=request)
        route = self._routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(200, json={"method": request.method, "path": request.url.path})
        status_code, json_body, text = route
        if text is not None:
            return httpx.Response(status_code, text=text)
        return httpx.Response(status_code, json=json_body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


@pytest.fixture
def fake_n8n() -> FakeN8n:
    return FakeN8n()


@pytest.fixture
def n8n_config() -> N8nConfig:
    return N8nConfig(api_url=f"{N8N_URL}/", api_key=N8N_API_KEY)
