"""Tests for the per-request streamable HTTP application."""

import json
from urllib.parse import urlencode

import pytest
from starlette.testclient import TestClient

from n8n_mcp.http_transport import BAD_REQUEST, create_stateless_app, is_initialize_request

from conftest import INITIALIZE_REQUEST, MCP_HEADERS


@pytest.fixture
def client(fake_n8n):
    with TestClient(create_stateless_app(http_transport=fake_n8n.transport)) as client:
        yield client


def mcp_url(**params) -> str:
    return f"/mcp?{urlencode(params)}" if params else "/mcp"


def call(client: TestClient, url: str, name: str, arguments: dict = None):
    payload = {
        "jsonrpc": "2.0",
        "id": 7,
        "method": "tools/call",
        "params": {"name": name, "arguments": arguments or {}},
    }
    response = client.post(url, json=payload, headers=MCP_HEADERS)
    assert response.status_code == 200
    return response.json()["result"]


def test_list_tools_without_initialize(client):
    response = client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": 1, "method": "tools/list", "params": {}},
        headers=MCP_HEADERS,
    )

    assert response.status_code == 200
    assert len(response.json()["result"]["tools"]) == 31
    assert "mcp-session-id" not in response.headers


def test_initialize_returns_no_session(client):
    response = client.post("/mcp", json=INITIALIZE_REQUEST, headers=MCP_HEADERS)

    assert response.status_code == 200
    assert response.json()["result"]["serverInfo"]["name"] == "n8n-management-mcp"
    assert "mcp-session-id" not in response.headers


def test_each_request_uses_its_own_settings(client, fake_n8n):
    first = call(client, mcp_url(N8N_URL="https://a.example.com", N8N_API_KEY="key-a"), "n8n_list_workflows")
    second = call(client, mcp_url(N8N_URL="https://b.example.com", N8N_API_KEY="key-b"), "n8n_list_workflows")

    assert first["isError"] is False and second["isError"] is False
    assert [r.url.host for r in fake_n8n.requests] == ["a.example.com", "b.example.com"]
    assert [r.headers["X-N8N-API-KEY"] for r in fake_n8n.requests] == ["key-a", "key-b"]


def test_query_settings_are_honoured(client, fake_n8n):
    url = mcp_url(N8N_URL="https://c.example.com/", N8N_API_KEY="key-c", N8N_API_PATH="/rest")
    call(client, url, "n8n_get_tag", {"id": "9"})

    assert str(fake_n8n.last.url) == "https://c.example.com/rest/tags/9"


def test_missing_settings_is_error_result(client, fake_n8n):
    result = call(client, mcp_url(N8N_URL="https://a.example.com"), "n8n_list_tags")

    assert result["isError"] is True
    assert result["content"][0]["text"].startswith("Error: Missing required configuration")
    assert fake_n8n.requests == []


def test_backend_error_is_error_result(client, fake_n8n):
    fake_n8n.respond("DELETE", "/api/v1/workflows/1", status_code=401, json_body={"message": "unauthorized"})

    result = call(client, mcp_url(N8N_URL="https://a.example.com", N8N_API_KEY="bad"), "n8n_delete_workflow", {"id": "1"})

    assert result["isError"] is True
    assert "401" in result["content"][0]["text"]
    assert "unauthorized" in result["content"][0]["text"]


def test_success_text_is_backend_json(client, fake_n8n):
    fake_n8n.respond("GET", "/api/v1/variables", json_body={"data": [{"id": "1", "key": "REGION", "value": "eu"}]})

    result = call(client, mcp_url(N8N_URL="https://a.example.com", N8N_API_KEY="k"), "n8n_list_variables")

    assert json.loads(result["content"][0]["text"]) == {"data": [{"id": "1", "key": "REGION", "value": "eu"}]}


def test_invalid_timeout_is_bad_request(client):
    response = client.post(
        mcp_url(N8N_URL="https://a.example.com", N8N_API_KEY="k", N8N_TIMEOUT="soon"),
        json={"jsonrpc": "2.0", "id": 1, "method": "tools/list", "params": {}},
        headers=MCP_HEADERS,
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == BAD_REQUEST


@pytest.mark.parametrize("method", ["GET", "DELETE"])
def test_only_post_is_allowed(client, method):
    response = client.request(method, "/mcp", headers=MCP_HEADERS)

    assert response.status_code == 405
    assert response.json() == {
        "jsonrpc": "2.0",
        "error": {"code": BAD_REQUEST, "message": "Method not allowed. Use POST."},
        "id": None,
    }


def test_root_info(client):
    info = client.get("/").json()

    assert info["mode"] == "stateless"
    assert info["tools"] == 31
    assert info["endpoints"] == {"mcp": "/mcp"}


def test_is_initialize_request():
    assert is_initialize_request(json.dumps(INITIALIZE_REQUEST).encode())
    assert is_initialize_request(json.dumps([INITIALIZE_REQUEST]).encode())
    assert not is_initialize_request(b'{"jsonrpc": "2.0", "method": "initialize"}')
    assert not is_initialize_request(b'{"jsonrpc": "2.0", "id": 1, "method": "tools/list"}')
    assert not is_initialize_request(b"not json")
