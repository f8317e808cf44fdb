"""
Configuration for the n8n MCP server.

Connection settings come from the environment (stdio and stateful HTTP
modes) or from the query string of each request (stateless mode).
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

DEFAULT_TIMEOUT_MS = 30000
DEFAULT_API_PATH = "/api/v1"

# Process settings
MCP_TRANSPORT = os.getenv("MCP_TRANSPORT", "stdio")  # stdio, http or stateless
MCP_HTTP_HOST = os.getenv("MCP_HTTP_HOST", "0.0.0.0")
MCP_HTTP_PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

TRANSPORTS = ("stdio", "http", "stateless")


def _normalize_api_path(path: str) -> str:
    path = path.strip().strip("/")
    return f"/{path}" if path else ""


def _parse_timeout(raw: Optional[str]) -> int:
    if raw is None or raw == "":
        return DEFAULT_TIMEOUT_MS
    try:
        timeout_ms = int(raw)
    except ValueError:
        raise ValueError(f"Invalid N8N_TIMEOUT value: {raw!r} (expected milliseconds)") from None
    if timeout_ms <= 0:
        raise ValueError(f"N8N_TIMEOUT must be positive, got {timeout_ms}")
    return timeout_ms


@dataclass(frozen=True)
class N8nConfig:
    """Connection settings for one n8n instance"""

    api_url: str
    api_key: str = field(repr=False)
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    api_path: str = DEFAULT_API_PATH

    def __post_init__(self):
        object.__setattr__(self, "api_url", self.api_url.rstrip("/"))
        object.__setattr__(self, "api_path", _normalize_api_path(self.api_path))

    @property
    def base_url(self) -> str:
        """Base URL plus API path prefix, e.g. https://n8n.example.com/api/v1"""
        return f"{self.api_url}{self.api_path}"

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> Optional["N8nConfig"]:
        """Build a config from N8N_* keys, or return None if URL or key is missing"""
        api_url = values.get("N8N_URL")
        api_key = values.get("N8N_API_KEY")
        if not api_url or not api_key:
            return None
        return cls(
            api_url=api_url,
            api_key=api_key,
            timeout_ms=_parse_timeout(values.get("N8N_TIMEOUT")),
            api_path=values.get("N8N_API_PATH") or DEFAULT_API_PATH,
        )

    @classmethod
    def from_env(cls) -> Optional["N8nConfig"]:
        return cls.from_mapping(os.environ)

    @classmethod
    def from_query(cls, params: Mapping[str, str]) -> Optional["N8nConfig"]:
        """Per-request config for stateless mode (query parameters)"""
        return cls.from_mapping(params)
