"""
Error types raised while serving n8n tool calls.

Everything here is caught at the tool-call boundary in ``n8n_mcp.server``
and turned into an ``isError`` result, so none of these ever escape as a
protocol fault.
"""

from typing import Optional


class N8nMcpError(Exception):
    """Base class for all n8n MCP errors"""


class ConfigurationError(N8nMcpError):
    """Raised when a tool call needs the n8n connection but none is configured"""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "Missing required configuration: N8N_URL and N8N_API_KEY. "
            "Set them before using any tools."
        )


class UnknownToolError(N8nMcpError):
    """Raised when a tool name has no dispatch entry"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class N8nApiError(N8nMcpError):
    """
    The n8n API answered with a non-2xx status, or the request timed out.

    ``status_code`` is ``None`` for timeouts; ``body`` holds the raw response
    text as n8n sent it.
    """

    def __init__(self, status_code: Optional[int], body: str, timed_out: bool = False):
        self.status_code = status_code
        self.body = body
        self.timed_out = timed_out
        label = "timeout" if timed_out else str(status_code)
        super().__init__(f"n8n API Error ({label}): {body}")
