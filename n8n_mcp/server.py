"""
MCP server factory for n8n management

``create_server`` builds one low-level MCP ``Server`` with the tool catalog,
the tool-call dispatcher, two guide prompts and a server-info resource.
Every transport (stdio, stateful HTTP, stateless HTTP) goes through it.

The n8n client is bound lazily: tools/list works without any connection
settings, and a tool call made without them fails with an error result
instead of taking the server down.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx
from mcp import types
from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from pydantic import AnyUrl

from n8n_mcp import SERVER_NAME, __version__
from n8n_mcp.config import N8nConfig
from n8n_mcp.dispatch import handle_tool_call, is_known_tool
from n8n_mcp.errors import ConfigurationError, N8nMcpError, UnknownToolError
from n8n_mcp.n8n_client import N8nClient
from n8n_mcp.tools import TOOL_CATEGORIES, TOOLS

logger = logging.getLogger(__name__)

SERVER_INFO_URI = "n8n://server-info"

PROMPTS = {
    "manage-workflows": types.Prompt(
        name="manage-workflows",
        description="Guide for managing n8n workflows: list, create, activate, execute, and organize with tags",
    ),
    "debug-execution": types.Prompt(
        name="debug-execution",
        description="Step-by-step guide to diagnose and fix failed n8n workflow executions",
    ),
}

PROMPT_TEXTS = {
    "manage-workflows": "\n".join([
        "You are an n8n workflow management assistant. Help me manage my n8n automations.",
        "",
        "Available actions:",
        "1. **List workflows**: use n8n_list_workflows to see all automations",
        "2. **Inspect workflow**: use n8n_get_workflow to see nodes and connections",
        "3. **Create workflow**: use n8n_create_workflow with name, nodes, and connections",
        "4. **Activate/Deactivate**: use n8n_activate_workflow or n8n_deactivate_workflow",
        "5. **Execute manually**: use n8n_execute_workflow to test with custom data",
        "6. **Organize with tags**: use n8n_list_tags, n8n_create_tag, n8n_update_workflow_tags",
        "7. **Shared settings**: use n8n_list_variables and n8n_create_variable for $vars values",
        "",
        "Start by listing my current workflows.",
    ]),
    "debug-execution": "\n".join([
        "You are an n8n debugging assistant. Help me find and fix failed workflow executions.",
        "",
        "Debugging steps:",
        '1. **Find failures**: use n8n_list_executions with status "error"',
        "2. **Get details**: use n8n_get_execution to see the error message and which node failed",
        "3. **Inspect workflow**: use n8n_get_workflow to understand the workflow structure",
        "4. **Check credentials**: use n8n_get_credential_schema to verify required fields",
        "5. **Retry**: use n8n_retry_execution to rerun after fixing the issue",
        "6. **Clean up**: use n8n_delete_execution to remove old test runs",
        "",
        "Start by listing recent executions to find any failures.",
    ]),
}


class ClientHolder:
    """Lazily built N8nClient owned by a single server instance"""

    def __init__(self, config: Optional[N8nConfig], http_transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._http_transport = http_transport
        self._client: Optional[N8nClient] = None
        if config is not None:
            self._client = N8nClient(config, http_transport)

    @property
    def connected(self) -> bool:
        return self.config is not None

    def get(self) -> N8nClient:
        if self._client is None:
            if self.config is None:
                raise ConfigurationError()
            self._client = N8nClient(self.config, self._http_transport)
        return self._client


def text_result(text: str, is_error: bool = False) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        isError=is_error,
    )


async def call_tool(name: str, arguments: Dict[str, Any], holder: ClientHolder) -> types.CallToolResult:
    """
    Run one tool call and wrap the outcome in a CallToolResult.

    Success is the n8n response pretty-printed as JSON. Any failure (missing
    configuration, unknown tool, n8n error status, timeout or anything
    unexpected) becomes a single ``Error: <message>`` text block with
    ``isError`` set, so the calling agent can read it and react.
    """
    try:
        if not is_known_tool(name):
            raise UnknownToolError(name)
        result = await handle_tool_call(name, arguments, holder.get())
    except N8nMcpError as e:
        logger.info(f"Tool {name} failed: {e}")
        return text_result(f"Error: {e}", is_error=True)
    except Exception as e:
        logger.error(f"Error calling tool {name}: {e}", exc_info=True)
        return text_result(f"Error: {e}", is_error=True)

    return text_result(json.dumps(result, indent=2, ensure_ascii=False))


def server_info(holder: ClientHolder) -> Dict[str, Any]:
    return {
        "name": SERVER_NAME,
        "version": __version__,
        "connected": holder.connected,
        "n8n_url": holder.config.api_url if holder.config else None,
        "tools_available": len(TOOLS),
        "tool_categories": dict(TOOL_CATEGORIES),
    }


def create_server(
    config: Optional[N8nConfig] = None,
    *,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Server:
    """Create an MCP server bound to zero or one n8n connection"""
    server = Server(SERVER_NAME, version=__version__)
    holder = ClientHolder(config, http_transport)

    @server.list_tools()
    async def handle_list_tools() -> List[types.Tool]:
        return list(TOOLS)

    # Registered directly so the SDK does not validate arguments against the
    # input schemas; malformed arguments are reported by n8n itself.
    async def handle_call_tool(request: types.CallToolRequest) -> types.ServerResult:
        result = await call_tool(request.params.name, request.params.arguments or {}, holder)
        return types.ServerResult(result)

    server.request_handlers[types.CallToolRequest] = handle_call_tool

    @server.list_prompts()
    async def handle_list_prompts() -> List[types.Prompt]:
        return list(PROMPTS.values())

    @server.get_prompt()
    async def handle_get_prompt(name: str, arguments: Optional[Dict[str, str]]) -> types.GetPromptResult:
        if name not in PROMPT_TEXTS:
            raise ValueError(f"Unknown prompt: {name}")
        return types.GetPromptResult(
            description=PROMPTS[name].description,
            messages=[
                types.PromptMessage(
                    role="user",
                    content=types.TextContent(type="text", text=PROMPT_TEXTS[name]),
                )
            ],
        )

    @server.list_resources()
    async def handle_list_resources() -> List[types.Resource]:
        return [
            types.Resource(
                uri=SERVER_INFO_URI,
                name="n8n Server Info",
                description="Connection status and available tools for this n8n MCP server",
                mimeType="application/json",
            )
        ]

    @server.read_resource()
    async def handle_read_resource(uri: AnyUrl) -> Iterable[ReadResourceContents]:
        if str(uri).rstrip("/") != SERVER_INFO_URI:
            raise ValueError(f"Unknown resource: {uri}")
        return [
            ReadResourceContents(
                content=json.dumps(server_info(holder), indent=2),
                mime_type="application/json",
            )
        ]

    return server
