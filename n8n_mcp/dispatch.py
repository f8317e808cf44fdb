"""
Tool dispatch table

Maps each tool name to the N8nClient call it performs. Entries only pick
named fields out of the untyped argument map; shape validation is left to
the n8n API, so a missing required argument comes back as an n8n 4xx.
"""

from typing import Any, Awaitable, Callable, Dict, Mapping

from n8n_mcp.errors import UnknownToolError
from n8n_mcp.n8n_client import N8nClient
from n8n_mcp.tools import TOOL_NAMES

ToolCall = Callable[[N8nClient, Dict[str, Any]], Awaitable[Any]]


def _without_id(args: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in args.items() if key != "id"}


DISPATCH: Mapping[str, ToolCall] = {
    # Workflows
    "n8n_list_workflows": lambda client, args: client.list_workflows(
        active=args.get("active"),
        tags=args.get("tags"),
        name=args.get("name"),
        project_id=args.get("projectId"),
        limit=args.get("limit"),
        cursor=args.get("cursor"),
    ),
    "n8n_get_workflow": lambda client, args: client.get_workflow(args.get("id")),
    "n8n_create_workflow": lambda client, args: client.create_workflow(dict(args)),
    "n8n_update_workflow": lambda client, args: client.update_workflow(args.get("id"), _without_id(args)),
    "n8n_delete_workflow": lambda client, args: client.delete_workflow(args.get("id")),
    "n8n_activate_workflow": lambda client, args: client.activate_workflow(args.get("id")),
    "n8n_deactivate_workflow": lambda client, args: client.deactivate_workflow(args.get("id")),
    "n8n_execute_workflow": lambda client, args: client.execute_workflow(args.get("id"), args.get("data")),
    "n8n_get_workflow_tags": lambda client, args: client.get_workflow_tags(args.get("id")),
    "n8n_update_workflow_tags": lambda client, args: client.update_workflow_tags(args.get("id"), args.get("tags")),
    # Executions
    "n8n_list_executions": lambda client, args: client.list_executions(
        workflow_id=args.get("workflowId"),
        status=args.get("status"),
        limit=args.get("limit"),
        cursor=args.get("cursor"),
        include_data=args.get("includeData"),
    ),
    "n8n_get_execution": lambda client, args: client.get_execution(args.get("id"), args.get("includeData")),
    "n8n_delete_execution": lambda client, args: client.delete_execution(args.get("id")),
    "n8n_retry_execution": lambda client, args: client.retry_execution(args.get("id")),
    # Credentials
    "n8n_create_credential": lambda client, args: client.create_credential(dict(args)),
    "n8n_update_credential": lambda client, args: client.update_credential(args.get("id"), _without_id(args)),
    "n8n_delete_credential": lambda client, args: client.delete_credential(args.get("id")),
    "n8n_get_credential_schema": lambda client, args: client.get_credential_schema(args.get("credentialType")),
    # Tags
    "n8n_list_tags": lambda client, args: client.list_tags(limit=args.get("limit"), cursor=args.get("cursor")),
    "n8n_get_tag": lambda client, args: client.get_tag(args.get("id")),
    "n8n_create_tag": lambda client, args: client.create_tag(args.get("name")),
    "n8n_update_tag": lambda client, args: client.update_tag(args.get("id"), args.get("name")),
    "n8n_delete_tag": lambda client, args: client.delete_tag(args.get("id")),
    # Variables
    "n8n_list_variables": lambda client, args: client.list_variables(
        limit=args.get("limit"), cursor=args.get("cursor")
    ),
    "n8n_create_variable": lambda client, args: client.create_variable(args.get("key"), args.get("value")),
    "n8n_update_variable": lambda client, args: client.update_variable(
        args.get("id"), args.get("key"), args.get("value")
    ),
    "n8n_delete_variable": lambda client, args: client.delete_variable(args.get("id")),
    # Users
    "n8n_list_users": lambda client, args: client.list_users(
        include_role=args.get("includeRole"), limit=args.get("limit"), cursor=args.get("cursor")
    ),
    "n8n_get_user": lambda client, args: client.get_user(args.get("identifier")),
    "n8n_delete_user": lambda client, args: client.delete_user(args.get("id")),
    "n8n_update_user_role": lambda client, args: client.update_user_role(args.get("id"), args.get("role")),
}

if set(DISPATCH) != set(TOOL_NAMES):
    raise RuntimeError(
        f"Tool catalog and dispatch table are out of sync: "
        f"{sorted(set(DISPATCH) ^ set(TOOL_NAMES))}"
    )


def is_known_tool(name: str) -> bool:
    return name in DISPATCH


async def handle_tool_call(name: str, arguments: Dict[str, Any], client: N8nClient) -> Any:
    """Route a tool call to the matching N8nClient method and return its raw result"""
    call = DISPATCH.get(name)
    if call is None:
        raise UnknownToolError(name)
    return await call(client, arguments)
