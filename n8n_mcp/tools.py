"""
MCP tool definitions for n8n management

31 tools across workflows, executions, credentials, tags, variables and
users. The catalog is static: it is served verbatim on every tools/list,
whether or not an n8n connection has been configured.
"""

from typing import Dict, Optional, Tuple

from mcp.types import Tool, ToolAnnotations


def _hints(
    title: str,
    read_only: bool = False,
    destructive: bool = False,
    idempotent: Optional[bool] = None,
) -> ToolAnnotations:
    return ToolAnnotations(
        title=title,
        readOnlyHint=read_only,
        destructiveHint=destructive,
        idempotentHint=idempotent,
        openWorldHint=True,
    )


def _id_schema(description: str) -> Dict:
    return {
        "type": "object",
        "properties": {
            "id": {"type": "string", "description": description},
        },
        "required": ["id"],
    }


_PAGINATION = {
    "limit": {"type": "integer", "description": "Maximum number of items to return (optional)"},
    "cursor": {"type": "string", "description": "Pagination cursor from a previous response (optional)"},
}


WORKFLOW_TOOLS = (
    Tool(
        name="n8n_list_workflows",
        description="Retrieve all workflows with their status, tags, and metadata. Returns workflow ID, name, "
        "active status, creation date, and tags. Optionally filter by active state, tag names or name. "
        "Use this to browse available automations or find a specific workflow.",
        inputSchema={
            "type": "object",
            "properties": {
                "active": {"type": "boolean", "description": "Only return active (true) or inactive (false) workflows"},
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Only return workflows carrying all of these tag names",
                },
                "name": {"type": "string", "description": "Only return workflows with this exact name"},
                "projectId": {"type": "string", "description": "Only return workflows of this project"},
                **_PAGINATION,
            },
        },
        annotations=_hints("List Workflows", read_only=True),
    ),
    Tool(
        name="n8n_get_workflow",
        description="Get the complete workflow definition including all nodes, connections, and settings. "
        "Use this to inspect workflow logic before modifying or executing it.",
        inputSchema=_id_schema("Workflow ID from n8n_list_workflows"),
        annotations=_hints("Get Workflow", read_only=True),
    ),
    Tool(
        name="n8n_create_workflow",
        description="Create a new automation workflow from a name, a node array and a connection map. "
        "Optionally activate it immediately. Returns the new workflow with its assigned ID.",
        inputSchema={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Descriptive workflow name"},
                "nodes": {"type": "array", "description": "Array of node objects with type, parameters, position"},
                "connections": {"type": "object", "description": "Connection map linking node outputs to inputs"},
                "settings": {"type": "object", "description": "Workflow settings (optional)"},
                "active": {"type": "boolean", "description": "Start workflow immediately (default: false)"},
            },
            "required": ["name", "nodes", "connections"],
        },
        annotations=_hints("Create Workflow", idempotent=False),
    ),
    Tool(
        name="n8n_update_workflow",
        description="Modify an existing workflow: rename it, add or remove nodes, or change connections. "
        "Deactivate the workflow before structural changes. Returns the updated workflow.",
        inputSchema={
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "Workflow ID to modify"},
                "name": {"type": "string", "description": "New workflow name (optional)"},
                "nodes": {"type": "array", "description": "Updated node array (optional)"},
                "connections": {"type": "object", "description": "Updated connection map (optional)"},
                "settings": {"type": "object", "description": "Updated workflow settings (optional)"},
            },
            "required": ["id"],
        },
        annotations=_hints("Update Workflow", idempotent=True),
    ),
    Tool(
        name="n8n_delete_workflow",
        description="Permanently delete a workflow and its execution history. This cannot be undone. "
        "Deactivate the workflow first.",
        inputSchema=_id_schema("Workflow ID to permanently delete"),
        annotations=_hints("Delete Workflow", destructive=True, idempotent=True),
    ),
    Tool(
        name="n8n_activate_workflow",
        description="Start a workflow listening for its triggers (webhooks, schedules, etc). "
        "The workflow must contain a valid trigger node.",
        inputSchema=_id_schema("Workflow ID to activate"),
        annotations=_hints("Activate Workflow", idempotent=True),
    ),
    Tool(
        name="n8n_deactivate_workflow",
        description="Stop a workflow from listening to triggers. The configuration is kept. "
        "Use before making structural changes.",
        inputSchema=_id_schema("Workflow ID to deactivate"),
        annotations=_hints("Deactivate Workflow", idempotent=True),
    ),
    Tool(
        name="n8n_execute_workflow",
        description="Manually trigger a workflow execution with optional input data. Useful for testing "
        "without webhooks. Returns the execution ID. The workflow does not need to be active.",
        inputSchema={
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "Workflow ID to execute"},
                "data": {"type": "object", "description": "Input data passed to the workflow start node (optional)"},
            },
            "required": ["id"],
        },
        annotations=_hints("Execute Workflow", idempotent=False),
    ),
    Tool(
        name="n8n_get_workflow_tags",
        description="Retrieve the tags assigned to a workflow.",
        inputSchema=_id_schema("Workflow ID"),
        annotations=_hints("Get Workflow Tags", read_only=True),
    ),
    Tool(
        name="n8n_update_workflow_tags",
        description="Assign tags to a workflow. Replaces the existing tags completely, "
        'so pass the full list (e.g. "production", "testing", or team names).',
        inputSchema={
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "Workflow ID"},
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Complete array of tag names (replaces existing)",
                },
            },
            "required": ["id", "tags"],
        },
        annotations=_hints("Update Workflow Tags", idempotent=True),
    ),
)

EXECUTION_TOOLS = (
    Tool(
        name="n8n_list_executions",
        description="Retrieve execution history with status, timestamps, and workflow info. Filter by workflow "
        "ID or status, or omit filters to get all executions. Use this to monitor automations or find failures.",
        inputSchema={
            "type": "object",
            "properties": {
                "workflowId": {"type": "string", "description": "Only executions of this workflow (optional)"},
                "status": {
                    "type": "string",
                    "enum": ["success", "error", "waiting", "running", "canceled"],
                    "description": "Only executions with this status (optional)",
                },
                "includeData": {"type": "boolean", "description": "Include full execution data (optional)"},
                **_PAGINATION,
            },
        },
        annotations=_hints("List Executions", read_only=True),
    ),
    Tool(
        name="n8n_get_execution",
        description="Get detailed execution data including node outputs, error messages, and timing. "
        "Essential for debugging failed workflows.",
        inputSchema={
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "Execution ID from n8n_list_executions"},
                "includeData": {"type": "boolean", "description": "Include full node data (optional)"},
            },
            "required": ["id"],
        },
        annotations=_hints("Get Execution", read_only=True),
    ),
    Tool(
        name="n8n_delete_execution",
        description="Permanently remove an execution record from history, e.g. to clean up test runs.",
        inputSchema=_id_schema("Execution ID to permanently remove"),
        annotations=_hints("Delete Execution", destructive=True, idempotent=True),
    ),
    Tool(
        name="n8n_retry_execution",
        description="Rerun a failed execution with the same input data. Creates a new execution and keeps "
        "the original log. Only works with failed executions.",
        inputSchema=_id_schema("Failed execution ID to retry"),
        annotations=_hints("Retry Execution", idempotent=False),
    ),
)

CREDENTIAL_TOOLS = (
    Tool(
        name="n8n_create_credential",
        description="Store new credentials for a service such as GitHub, Slack, or a database. "
        "Call n8n_get_credential_schema first to see the required fields for the type.",
        inputSchema={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": 'Descriptive name (e.g. "Production GitHub Token")'},
                "type": {"type": "string", "description": "Credential type (e.g. githubApi, slackApi)"},
                "data": {"type": "object", "description": "Authentication data (API keys, OAuth tokens, passwords)"},
            },
            "required": ["name", "type", "data"],
        },
        annotations=_hints("Create Credential", idempotent=False),
    ),
    Tool(
        name="n8n_update_credential",
        description="Update a credential's name or authentication data, e.g. when rotating API keys. "
        "Workflows using the credential pick up the change immediately.",
        inputSchema={
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "Credential ID to update"},
                "name": {"type": "string", "description": "New name (optional)"},
                "data": {"type": "object", "description": "Updated authentication data (optional)"},
            },
            "required": ["id"],
        },
        annotations=_hints("Update Credential", idempotent=True),
    ),
    Tool(
        name="n8n_delete_credential",
        description="Remove a stored credential. Credentials used by active workflows cannot be deleted.",
        inputSchema=_id_schema("Credential ID to permanently delete"),
        annotations=_hints("Delete Credential", destructive=True, idempotent=True),
    ),
    Tool(
        name="n8n_get_credential_schema",
        description="Get the required fields and their format for a credential type before creating it.",
        inputSchema={
            "type": "object",
            "properties": {
                "credentialType": {
                    "type": "string",
                    "description": "Credential type (e.g. githubApi, googleDriveOAuth2Api, httpBasicAuth)",
                },
            },
            "required": ["credentialType"],
        },
        annotations=_hints("Get Credential Schema", read_only=True),
    ),
)

TAG_TOOLS = (
    Tool(
        name="n8n_list_tags",
        description="Retrieve all tags available for organizing workflows (ID and name).",
        inputSchema={"type": "object", "properties": dict(_PAGINATION)},
        annotations=_hints("List Tags", read_only=True),
    ),
    Tool(
        name="n8n_get_tag",
        description="Get a single tag by ID. Useful to validate a tag exists before bulk operations.",
        inputSchema=_id_schema("Tag ID from n8n_list_tags"),
        annotations=_hints("Get Tag", read_only=True),
    ),
    Tool(
        name="n8n_create_tag",
        description='Create a new tag for workflow categorization, e.g. "production", "staging" or "urgent".',
        inputSchema={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Tag name (case-sensitive, spaces allowed)"},
            },
            "required": ["name"],
        },
        annotations=_hints("Create Tag", idempotent=False),
    ),
    Tool(
        name="n8n_update_tag",
        description="Rename an existing tag. Every workflow using it reflects the new name.",
        inputSchema={
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "Tag ID to rename"},
                "name": {"type": "string", "description": "New tag name"},
            },
            "required": ["id", "name"],
        },
        annotations=_hints("Update Tag", idempotent=True),
    ),
    Tool(
        name="n8n_delete_tag",
        description="Delete a tag. It is removed from every workflow using it; the workflows themselves are kept.",
        inputSchema=_id_schema("Tag ID to permanently delete"),
        annotations=_hints("Delete Tag", destructive=True, idempotent=True),
    ),
)

VARIABLE_TOOLS = (
    Tool(
        name="n8n_list_variables",
        description="Retrieve all instance variables (ID, key, value). Variables are shared by every workflow "
        "through $vars.",
        inputSchema={"type": "object", "properties": dict(_PAGINATION)},
        annotations=_hints("List Variables", read_only=True),
    ),
    Tool(
        name="n8n_create_variable",
        description="Create an instance variable that workflows can read through $vars.<key>.",
        inputSchema={
            "type": "object",
            "properties": {
                "key": {"type": "string", "description": "Variable name (letters, digits and underscores)"},
                "value": {"type": "string", "description": "Variable value"},
            },
            "required": ["key", "value"],
        },
        annotations=_hints("Create Variable", idempotent=False),
    ),
    Tool(
        name="n8n_update_variable",
        description="Change the key or value of an existing variable.",
        inputSchema={
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "Variable ID from n8n_list_variables"},
                "key": {"type": "string", "description": "Variable name"},
                "value": {"type": "string", "description": "New value"},
            },
            "required": ["id", "key", "value"],
        },
        annotations=_hints("Update Variable", idempotent=True),
    ),
    Tool(
        name="n8n_delete_variable",
        description="Delete an instance variable. Workflows still referencing it will read an empty value.",
        inputSchema=_id_schema("Variable ID to permanently delete"),
        annotations=_hints("Delete Variable", destructive=True, idempotent=True),
    ),
)

USER_TOOLS = (
    Tool(
        name="n8n_list_users",
        description="Retrieve all n8n users with their roles and status. Only available to the instance owner.",
        inputSchema={
            "type": "object",
            "properties": {
                "includeRole": {"type": "boolean", "description": "Include each user's role (optional)"},
                **_PAGINATION,
            },
        },
        annotations=_hints("List Users", read_only=True),
    ),
    Tool(
        name="n8n_get_user",
        description="Get user details by ID or e-mail address. Only available to the instance owner.",
        inputSchema={
            "type": "object",
            "properties": {
                "identifier": {"type": "string", "description": "User ID or email address"},
            },
            "required": ["identifier"],
        },
        annotations=_hints("Get User", read_only=True),
    ),
    Tool(
        name="n8n_delete_user",
        description="Remove a user from the instance. Only available to the instance owner; the owner account "
        "cannot be deleted. Workflows created by the user remain.",
        inputSchema=_id_schema("User ID to permanently delete (not email)"),
        annotations=_hints("Delete User", destructive=True, idempotent=True),
    ),
    Tool(
        name="n8n_update_user_role",
        description="Change a user's permission level to admin or member. Only available to the instance owner.",
        inputSchema={
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "User ID to modify"},
                "role": {"type": "string", "enum": ["admin", "member"], "description": "New permission level"},
            },
            "required": ["id", "role"],
        },
        annotations=_hints("Update User Role", idempotent=True),
    ),
)

TOOLS: Tuple[Tool, ...] = (
    WORKFLOW_TOOLS + EXECUTION_TOOLS + CREDENTIAL_TOOLS + TAG_TOOLS + VARIABLE_TOOLS + USER_TOOLS
)

TOOL_CATEGORIES: Dict[str, int] = {
    "workflows": len(WORKFLOW_TOOLS),
    "executions": len(EXECUTION_TOOLS),
    "credentials": len(CREDENTIAL_TOOLS),
    "tags": len(TAG_TOOLS),
    "variables": len(VARIABLE_TOOLS),
    "users": len(USER_TOOLS),
}

TOOL_NAMES = tuple(tool.name for tool in TOOLS)
