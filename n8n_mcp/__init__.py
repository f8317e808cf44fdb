"""
n8n Management MCP Server

Exposes the n8n REST API as Model Context Protocol tools over stdio,
stateful streamable HTTP, or stateless streamable HTTP.
"""

__version__ = "1.1.0"

SERVER_NAME = "n8n-management-mcp"
