"""
Entry point for the n8n Management MCP server

Usage (stdio - for Claude Desktop / Cursor / VS Code):
    N8N_URL=https://your-n8n.com N8N_API_KEY=your_key n8n-management-mcp

Usage (stateful streamable HTTP):
    N8N_URL=https://your-n8n.com N8N_API_KEY=your_key n8n-management-mcp --http --port 3000

Usage (stateless streamable HTTP, settings per request as query parameters):
    n8n-management-mcp --stateless
    POST /mcp?N8N_URL=https://your-n8n.com&N8N_API_KEY=your_key
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import uvicorn
from mcp.server.stdio import stdio_server
from starlette.applications import Starlette

from n8n_mcp import __version__
from n8n_mcp.config import LOG_LEVEL, MCP_HTTP_HOST, MCP_HTTP_PORT, MCP_TRANSPORT, TRANSPORTS, N8nConfig
from n8n_mcp.http_transport import create_stateful_app, create_stateless_app
from n8n_mcp.server import create_server
from n8n_mcp.tools import TOOLS

logger = logging.getLogger("n8n-mcp-server")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="n8n-management-mcp",
        description="MCP server exposing the n8n REST API as tools",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--http", dest="transport", action="store_const", const="http",
                      help="Serve stateful streamable HTTP on /mcp")
    mode.add_argument("--stateless", dest="transport", action="store_const", const="stateless",
                      help="Serve stateless streamable HTTP; n8n settings come from query parameters")
    mode.add_argument("--stdio", dest="transport", action="store_const", const="stdio",
                      help="Serve over standard input/output (default)")
    parser.add_argument("--host", default=MCP_HTTP_HOST, help="Bind host for HTTP modes")
    parser.add_argument("--port", type=int, default=MCP_HTTP_PORT, help="Listening port for HTTP modes")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)
    if args.transport is None:
        args.transport = MCP_TRANSPORT
    if args.transport not in TRANSPORTS:
        parser.error(f"invalid MCP_TRANSPORT {args.transport!r} (choose from {', '.join(TRANSPORTS)})")
    return args


def setup_logging(level: str = LOG_LEVEL) -> None:
    # stdout carries the MCP protocol in stdio mode, so logs go to stderr
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


async def run_stdio_server(config: Optional[N8nConfig]) -> None:
    """Run MCP server with stdio transport"""
    logger.info("🚀 Starting n8n MCP Server with stdio transport")
    server = create_server(config)
    async with stdio_server() as (read_stream, write_stream):
        logger.info("✅ Ready for MCP client")
        await server.run(read_stream, write_stream, server.create_initialization_options())
    logger.info("stdin closed, shutting down")


async def run_http_server(app: Starlette, host: str, port: int) -> None:
    """Run an HTTP app under uvicorn until interrupted"""
    logger.info(f"Listening on http://{host}:{port}")
    logger.info(f"MCP endpoint: http://{host}:{port}/mcp")
    config = uvicorn.Config(app, host=host, port=port, log_level=LOG_LEVEL.lower())
    server = uvicorn.Server(config)
    await server.serve()


async def run(args: argparse.Namespace) -> None:
    if args.transport == "stateless":
        logger.info("🚀 Starting n8n MCP Server with stateless streamable HTTP transport")
        logger.info(f"📊 Tools available: {len(TOOLS)}")
        await run_http_server(create_stateless_app(), args.host, args.port)
        return

    config = N8nConfig.from_env()
    if config is None:
        logger.warning(
            "N8N_URL and N8N_API_KEY are not set: tools can be listed, "
            "but every tool call will fail until they are configured"
        )
    else:
        logger.info(f"Connected to: {config.api_url}{config.api_path}")
    logger.info(f"📊 Tools available: {len(TOOLS)}")

    if args.transport == "http":
        logger.info("🚀 Starting n8n MCP Server with stateful streamable HTTP transport")
        await run_http_server(create_stateful_app(config), args.host, args.port)
    else:
        await run_stdio_server(config)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging()
    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
