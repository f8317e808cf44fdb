"""
Streamable HTTP hosting for the n8n MCP server

Two Starlette applications share the same server factory:

- ``create_stateful_app``: long-lived process, one MCP server + transport
  pair per client session. Sessions are minted on ``initialize``, looked up
  by the ``mcp-session-id`` header and closed on ``DELETE /mcp``, when the
  transport closes, or on shutdown.
- ``create_stateless_app``: a fresh server + transport per request, with
  the n8n connection settings read from the request's query string. Suited
  to serverless and gateway deployments.
"""

import contextlib
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

import anyio
import httpx
from anyio.abc import TaskGroup, TaskStatus
from mcp.server import Server
from mcp.server.streamable_http import MCP_SESSION_ID_HEADER, StreamableHTTPServerTransport
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.types import Message, Receive, Scope, Send

from n8n_mcp import SERVER_NAME, __version__
from n8n_mcp.config import N8nConfig
from n8n_mcp.server import create_server
from n8n_mcp.tools import TOOLS

logger = logging.getLogger(__name__)

BAD_REQUEST = -32000
INTERNAL_ERROR = -32603

CORS_HEADERS = ["Content-Type", MCP_SESSION_ID_HEADER, "Accept", "mcp-protocol-version"]


def jsonrpc_error(code: int, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        {"jsonrpc": "2.0", "error": {"code": code, "message": message}, "id": None},
        status_code=status_code,
    )


def is_initialize_request(body: bytes) -> bool:
    """True if the JSON-RPC payload (single or batch) contains an initialize request"""
    try:
        payload = json.loads(body)
    except ValueError:
        return False
    messages = payload if isinstance(payload, list) else [payload]
    return any(
        isinstance(message, dict) and message.get("method") == "initialize" and "id" in message
        for message in messages
    )


def _replay_body(body: bytes, receive: Receive) -> Receive:
    """Hand an already-read request body to the next ASGI consumer"""
    sent = False

    async def replay() -> Message:
        nonlocal sent
        if not sent:
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay


class _ResponseTracker:
    """Wraps ``send`` to remember the response status once it has started"""

    def __init__(self, send: Send):
        self._send = send
        self.status: Optional[int] = None

    @property
    def started(self) -> bool:
        return self.status is not None

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.status = message["status"]
        await self._send(message)


def _add_cors(app: Starlette) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=CORS_HEADERS,
        expose_headers=[MCP_SESSION_ID_HEADER],
    )


# ==================== Stateful sessions ====================


class SessionState(Enum):
    NO_SESSION = "no_session"
    INITIALIZING = "initializing"
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass
class HttpSession:
    session_id: str
    transport: StreamableHTTPServerTransport
    server: Server
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    state: SessionState = SessionState.INITIALIZING


class SessionRegistry:
    """
    Table of live HTTP sessions keyed by session ID.

    Each operation completes without awaiting, so under the single event
    loop no other request can observe a half-applied change.
    """

    def __init__(self):
        self._sessions: Dict[str, HttpSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def ids(self) -> List[str]:
        return list(self._sessions)

    def register(self, session: HttpSession) -> None:
        if session.session_id in self._sessions:
            raise ValueError(f"Session {session.session_id} is already registered")
        self._sessions[session.session_id] = session

    def lookup(self, session_id: Optional[str]) -> Optional[HttpSession]:
        if not session_id:
            return None
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> Optional[HttpSession]:
        session = self._sessions.pop(session_id, None)
        if session is not None:
            session.state = SessionState.CLOSED
        return session

    async def close_all(self) -> None:
        """Terminate and deregister every live session"""
        for session_id in self.ids():
            session = self.remove(session_id)
            if session is None:
                continue
            try:
                await session.transport.terminate()
            except Exception as e:
                logger.warning(f"Error terminating session {session_id}: {e}")
            logger.info(f"MCP session {session_id} closed on shutdown")


class StatefulSessionManager:
    """ASGI endpoint for ``/mcp`` that owns the session table"""

    def __init__(
        self,
        config: Optional[N8nConfig],
        json_response: bool = False,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.json_response = json_response
        self._http_transport = http_transport
        self.sessions = SessionRegistry()
        self._task_group: Optional[TaskGroup] = None

    @contextlib.asynccontextmanager
    async def run(self):
        """Keep the session task group alive for the lifetime of the app"""
        async with anyio.create_task_group() as tg:
            self._task_group = tg
            logger.info("Streamable HTTP session manager started")
            try:
                yield
            finally:
                with anyio.CancelScope(shield=True):
                    logger.info(f"Closing {len(self.sessions)} MCP session(s)")
                    await self.sessions.close_all()
                tg.cancel_scope.cancel()
                self._task_group = None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        tracker = _ResponseTracker(send)
        try:
            await self._handle(scope, receive, tracker)
        except Exception as e:
            logger.error(f"Error handling MCP request: {e}", exc_info=True)
            if not tracker.started:
                response = jsonrpc_error(INTERNAL_ERROR, "Internal server error", 500)
                await response(scope, receive, tracker)

    async def _handle(self, scope: Scope, receive: Receive, send: _ResponseTracker) -> None:
        if self._task_group is None:
            raise RuntimeError("Session manager is not running")

        request = Request(scope, receive)
        session_id = request.headers.get(MCP_SESSION_ID_HEADER)
        session = self.sessions.lookup(session_id)
        if session is not None and session.state is not SessionState.ACTIVE:
            session = None

        if session is not None:
            await session.transport.handle_request(scope, receive, send)
            if request.method == "DELETE" and session.transport.is_terminated:
                self.sessions.remove(session.session_id)
                logger.info(f"MCP session {session.session_id} terminated by client")
            return

        if request.method == "POST" and session_id is None:
            body = await request.body()
            if is_initialize_request(body):
                await self._start_session(scope, _replay_body(body, receive), send)
                return

        message = "Bad Request: No valid session ID provided"
        if session_id is not None:
            message = f"Bad Request: Unknown session ID {session_id}"
        response = jsonrpc_error(BAD_REQUEST, message, 400)
        await response(scope, receive, send)

    async def _start_session(self, scope: Scope, receive: Receive, send: _ResponseTracker) -> None:
        session_id = uuid4().hex
        transport = StreamableHTTPServerTransport(
            mcp_session_id=session_id,
            is_json_response_enabled=self.json_response,
        )
        server = create_server(self.config, http_transport=self._http_transport)
        session = HttpSession(session_id=session_id, transport=transport, server=server)
        self.sessions.register(session)
        logger.info(f"Created MCP session {session_id}")

        async def run_server(*, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
            async with transport.connect() as (read_stream, write_stream):
                task_status.started()
                try:
                    await server.run(
                        read_stream,
                        write_stream,
                        server.create_initialization_options(),
                        stateless=False,
                    )
                except Exception as e:
                    logger.error(f"MCP session {session_id} crashed: {e}", exc_info=True)
                finally:
                    if self.sessions.remove(session_id) is not None:
                        logger.info(f"MCP session {session_id} closed by transport")

        await self._task_group.start(run_server)
        try:
            await transport.handle_request(scope, receive, send)
        except BaseException:
            with anyio.CancelScope(shield=True):
                await self._discard(session_id, transport, "initialize failed")
            raise

        if send.status is not None and send.status >= 400:
            await self._discard(session_id, transport, f"status {send.status}")
        elif session.state is SessionState.INITIALIZING:
            session.state = SessionState.ACTIVE

    async def _discard(self, session_id: str, transport: StreamableHTTPServerTransport, reason: str) -> None:
        """Drop a session whose initialize request never completed"""
        self.sessions.remove(session_id)
        await transport.terminate()
        logger.info(f"MCP session {session_id} discarded ({reason})")


def _info_payload(mode: str, **extra: Any) -> Dict[str, Any]:
    return {
        "name": SERVER_NAME,
        "version": __version__,
        "status": "ok",
        "tools": len(TOOLS),
        "transport": "streamable-http",
        "mode": mode,
        **extra,
        "endpoints": {"mcp": "/mcp"},
    }


def create_stateful_app(
    config: Optional[N8nConfig],
    *,
    json_response: bool = False,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Starlette:
    """Create the multi-session streamable HTTP application"""
    manager = StatefulSessionManager(config, json_response=json_response, http_transport=http_transport)

    async def http_root(request: Request) -> JSONResponse:
        """Liveness and server information"""
        return JSONResponse(
            _info_payload(
                "stateful",
                sessions=len(manager.sessions),
                n8n_url=config.api_url if config else None,
            )
        )

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        async with manager.run():
            yield

    app = Starlette(
        routes=[
            Route("/", http_root, methods=["GET"]),
            Route("/mcp", manager, methods=["GET", "POST", "DELETE"]),
        ],
        lifespan=lifespan,
    )
    _add_cors(app)
    app.state.session_manager = manager
    return app


# ==================== Stateless requests ====================


class StatelessEndpoint:
    """ASGI endpoint for ``/mcp`` that serves every request with a fresh server"""

    def __init__(self, http_transport: Optional[httpx.AsyncBaseTransport] = None):
        self._http_transport = http_transport

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        if request.method != "POST":
            response = jsonrpc_error(BAD_REQUEST, "Method not allowed. Use POST.", 405)
            await response(scope, receive, send)
            return

        try:
            config = N8nConfig.from_query(request.query_params)
        except ValueError as e:
            response = jsonrpc_error(BAD_REQUEST, f"Bad Request: {e}", 400)
            await response(scope, receive, send)
            return

        tracker = _ResponseTracker(send)
        try:
            await self._serve_once(config, scope, receive, tracker)
        except Exception as e:
            logger.error(f"Error handling stateless MCP request: {e}", exc_info=True)
            if not tracker.started:
                response = jsonrpc_error(INTERNAL_ERROR, "Internal server error", 500)
                await response(scope, receive, tracker)

    async def _serve_once(self, config: Optional[N8nConfig], scope: Scope, receive: Receive, send: Send) -> None:
        server = create_server(config, http_transport=self._http_transport)
        transport = StreamableHTTPServerTransport(mcp_session_id=None, is_json_response_enabled=True)

        async def run_server(*, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
            async with transport.connect() as (read_stream, write_stream):
                task_status.started()
                await server.run(
                    read_stream,
                    write_stream,
                    server.create_initialization_options(),
                    stateless=True,
                )

        async with anyio.create_task_group() as tg:
            await tg.start(run_server)
            try:
                await transport.handle_request(scope, receive, send)
            finally:
                await transport.terminate()
                tg.cancel_scope.cancel()


def create_stateless_app(*, http_transport: Optional[httpx.AsyncBaseTransport] = None) -> Starlette:
    """Create the per-request streamable HTTP application"""

    async def http_root(request: Request) -> JSONResponse:
        return JSONResponse(_info_payload("stateless"))

    app = Starlette(
        routes=[
            Route("/", http_root, methods=["GET"]),
            Route("/mcp", StatelessEndpoint(http_transport)),
        ],
    )
    _add_cors(app)
    return app
