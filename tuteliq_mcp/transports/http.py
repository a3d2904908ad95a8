"""Multi-session HTTP binding on ``/mcp``.

POST without ``mcp-session-id`` opens a session, POST/GET/DELETE with it are
routed through the injected ``SessionRegistry``. Every fault that escapes a
handler is turned into a 500 and the affected session is torn down.
"""

import asyncio
import contextlib
import json
import logging
from collections import deque
from collections.abc import AsyncIterator
from typing import Any, cast

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse

from tuteliq_mcp.config import ServerConfig
from tuteliq_mcp.constants import (
    MAX_PENDING_NOTIFICATIONS,
    MCP_ENDPOINT_PATH,
    MCP_SESSION_ID_HEADER,
    SERVER_NAME,
    SERVER_VERSION,
)
from tuteliq_mcp.errors import InvalidSession, MalformedEnvelope, RoutingError, UnknownSession
from tuteliq_mcp.protocol.codec import PARSE_ERROR
from tuteliq_mcp.session import Session
from tuteliq_mcp.session_registry import SessionRegistry
from tuteliq_mcp.tool_registry import ToolRegistry

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "POST", "DELETE")
# Registered so that they reach the handler and get a JSON 405
REJECTED_METHODS = ("PUT", "PATCH", "OPTIONS")


class HttpSessionTransport:
    """Queue of server-initiated messages drained by the session's GET stream."""

    def __init__(self, max_pending: int = MAX_PENDING_NOTIFICATIONS) -> None:
        self._pending: deque[bytes] = deque(maxlen=max_pending)
        self._available = asyncio.Event()
        self.closed = False

    def __len__(self) -> int:
        return len(self._pending)

    async def send(self, message: bytes) -> None:
        if self.closed:
            return
        self._pending.append(message)
        self._available.set()

    async def close(self) -> None:
        self.closed = True
        self._pending.clear()
        self._available.set()

    async def next_message(self, timeout: float) -> bytes | None:
        """Next queued message, or None once closed or idle for ``timeout`` seconds."""
        while not self._pending:
            if self.closed:
                return None
            self._available.clear()
            try:
                await asyncio.wait_for(self._available.wait(), timeout)
            except asyncio.TimeoutError:
                return None
        return self._pending.popleft()


def _invalid_session(error: RoutingError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid or missing session ID", "code": error.code},
    )


def _method_not_allowed() -> JSONResponse:
    return JSONResponse(
        status_code=405,
        content={"error": "Method not allowed"},
        headers={"Allow": ", ".join(ALLOWED_METHODS)},
    )


def _parse_error(error: MalformedEnvelope) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "jsonrpc": "2.0",
            "id": None,
            "error": {"code": PARSE_ERROR, "message": error.reason},
        },
    )


def _is_batch(body: bytes) -> bool:
    return body.lstrip().startswith(b"[")


def _exchange_response(session_id: str, body: bytes, responses: list[bytes]) -> Response:
    headers = {MCP_SESSION_ID_HEADER: session_id}
    if not responses:
        return Response(status_code=202, headers=headers)
    messages = [json.loads(response) for response in responses]
    content: Any = messages if _is_batch(body) or len(messages) > 1 else messages[0]
    return JSONResponse(content=content, headers=headers)


def create_app(registry: SessionRegistry, config: ServerConfig) -> FastAPI:
    """Build the FastAPI app around an explicitly owned session registry."""

    @contextlib.asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        async with registry.run():
            yield

    app = FastAPI(title="Tuteliq MCP Server", version=SERVER_VERSION, lifespan=lifespan)
    app.state.session_registry = registry
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[MCP_SESSION_ID_HEADER],
    )

    async def _teardown(session_id: str | None) -> None:
        if not session_id:
            return
        with contextlib.suppress(UnknownSession):
            await registry.close_session(session_id, reason="internal_error")

    async def _handle_post(request: Request, session_id: str | None) -> Response:
        body = await request.body()
        if session_id is None:
            transport = HttpSessionTransport()
            session_id = await registry.create_session(transport)
            request.state.mcp_session_id = session_id
        responses = await registry.route_request(session_id, body, final=True)
        return _exchange_response(session_id, body, responses)

    async def _event_stream(session: Session) -> AsyncIterator[bytes]:
        transport = cast(HttpSessionTransport, session.transport)
        while True:
            message = await transport.next_message(config.sse_idle_timeout)
            if message is None:
                return
            session.touch()
            yield b"event: message\ndata: " + message.rstrip(b"\n") + b"\n\n"

    def _handle_get(session_id: str | None) -> Response:
        if session_id is None:
            raise InvalidSession("Missing session ID")
        session = registry.get_session(session_id)
        if not isinstance(session.transport, HttpSessionTransport):
            raise InvalidSession("Session has no HTTP delivery stream")
        return StreamingResponse(
            _event_stream(session),
            media_type="text/event-stream",
            headers={MCP_SESSION_ID_HEADER: session_id, "Cache-Control": "no-cache"},
        )

    async def _handle_delete(session_id: str | None) -> Response:
        if session_id is None:
            raise InvalidSession("Missing session ID")
        await registry.close_session(session_id)
        return JSONResponse(
            content={"status": "closed"}, headers={MCP_SESSION_ID_HEADER: session_id}
        )

    @app.api_route(MCP_ENDPOINT_PATH, methods=[*ALLOWED_METHODS, *REJECTED_METHODS])
    async def mcp_endpoint(request: Request) -> Response:
        """MCP streamable endpoint; see the module docstring for the method table."""
        session_id = request.headers.get(MCP_SESSION_ID_HEADER) or None
        try:
            if request.method == "POST":
                return await _handle_post(request, session_id)
            if request.method == "GET":
                return _handle_get(session_id)
            if request.method == "DELETE":
                return await _handle_delete(session_id)
            return _method_not_allowed()
        except RoutingError as e:
            logger.info("Rejected %s %s: %s", request.method, MCP_ENDPOINT_PATH, e)
            return _invalid_session(e)
        except MalformedEnvelope as e:
            return _parse_error(e)
        except Exception:
            affected = getattr(request.state, "mcp_session_id", None) or session_id
            logger.exception(
                "mcp_endpoint_failed method=%s session_id=%s",
                request.method,
                affected,
                extra={"session_id": affected},
            )
            await _teardown(affected)
            return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/health")
    async def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        return {
            "status": "ok",
            "service": SERVER_NAME,
            "version": SERVER_VERSION,
            "sessions": len(registry),
        }

    return app


def run_http(config: ServerConfig, tools: ToolRegistry) -> None:
    """Serve the HTTP binding with uvicorn until interrupted."""
    registry = SessionRegistry(
        tools,
        idle_timeout=config.session_idle_timeout,
        reap_interval=config.reap_interval,
    )
    app = create_app(registry, config)
    logger.info(
        "Tuteliq MCP server listening on http://%s:%s%s",
        config.host,
        config.port,
        MCP_ENDPOINT_PATH,
    )
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())
