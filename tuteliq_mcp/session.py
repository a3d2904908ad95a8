"""One MCP conversation between a single caller and the tool registry."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Protocol

from mcp.shared.version import SUPPORTED_PROTOCOL_VERSIONS
from mcp.types import LATEST_PROTOCOL_VERSION

from tuteliq_mcp.constants import SERVER_NAME, SERVER_VERSION
from tuteliq_mcp.errors import MalformedEnvelope, SessionClosed, ToolError
from tuteliq_mcp.protocol.codec import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    Envelope,
    EnvelopeKind,
    ProtocolCodec,
)
from tuteliq_mcp.tool_registry import ToolRegistry, ToolResult

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class TransportHandle(Protocol):
    """Per-binding channel for server-initiated messages."""

    async def send(self, message: bytes) -> None: ...

    async def close(self) -> None: ...


OnClose = Callable[["Session"], Awaitable[None]]


class Session:
    """Stateful logical connection owning one codec and one cancellation scope.

    ``handle_inbound`` runs under a per-session lock, so envelopes are
    dispatched and answered strictly in arrival order. Independent sessions
    never share a lock.
    """

    def __init__(
        self,
        session_id: str,
        transport: TransportHandle,
        tools: ToolRegistry,
        on_close: OnClose | None = None,
        strict_framing: bool = False,
    ) -> None:
        self.session_id = session_id
        self.transport = transport
        self.created_at = time.time()
        self.last_activity_at = self.created_at
        self.client_info: dict[str, Any] | None = None
        self.protocol_version: str | None = None
        self.close_reason: str | None = None

        self._tools = tools
        self._on_close = on_close
        # Uncorrelated garbage closes the session instead of being answered
        self._strict_framing = strict_framing
        self._codec = ProtocolCodec()
        self._lock = asyncio.Lock()
        self._in_flight: set[asyncio.Task[ToolResult]] = set()
        self._state = SessionState.UNINITIALIZED

    def __repr__(self) -> str:
        return f"Session(id={self.session_id!r}, state={self._state.value})"

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is SessionState.OPEN

    def open(self) -> "Session":
        if self._state is not SessionState.UNINITIALIZED:
            raise RuntimeError(f"Session {self.session_id} cannot be reopened")
        self._state = SessionState.OPEN
        logger.info(
            "session_opened session_id=%s",
            self.session_id,
            extra={"session_id": self.session_id},
        )
        return self

    @property
    def busy(self) -> bool:
        """True while a tool call is in flight."""
        return bool(self._in_flight)

    def touch(self) -> None:
        self.last_activity_at = time.time()

    def idle_for(self, now: float | None = None) -> float:
        return (now if now is not None else time.time()) - self.last_activity_at

    async def handle_inbound(self, raw: bytes | str, final: bool = False) -> list[bytes]:
        """Decode ``raw`` and dispatch every complete envelope in order.

        Returns the encoded responses, in the order their requests arrived.

        Raises:
            SessionClosed: The session is closing or closed.
            MalformedEnvelope: An uncorrelated frame arrived on a strict-framing
                session; the session has been closed.
        """
        if not self.is_open:
            raise SessionClosed(self.session_id)

        async with self._lock:
            if not self.is_open:
                raise SessionClosed(self.session_id)
            self.touch()

            responses: list[bytes] = []
            for item in self._codec.decode(raw, final=final):
                if not self.is_open:
                    logger.debug("Dropping envelope for closed session %s", self.session_id)
                    break
                if isinstance(item, MalformedEnvelope):
                    reply = await self._handle_malformed(item)
                else:
                    reply = await self._dispatch_guarded(item)
                if reply is not None and self.is_open:
                    responses.append(ProtocolCodec.encode(reply))

            self.touch()
            return responses

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a server-initiated notification through the transport handle."""
        if not self.is_open:
            return
        await self.transport.send(ProtocolCodec.encode(Envelope.notification(method, params)))

    async def close(self, reason: str = "closed") -> None:
        """Tear the session down; a second call is a no-op."""
        if self._state in (SessionState.CLOSING, SessionState.CLOSED):
            return
        self._state = SessionState.CLOSING
        self.close_reason = reason

        for task in list(self._in_flight):
            task.cancel()
        self._codec.reset()

        try:
            await self.transport.close()
        finally:
            self._state = SessionState.CLOSED
            if self._on_close is not None:
                await self._on_close(self)
            logger.info(
                "session_closed session_id=%s reason=%s",
                self.session_id,
                reason,
                extra={"session_id": self.session_id, "reason": reason},
            )

    async def _handle_malformed(self, error: MalformedEnvelope) -> Envelope | None:
        logger.warning(
            "malformed_envelope session_id=%s reason=%s",
            self.session_id,
            error.reason,
            extra={"session_id": self.session_id},
        )
        if error.recoverable:
            return Envelope.error(error.correlation_id, INVALID_REQUEST, error.reason)
        if self._strict_framing:
            await self.close("malformed")
            raise error
        return Envelope.error(None, PARSE_ERROR, error.reason)

    async def _dispatch_guarded(self, envelope: Envelope) -> Envelope | None:
        try:
            return await self._dispatch(envelope)
        except Exception:
            logger.exception(
                "dispatch_failed method=%s id=%s session_id=%s",
                envelope.method,
                envelope.correlation_id,
                self.session_id,
                extra={"session_id": self.session_id},
            )
            if not envelope.expects_response:
                return None
            return Envelope.error(envelope.correlation_id, INTERNAL_ERROR, "Internal error")

    async def _dispatch(self, envelope: Envelope) -> Envelope | None:
        if envelope.kind in (EnvelopeKind.RESPONSE, EnvelopeKind.ERROR):
            # Nothing is awaiting client responses; accept and drop.
            logger.debug("Ignoring client %s id=%s", envelope.kind.value, envelope.correlation_id)
            return None

        if envelope.kind is EnvelopeKind.NOTIFICATION:
            self._handle_notification(envelope)
            return None

        logger.debug(
            "rpc_request method=%s id=%s session_id=%s",
            envelope.method,
            envelope.correlation_id,
            self.session_id,
        )
        params = envelope.payload or {}
        if envelope.method == "initialize":
            return Envelope.result(envelope.correlation_id, self._initialize(params))
        if envelope.method == "ping":
            return Envelope.result(envelope.correlation_id, {})
        if envelope.method == "tools/list":
            return Envelope.result(envelope.correlation_id, {"tools": self._tools.describe()})
        if envelope.method == "tools/call":
            return await self._call_tool(envelope, params)
        return Envelope.error(
            envelope.correlation_id, METHOD_NOT_FOUND, f"Method not found: {envelope.method}"
        )

    def _handle_notification(self, envelope: Envelope) -> None:
        if envelope.method == "notifications/cancelled":
            logger.info(
                "request_cancelled session_id=%s request_id=%s",
                self.session_id,
                (envelope.payload or {}).get("requestId"),
            )
        else:
            logger.debug("notification method=%s session_id=%s", envelope.method, self.session_id)

    def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        requested = params.get("protocolVersion")
        if requested in SUPPORTED_PROTOCOL_VERSIONS:
            self.protocol_version = requested
        else:
            self.protocol_version = LATEST_PROTOCOL_VERSION
        client_info = params.get("clientInfo")
        self.client_info = client_info if isinstance(client_info, dict) else None
        return {
            "protocolVersion": self.protocol_version,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
        }

    async def _call_tool(self, envelope: Envelope, params: dict[str, Any]) -> Envelope | None:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            return Envelope.error(
                envelope.correlation_id, INVALID_PARAMS, "tools/call requires a tool name"
            )

        meta = params.get("_meta")
        progress_token = meta.get("progressToken") if isinstance(meta, dict) else None
        if progress_token is not None:
            await self._report_progress(progress_token, 0)

        logger.info(
            "tool_call tool=%s session_id=%s",
            name,
            self.session_id,
            extra={"tool": name, "session_id": self.session_id},
        )
        task = asyncio.ensure_future(self._tools.invoke(name, params.get("arguments")))
        self._in_flight.add(task)
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            self._in_flight.discard(task)
            self.touch()

        if task.cancelled() or not self.is_open:
            logger.debug("Dropping late result of %s for session %s", name, self.session_id)
            return None

        try:
            result = task.result()
        except ToolError as e:
            logger.info(
                "tool_call_failed tool=%s code=%s session_id=%s",
                name,
                e.code,
                self.session_id,
            )
            result = ToolResult.from_error(e)

        if progress_token is not None:
            await self._report_progress(progress_token, 1)
        return Envelope.result(envelope.correlation_id, result.to_call_result())

    async def _report_progress(self, progress_token: str | int, progress: int) -> None:
        await self.notify(
            "notifications/progress",
            {"progressToken": progress_token, "progress": progress, "total": 1},
        )
