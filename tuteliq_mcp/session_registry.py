"""Authoritative map from session identifiers to live sessions."""

import asyncio
import contextlib
import logging
import time
from collections.abc import AsyncIterator, Callable
from uuid import uuid4

from tuteliq_mcp.constants import DEFAULT_REAP_INTERVAL_SECONDS
from tuteliq_mcp.errors import UnknownSession
from tuteliq_mcp.session import Session, TransportHandle
from tuteliq_mcp.tool_registry import ToolRegistry

logger = logging.getLogger(__name__)


def _new_session_id() -> str:
    return uuid4().hex


class SessionRegistry:
    """Creates, routes to, and reclaims sessions across concurrent callers.

    Every insert and remove happens under ``_lock``, which keeps the map a
    bijection between issued live identifiers and open ``Session`` objects.
    Lookups read the dict without the lock; a session found mid-close rejects
    work itself with ``SessionClosed``.
    """

    def __init__(
        self,
        tools: ToolRegistry,
        *,
        idle_timeout: float | None = None,
        reap_interval: float = DEFAULT_REAP_INTERVAL_SECONDS,
        id_factory: Callable[[], str] = _new_session_id,
    ) -> None:
        self.tools = tools
        self.idle_timeout = idle_timeout
        self.reap_interval = reap_interval
        self._id_factory = id_factory
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def session_ids(self) -> list[str]:
        return sorted(self._sessions)

    async def create_session(self, transport: TransportHandle) -> str:
        """Open a session bound to ``transport`` and return its fresh identifier."""
        async with self._lock:
            session_id = self._id_factory()
            while session_id in self._sessions:
                logger.warning("Session id collision on %s; regenerating", session_id)
                session_id = self._id_factory()
            session = Session(
                session_id,
                transport,
                self.tools,
                on_close=self._forget,
                strict_framing=True,
            )
            self._sessions[session_id] = session.open()
        return session_id

    def get_session(self, session_id: str | None) -> Session:
        session = self._sessions.get(session_id) if session_id else None
        if session is None or not session.is_open:
            raise UnknownSession(session_id)
        return session

    async def route_request(
        self, session_id: str | None, raw: bytes | str, final: bool = True
    ) -> list[bytes]:
        """Forward ``raw`` to the session's ``handle_inbound``.

        Raises:
            UnknownSession: ``session_id`` was never issued or is already closed.
        """
        session = self.get_session(session_id)
        return await session.handle_inbound(raw, final=final)

    async def close_session(self, session_id: str | None, reason: str = "client_close") -> None:
        """Remove and close a session. A second close of the same id fails.

        Raises:
            UnknownSession: ``session_id`` is absent.
        """
        async with self._lock:
            session = self._sessions.pop(session_id, None) if session_id else None
        if session is None:
            raise UnknownSession(session_id)
        await session.close(reason)

    async def evict_idle(self, now: float | None = None) -> list[str]:
        """Close sessions idle for longer than ``idle_timeout``.

        Sessions with a tool call in flight are never idle.
        """
        if self.idle_timeout is None:
            return []
        now = time.time() if now is None else now
        async with self._lock:
            expired = [
                session
                for session in self._sessions.values()
                if not session.busy and session.idle_for(now) > self.idle_timeout
            ]
            for session in expired:
                del self._sessions[session.session_id]

        for session in expired:
            await session.close("idle_timeout")
        if expired:
            logger.info("Evicted %d idle session(s)", len(expired))
        return [session.session_id for session in expired]

    async def shutdown(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.close("shutdown")

    @contextlib.asynccontextmanager
    async def run(self) -> AsyncIterator["SessionRegistry"]:
        """Run the idle reaper for the lifetime of the block, then close everything."""
        reaper: asyncio.Task[None] | None = None
        if self.idle_timeout is not None:
            reaper = asyncio.create_task(self._reap_forever())
        try:
            yield self
        finally:
            if reaper is not None:
                reaper.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await reaper
            await self.shutdown()

    async def _reap_forever(self) -> None:
        while True:
            await asyncio.sleep(self.reap_interval)
            try:
                await self.evict_idle()
            except Exception:
                logger.exception("Idle session reaper failed")

    async def _forget(self, session: Session) -> None:
        # Self-initiated closes (malformed input, transport error) land here
        async with self._lock:
            if self._sessions.get(session.session_id) is session:
                del self._sessions[session.session_id]
