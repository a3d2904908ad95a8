"""Single-session binding over stdin/stdout.

stdout carries protocol bytes only; all logging goes to stderr.
"""

import asyncio
import logging
import sys
from typing import BinaryIO

from tuteliq_mcp.constants import STDIO_READ_CHUNK_BYTES
from tuteliq_mcp.session import Session
from tuteliq_mcp.tool_registry import ToolRegistry

logger = logging.getLogger(__name__)

STDIO_SESSION_ID = "stdio"


class StdioTransport:
    """Writes framed messages to a binary stream, one flush per message."""

    def __init__(self, writer: BinaryIO) -> None:
        self._writer = writer
        self.closed = False

    async def send(self, message: bytes) -> None:
        if self.closed:
            return
        await asyncio.to_thread(self._write, message)

    def _write(self, message: bytes) -> None:
        self._writer.write(message)
        self._writer.flush()

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            await asyncio.to_thread(self._writer.flush)
        except (BrokenPipeError, ValueError):
            # Peer went away or the stream is already closed
            logger.debug("stdout unavailable while closing stdio transport")


def _read_chunk(reader: BinaryIO) -> bytes:
    read1 = getattr(reader, "read1", None)
    if read1 is not None:
        return read1(STDIO_READ_CHUNK_BYTES)
    return reader.readline()


async def run_stdio(
    tools: ToolRegistry,
    reader: BinaryIO | None = None,
    writer: BinaryIO | None = None,
) -> Session:
    """Serve one implicit session until EOF on ``reader``.

    Returns the (closed) session so callers can inspect why it ended.
    """
    reader = reader if reader is not None else sys.stdin.buffer
    writer = writer if writer is not None else sys.stdout.buffer
    transport = StdioTransport(writer)
    session = Session(STDIO_SESSION_ID, transport, tools).open()
    reason = "eof"

    try:
        while session.is_open:
            chunk = await asyncio.to_thread(_read_chunk, reader)
            final = not chunk
            for response in await session.handle_inbound(chunk, final=final):
                await transport.send(response)
            if final:
                break
    except BrokenPipeError:
        reason = "broken_pipe"
        logger.warning("stdout closed by peer; shutting down")
    finally:
        await session.close(reason)
    return session
