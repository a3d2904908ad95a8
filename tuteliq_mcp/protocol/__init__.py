"""JSON-RPC envelope codec for the MCP wire protocol."""

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

__all__ = [
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "Envelope",
    "EnvelopeKind",
    "ProtocolCodec",
]
