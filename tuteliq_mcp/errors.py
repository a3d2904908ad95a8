"""Error taxonomy for the Tuteliq MCP server.

Codec and registry errors are recoverable per message and surface as
JSON-RPC errors or ``isError`` tool results. Routing errors surface as
HTTP 400 responses and never touch other sessions.
"""

from typing import Any


class TuteliqMCPError(Exception):
    """Base class for all server errors."""

    code = "INTERNAL_ERROR"

    def to_payload(self) -> dict[str, Any]:
        return {"code": self.code, "message": str(self)}


class ConfigurationError(TuteliqMCPError):
    code = "CONFIGURATION_ERROR"


class MalformedEnvelope(TuteliqMCPError):
    """A decoded frame violated the JSON-RPC envelope contract."""

    code = "MALFORMED_ENVELOPE"

    def __init__(self, reason: str, correlation_id: str | int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.correlation_id = correlation_id

    @property
    def recoverable(self) -> bool:
        return self.correlation_id is not None


class DuplicateToolName(TuteliqMCPError):
    code = "DUPLICATE_TOOL_NAME"

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool already registered: {name}")
        self.name = name


class ToolError(TuteliqMCPError):
    """Failure reported back to the caller as an error-flagged tool result."""

    def __init__(self, message: str, tool: str) -> None:
        super().__init__(message)
        self.tool = tool

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["tool"] = self.tool
        return payload


class UnknownTool(ToolError):
    code = "UNKNOWN_TOOL"

    def __init__(self, tool: str) -> None:
        super().__init__(f"Unknown tool: {tool}", tool)


class InvalidArguments(ToolError):
    code = "INVALID_ARGUMENTS"

    def __init__(self, message: str, tool: str, field: str | None = None) -> None:
        super().__init__(message, tool)
        self.field = field

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.field is not None:
            payload["field"] = self.field
        return payload


class HandlerError(ToolError):
    code = "HANDLER_ERROR"


class RoutingError(TuteliqMCPError):
    """Client-side routing failure, reported as HTTP 400."""


class UnknownSession(RoutingError):
    code = "UNKNOWN_SESSION"

    def __init__(self, session_id: str | None) -> None:
        super().__init__(f"Unknown session: {session_id}")
        self.session_id = session_id


class InvalidSession(RoutingError):
    code = "INVALID_SESSION"


class SessionClosed(RoutingError):
    code = "SESSION_CLOSED"

    def __init__(self, session_id: str | None) -> None:
        super().__init__(f"Session is closed: {session_id}")
        self.session_id = session_id


class TuteliqAPIError(TuteliqMCPError):
    """Non-2xx response or transport failure from the Tuteliq API."""

    code = "API_ERROR"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
