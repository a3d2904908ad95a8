"""Tuteliq MCP server: content-safety tools over stdio and multi-session HTTP."""

from typing import TYPE_CHECKING, Any

from tuteliq_mcp.constants import SERVER_VERSION

if TYPE_CHECKING:
    from tuteliq_mcp.session_registry import SessionRegistry
    from tuteliq_mcp.tool_registry import ToolRegistry

__version__ = SERVER_VERSION


def __getattr__(name: str) -> Any:
    if name == "SessionRegistry":
        from tuteliq_mcp.session_registry import SessionRegistry

        return SessionRegistry
    if name == "ToolRegistry":
        from tuteliq_mcp.tool_registry import ToolRegistry

        return ToolRegistry
    raise AttributeError(f"module 'tuteliq_mcp' has no attribute '{name}'")


__all__ = ["SessionRegistry", "ToolRegistry", "__version__"]
