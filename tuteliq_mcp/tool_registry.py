"""Static catalog of the tools exposed over MCP."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError, best_match
from mcp import types

from tuteliq_mcp.constants import BRAND_NAME
from tuteliq_mcp.errors import (
    DuplicateToolName,
    HandlerError,
    InvalidArguments,
    ToolError,
    UnknownTool,
)

logger = logging.getLogger(__name__)

READ_ONLY_ANNOTATIONS: dict[str, bool] = {
    "readOnlyHint": True,
    "openWorldHint": True,
    "destructiveHint": False,
}


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one tool call: markdown text plus a tagged structured payload."""

    text: str
    structured: dict[str, Any] | None = None
    is_error: bool = False

    @classmethod
    def for_tool(cls, tool_name: str, result: Any, text: str) -> "ToolResult":
        return cls(
            text=text,
            structured={
                "toolName": tool_name,
                "result": result,
                "branding": {"appName": BRAND_NAME},
            },
        )

    @classmethod
    def from_error(cls, error: ToolError) -> "ToolResult":
        return cls(
            text=f"Error: {error}",
            structured={"toolName": error.tool, "error": error.to_payload()},
            is_error=True,
        )

    def to_call_result(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "content": [{"type": "text", "text": self.text}],
            "isError": self.is_error,
        }
        if self.structured is not None:
            payload["structuredContent"] = self.structured
        return payload


ToolHandler = Callable[[dict[str, Any]], Awaitable[ToolResult]]


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    input_schema: dict[str, Any]
    handler: ToolHandler
    title: str | None = None
    annotations: dict[str, Any] = field(default_factory=lambda: dict(READ_ONLY_ANNOTATIONS))
    presentation_hints: dict[str, Any] | None = None

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
            "annotations": self.annotations,
        }
        if self.title:
            wire["title"] = self.title
        if self.presentation_hints:
            wire["_meta"] = self.presentation_hints
        return types.Tool.model_validate(wire).model_dump(by_alias=True, exclude_none=True)


class ToolRegistry:
    """Name -> descriptor map, populated once at startup and then frozen.

    Lookups take no lock: after ``freeze()`` nothing mutates the registry, so
    every session shares one instance by reference.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDescriptor] = {}
        self._validators: dict[str, Draft202012Validator] = {}
        self._frozen = False

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def register(self, descriptor: ToolDescriptor) -> None:
        """Add a tool.

        Raises:
            DuplicateToolName: If a tool with the same name exists.
            jsonschema.SchemaError: If the input schema is itself invalid.
            RuntimeError: If the registry is frozen.
        """
        if self._frozen:
            raise RuntimeError("Tool registry is frozen; register tools during startup")
        if descriptor.name in self._tools:
            raise DuplicateToolName(descriptor.name)
        Draft202012Validator.check_schema(descriptor.input_schema)
        self._tools[descriptor.name] = descriptor
        self._validators[descriptor.name] = Draft202012Validator(descriptor.input_schema)

    def list_tools(self) -> list[ToolDescriptor]:
        return list(self._tools.values())

    def describe(self) -> list[dict[str, Any]]:
        """Tool descriptors in the ``tools/list`` wire shape."""
        return [descriptor.to_wire() for descriptor in self._tools.values()]

    def get(self, name: str) -> ToolDescriptor:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownTool(name) from None

    def validate(self, name: str, raw_args: Any) -> dict[str, Any]:
        """Return ``raw_args`` as a dict once it satisfies the tool's schema."""
        self.get(name)
        args = {} if raw_args is None else raw_args
        if not isinstance(args, dict):
            raise InvalidArguments("Tool arguments must be an object", name)

        error = best_match(self._validators[name].iter_errors(args))
        if error is not None:
            field_name = _violated_field(error)
            message = f"Invalid arguments for {name}: {error.message}"
            raise InvalidArguments(message, name, field=field_name)
        return args

    async def invoke(self, name: str, raw_args: Any) -> ToolResult:
        """Validate ``raw_args`` and run the tool's handler.

        Raises:
            UnknownTool: No tool named ``name``.
            InvalidArguments: Arguments violate the schema; the handler is not called.
            HandlerError: The handler raised; carries the original message.
        """
        descriptor = self.get(name)
        args = self.validate(name, raw_args)
        try:
            return await descriptor.handler(args)
        except ToolError:
            raise
        except Exception as e:
            logger.warning("tool_handler_failed tool=%s error=%s", name, e, extra={"tool": name})
            raise HandlerError(str(e) or type(e).__name__, name) from e


def _violated_field(error: ValidationError) -> str | None:
    path = [str(part) for part in error.absolute_path]
    if error.validator == "required" and isinstance(error.instance, dict):
        missing = [key for key in error.validator_value if key not in error.instance]
        if missing:
            path.append(str(missing[0]))
    return ".".join(path) or None
