"""Tests for tool registration, validation and invocation."""

import asyncio
from typing import Any

import pytest
from jsonschema.exceptions import SchemaError
from mock_client import echo_registry

from tuteliq_mcp.errors import DuplicateToolName, HandlerError, InvalidArguments, UnknownTool
from tuteliq_mcp.tool_registry import ToolDescriptor, ToolRegistry, ToolResult


async def _noop(args: dict[str, Any]) -> ToolResult:
    return ToolResult(text="ok")


def _descriptor(
    name: str, schema: dict[str, Any] | None = None, handler: Any = _noop
) -> ToolDescriptor:
    return ToolDescriptor(
        name=name,
        description=f"{name} tool",
        input_schema=schema or {"type": "object", "properties": {}},
        handler=handler,
    )


class TestToolRegistration:
    def test_list_tools_preserves_registration_order(self) -> None:
        registry = ToolRegistry()
        for name in ("b_tool", "a_tool", "c_tool"):
            registry.register(_descriptor(name))

        assert [d.name for d in registry.list_tools()] == ["b_tool", "a_tool", "c_tool"]

    def test_duplicate_name_is_rejected(self) -> None:
        registry = ToolRegistry()
        registry.register(_descriptor("dup"))

        with pytest.raises(DuplicateToolName, match="dup"):
            registry.register(_descriptor("dup"))
        assert len(registry) == 1

    def test_invalid_schema_is_rejected(self) -> None:
        registry = ToolRegistry()

        with pytest.raises(SchemaError):
            registry.register(_descriptor("broken", schema={"type": "not-a-type"}))

    def test_frozen_registry_rejects_registration(self) -> None:
        registry = ToolRegistry()
        registry.freeze()

        with pytest.raises(RuntimeError):
            registry.register(_descriptor("late"))

    def test_describe_renders_wire_shape(self) -> None:
        registry = ToolRegistry()
        registry.register(
            ToolDescriptor(
                name="shown",
                title="Shown Tool",
                description="visible",
                input_schema={"type": "object", "properties": {"x": {"type": "string"}}},
                handler=_noop,
                presentation_hints={"openai/widgetDescription": "Shows echo results"},
            )
        )

        [wire] = registry.describe()

        assert wire["name"] == "shown"
        assert wire["title"] == "Shown Tool"
        assert wire["inputSchema"]["properties"] == {"x": {"type": "string"}}
        assert wire["annotations"]["readOnlyHint"] is True
        assert wire["_meta"] == {"openai/widgetDescription": "Shows echo results"}


class TestToolInvocation:
    def test_invoke_returns_handler_result(self) -> None:
        calls: list[dict[str, Any]] = []
        registry = echo_registry(calls)

        result = asyncio.run(registry.invoke("echo", {"text": "hello"}))

        assert result.text == "hello"
        assert result.structured == {
            "toolName": "echo",
            "result": {"text": "hello"},
            "branding": {"appName": "Tuteliq"},
        }
        assert calls == [{"text": "hello"}]

    def test_unknown_tool(self) -> None:
        registry = echo_registry()

        with pytest.raises(UnknownTool) as exc_info:
            asyncio.run(registry.invoke("missing", {}))
        assert exc_info.value.tool == "missing"

    def test_missing_required_field_names_it_and_skips_handler(self) -> None:
        calls: list[dict[str, Any]] = []
        registry = echo_registry(calls)

        with pytest.raises(InvalidArguments) as exc_info:
            asyncio.run(registry.invoke("echo", {}))

        assert exc_info.value.field == "text"
        assert exc_info.value.to_payload()["field"] == "text"
        assert calls == []

    def test_wrong_type_names_nested_path(self) -> None:
        schema = {
            "type": "object",
            "properties": {
                "messages": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {"role": {"enum": ["adult", "child"]}},
                        "required": ["role"],
                    },
                }
            },
        }
        registry = ToolRegistry()
        registry.register(_descriptor("conv", schema=schema))

        with pytest.raises(InvalidArguments) as exc_info:
            asyncio.run(registry.invoke("conv", {"messages": [{"role": "robot"}]}))

        assert exc_info.value.field == "messages.0.role"

    def test_non_object_arguments_are_invalid(self) -> None:
        registry = echo_registry()

        with pytest.raises(InvalidArguments):
            asyncio.run(registry.invoke("echo", ["text"]))

    def test_handler_failure_becomes_handler_error(self) -> None:
        async def boom(args: dict[str, Any]) -> ToolResult:
            raise RuntimeError("upstream exploded")

        registry = ToolRegistry()
        registry.register(_descriptor("boom", handler=boom))

        with pytest.raises(HandlerError, match="upstream exploded") as exc_info:
            asyncio.run(registry.invoke("boom", None))
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_error_result_carries_code_and_flag(self) -> None:
        result = ToolResult.from_error(InvalidArguments("bad", "echo", field="text"))

        payload = result.to_call_result()
        assert payload["isError"] is True
        assert payload["content"][0]["text"] == "Error: bad"
        assert payload["structuredContent"]["error"] == {
            "code": "INVALID_ARGUMENTS",
            "message": "bad",
            "tool": "echo",
            "field": "text",
        }
