"""Shared schema fragments and presentation hints for tool modules."""

from pathlib import Path
from typing import Any


def widget_hints(description: str, invoking: str, invoked: str) -> dict[str, Any]:
    """``_meta`` block with the host-facing status strings for a tool.

    No ``ui.resourceUri`` is advertised: this server does not serve widget resources.
    """
    return {
        "openai/widgetDescription": description,
        "openai/toolInvocation/invoking": invoking,
        "openai/toolInvocation/invoked": invoked,
    }


def object_schema(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def string(description: str, enum: list[str] | None = None) -> dict[str, Any]:
    prop: dict[str, Any] = {"type": "string", "description": description}
    if enum:
        prop["enum"] = enum
    return prop


def number(description: str) -> dict[str, Any]:
    return {"type": "number", "description": description}


def boolean(description: str) -> dict[str, Any]:
    return {"type": "boolean", "description": description}


def array(description: str, items: dict[str, Any]) -> dict[str, Any]:
    return {"type": "array", "description": description, "items": items}


ANALYSIS_CONTEXT = {
    "type": "object",
    "description": "Optional context for better analysis",
    "properties": {
        "language": {"type": "string"},
        "ageGroup": {"type": "string"},
        "relationship": {"type": "string"},
        "platform": {"type": "string"},
    },
}

FREEFORM_CONTEXT = {
    "type": "object",
    "description": "Optional analysis context",
    "additionalProperties": True,
}


def optional_age(args: dict[str, Any], key: str) -> int | None:
    value = args.get(key)
    return int(value) if value is not None else None


def read_media_file(file_path: str) -> tuple[bytes, str]:
    """Read a local media file, returning its bytes and base filename."""
    path = Path(file_path).expanduser()
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {file_path}")
    return path.read_bytes(), path.name
