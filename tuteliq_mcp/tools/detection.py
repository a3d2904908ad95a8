"""Core safety detection tools: bullying, grooming, unsafe content."""

from typing import Any

from tuteliq_mcp import formatters
from tuteliq_mcp.client import TuteliqClient
from tuteliq_mcp.tool_registry import ToolDescriptor, ToolResult
from tuteliq_mcp.tools.helpers import (
    ANALYSIS_CONTEXT,
    array,
    number,
    object_schema,
    optional_age,
    string,
    widget_hints,
)


class DetectionTools:
    """Single-message and conversation-level safety detectors."""

    def __init__(self, client: TuteliqClient) -> None:
        self.client = client

    async def detect_bullying(self, args: dict[str, Any]) -> ToolResult:
        result = await self.client.detect_bullying(args["content"], args.get("context"))
        return ToolResult.for_tool("detect_bullying", result, formatters.format_bullying(result))

    async def detect_grooming(self, args: dict[str, Any]) -> ToolResult:
        result = await self.client.detect_grooming(
            args["messages"], child_age=optional_age(args, "childAge")
        )
        return ToolResult.for_tool("detect_grooming", result, formatters.format_grooming(result))

    async def detect_unsafe(self, args: dict[str, Any]) -> ToolResult:
        result = await self.client.detect_unsafe(args["content"], args.get("context"))
        return ToolResult.for_tool("detect_unsafe", result, formatters.format_unsafe(result))

    async def analyze(self, args: dict[str, Any]) -> ToolResult:
        result = await self.client.analyze(args["content"], include=args.get("include"))
        return ToolResult.for_tool("analyze", result, formatters.format_analysis(result))

    def descriptors(self) -> list[ToolDescriptor]:
        return [
            ToolDescriptor(
                name="detect_bullying",
                title="Detect Bullying",
                description=(
                    "Analyze text content to detect bullying, harassment, or harmful language. "
                    "Returns severity, type of bullying, confidence score, and recommended actions."
                ),
                input_schema=object_schema(
                    {
                        "content": string("The text content to analyze for bullying"),
                        "context": ANALYSIS_CONTEXT,
                    },
                    required=["content"],
                ),
                handler=self.detect_bullying,
                presentation_hints=widget_hints(
                    "Shows bullying detection results with risk indicators",
                    "Analyzing content for bullying...",
                    "Bullying analysis complete.",
                ),
            ),
            ToolDescriptor(
                name="detect_grooming",
                title="Detect Grooming",
                description=(
                    "Analyze a conversation for grooming patterns and predatory behavior. "
                    "Identifies manipulation tactics, boundary violations, and isolation attempts."
                ),
                input_schema=object_schema(
                    {
                        "messages": array(
                            "Array of messages in the conversation",
                            object_schema(
                                {
                                    "role": string(
                                        "Who sent the message", enum=["adult", "child", "unknown"]
                                    ),
                                    "content": string("Message content"),
                                },
                                required=["role", "content"],
                            ),
                        ),
                        "childAge": number("Age of the child in the conversation"),
                    },
                    required=["messages"],
                ),
                handler=self.detect_grooming,
                presentation_hints=widget_hints(
                    "Shows grooming detection results with risk indicators",
                    "Analyzing conversation for grooming patterns...",
                    "Grooming analysis complete.",
                ),
            ),
            ToolDescriptor(
                name="detect_unsafe",
                title="Detect Unsafe Content",
                description=(
                    "Detect unsafe content including self-harm, violence, drugs, "
                    "explicit material."
                ),
                input_schema=object_schema(
                    {
                        "content": string("The text content to analyze for unsafe content"),
                        "context": ANALYSIS_CONTEXT,
                    },
                    required=["content"],
                ),
                handler=self.detect_unsafe,
                presentation_hints=widget_hints(
                    "Shows unsafe content detection results",
                    "Analyzing content for safety concerns...",
                    "Safety analysis complete.",
                ),
            ),
            ToolDescriptor(
                name="analyze",
                title="Quick Safety Analysis",
                description=(
                    "Quick comprehensive safety analysis that checks for both bullying "
                    "and unsafe content."
                ),
                input_schema=object_schema(
                    {
                        "content": string("The text content to analyze"),
                        "include": array(
                            "Which checks to run (default: both)",
                            {"type": "string", "enum": ["bullying", "unsafe"]},
                        ),
                    },
                    required=["content"],
                ),
                handler=self.analyze,
                presentation_hints=widget_hints(
                    "Shows combined safety analysis results",
                    "Running safety analysis...",
                    "Safety analysis complete.",
                ),
            ),
        ]
