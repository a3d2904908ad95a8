"""Emotion analysis, guidance, incident reports and multi-endpoint analysis."""

from typing import Any

from tuteliq_mcp import formatters
from tuteliq_mcp.client import TuteliqClient
from tuteliq_mcp.tool_registry import ToolDescriptor, ToolResult
from tuteliq_mcp.tools.helpers import (
    FREEFORM_CONTEXT,
    array,
    boolean,
    number,
    object_schema,
    optional_age,
    string,
    widget_hints,
)


class AnalysisTools:
    """Tools that interpret content rather than flag a single harm."""

    def __init__(self, client: TuteliqClient) -> None:
        self.client = client

    async def analyze_emotions(self, args: dict[str, Any]) -> ToolResult:
        result = await self.client.analyze_emotions(args["content"])
        return ToolResult.for_tool("analyze_emotions", result, formatters.format_emotions(result))

    async def get_action_plan(self, args: dict[str, Any]) -> ToolResult:
        result = await self.client.get_action_plan(
            args["situation"],
            child_age=optional_age(args, "childAge"),
            audience=args.get("audience"),
            severity=args.get("severity"),
        )
        return ToolResult.for_tool(
            "get_action_plan", result, formatters.format_action_plan(result)
        )

    async def generate_report(self, args: dict[str, Any]) -> ToolResult:
        result = await self.client.generate_report(
            args["messages"],
            child_age=optional_age(args, "childAge"),
            incident_type=args.get("incidentType"),
        )
        return ToolResult.for_tool("generate_report", result, formatters.format_report(result))

    async def analyse_multi(self, args: dict[str, Any]) -> ToolResult:
        result = await self.client.analyse_multi(
            args["content"],
            args["endpoints"],
            context=args.get("context"),
            include_evidence=args.get("include_evidence"),
            external_id=args.get("external_id"),
            customer_id=args.get("customer_id"),
        )
        return ToolResult.for_tool("analyse_multi", result, formatters.format_multi_result(result))

    def descriptors(self) -> list[ToolDescriptor]:
        return [
            ToolDescriptor(
                name="analyze_emotions",
                title="Analyze Emotions",
                description=(
                    "Analyze emotional content and mental state indicators. Identifies dominant "
                    "emotions, trends, and provides follow-up recommendations."
                ),
                input_schema=object_schema(
                    {"content": string("The text content to analyze for emotions")},
                    required=["content"],
                ),
                handler=self.analyze_emotions,
                presentation_hints=widget_hints(
                    "Shows emotion analysis results with charts and trends",
                    "Analyzing emotional content...",
                    "Emotion analysis complete.",
                ),
            ),
            ToolDescriptor(
                name="get_action_plan",
                title="Get Action Plan",
                description=(
                    "Generate age-appropriate guidance and action steps for handling "
                    "a safety situation."
                ),
                input_schema=object_schema(
                    {
                        "situation": string("Description of the situation needing guidance"),
                        "childAge": number("Age of the child involved"),
                        "audience": string(
                            "Who the guidance is for (default: parent)",
                            enum=["child", "parent", "educator", "platform"],
                        ),
                        "severity": string(
                            "Severity of the situation",
                            enum=["low", "medium", "high", "critical"],
                        ),
                    },
                    required=["situation"],
                ),
                handler=self.get_action_plan,
                presentation_hints=widget_hints(
                    "Shows age-appropriate action plan with step-by-step guidance",
                    "Generating action plan...",
                    "Action plan ready.",
                ),
            ),
            ToolDescriptor(
                name="generate_report",
                title="Generate Report",
                description="Generate a comprehensive incident report from a conversation.",
                input_schema=object_schema(
                    {
                        "messages": array(
                            "Array of messages in the incident",
                            object_schema(
                                {
                                    "sender": string("Name/ID of sender"),
                                    "content": string("Message content"),
                                },
                                required=["sender", "content"],
                            ),
                        ),
                        "childAge": number("Age of the child involved"),
                        "incidentType": string("Type of incident (e.g., bullying, grooming)"),
                    },
                    required=["messages"],
                ),
                handler=self.generate_report,
                presentation_hints=widget_hints(
                    "Shows comprehensive incident report with risk assessment",
                    "Generating incident report...",
                    "Incident report ready.",
                ),
            ),
            ToolDescriptor(
                name="analyse_multi",
                title="Multi-Endpoint Analysis",
                description="Run multiple detection endpoints on a single piece of text.",
                input_schema=object_schema(
                    {
                        "content": string("Text content to analyze"),
                        "endpoints": array("Detection endpoints to run", {"type": "string"}),
                        "context": FREEFORM_CONTEXT,
                        "include_evidence": boolean("Include supporting evidence"),
                        "external_id": string("External tracking ID"),
                        "customer_id": string("Customer identifier"),
                    },
                    required=["content", "endpoints"],
                ),
                handler=self.analyse_multi,
                presentation_hints=widget_hints(
                    "Shows multi-endpoint analysis with aggregated risk assessment",
                    "Running multi-endpoint analysis...",
                    "Multi-endpoint analysis complete.",
                ),
            ),
        ]
