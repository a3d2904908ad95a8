"""Fraud and harm detectors sharing one input schema and one renderer."""

from dataclasses import dataclass
from typing import Any

from tuteliq_mcp import formatters
from tuteliq_mcp.client import TuteliqClient
from tuteliq_mcp.tool_registry import ToolDescriptor, ToolHandler, ToolResult
from tuteliq_mcp.tools.helpers import (
    FREEFORM_CONTEXT,
    boolean,
    object_schema,
    string,
    widget_hints,
)


@dataclass(frozen=True)
class HarmDetector:
    name: str
    endpoint: str
    title: str
    description: str
    invoking: str
    invoked: str


HARM_DETECTORS: tuple[HarmDetector, ...] = (
    HarmDetector(
        name="detect_social_engineering",
        endpoint="social_engineering",
        title="Detect Social Engineering",
        description=(
            "Detect social engineering tactics such as pretexting, urgency fabrication, "
            "trust exploitation, and authority impersonation in text content."
        ),
        invoking="Analyzing for social engineering tactics...",
        invoked="Social engineering analysis complete.",
    ),
    HarmDetector(
        name="detect_app_fraud",
        endpoint="app_fraud",
        title="Detect App Fraud",
        description=(
            "Detect app-based fraud patterns such as fake investment platforms, phishing apps, "
            "subscription traps, and malicious download links."
        ),
        invoking="Analyzing for app fraud patterns...",
        invoked="App fraud analysis complete.",
    ),
    HarmDetector(
        name="detect_romance_scam",
        endpoint="romance_scam",
        title="Detect Romance Scam",
        description=(
            "Detect romance scam patterns such as love-bombing, financial requests, identity "
            "deception, and emotional manipulation in conversations."
        ),
        invoking="Analyzing for romance scam patterns...",
        invoked="Romance scam analysis complete.",
    ),
    HarmDetector(
        name="detect_mule_recruitment",
        endpoint="mule_recruitment",
        title="Detect Mule Recruitment",
        description=(
            "Detect money mule recruitment tactics such as easy-money offers, bank account "
            "sharing requests, and laundering facilitation."
        ),
        invoking="Analyzing for mule recruitment tactics...",
        invoked="Mule recruitment analysis complete.",
    ),
    HarmDetector(
        name="detect_gambling_harm",
        endpoint="gambling_harm",
        title="Detect Gambling Harm",
        description=(
            "Detect gambling-related harm indicators such as chasing losses, borrowing to "
            "gamble, concealment behavior, and emotional distress from gambling."
        ),
        invoking="Analyzing for gambling harm indicators...",
        invoked="Gambling harm analysis complete.",
    ),
    HarmDetector(
        name="detect_coercive_control",
        endpoint="coercive_control",
        title="Detect Coercive Control",
        description=(
            "Detect coercive control patterns such as isolation tactics, financial control, "
            "monitoring behavior, threats, and emotional manipulation."
        ),
        invoking="Analyzing for coercive control patterns...",
        invoked="Coercive control analysis complete.",
    ),
    HarmDetector(
        name="detect_vulnerability_exploitation",
        endpoint="vulnerability_exploitation",
        title="Detect Vulnerability Exploitation",
        description=(
            "Detect exploitation of vulnerable individuals including targeting the elderly, "
            "disabled, financially distressed, or emotionally vulnerable."
        ),
        invoking="Analyzing for vulnerability exploitation...",
        invoked="Vulnerability exploitation analysis complete.",
    ),
    HarmDetector(
        name="detect_radicalisation",
        endpoint="radicalisation",
        title="Detect Radicalisation",
        description=(
            "Detect radicalisation indicators such as extremist rhetoric, us-vs-them framing, "
            "calls to action, conspiracy narratives, and ideological grooming."
        ),
        invoking="Analyzing for radicalisation indicators...",
        invoked="Radicalisation analysis complete.",
    ),
)

HARM_INPUT_SCHEMA = object_schema(
    {
        "content": string("Text content to analyze"),
        "context": FREEFORM_CONTEXT,
        "include_evidence": boolean("Include supporting evidence excerpts"),
        "external_id": string("External tracking ID"),
        "customer_id": string("Customer identifier"),
    },
    required=["content"],
)


class FraudTools:
    """One descriptor per ``HARM_DETECTORS`` entry, all routed through ``detect_harm``."""

    def __init__(self, client: TuteliqClient) -> None:
        self.client = client

    async def detect(self, detector: HarmDetector, args: dict[str, Any]) -> ToolResult:
        result = await self.client.detect_harm(
            detector.endpoint,
            args["content"],
            context=args.get("context"),
            include_evidence=args.get("include_evidence"),
            external_id=args.get("external_id"),
            customer_id=args.get("customer_id"),
        )
        if isinstance(result, dict):
            result.setdefault("endpoint", detector.endpoint)
        return ToolResult.for_tool(
            detector.name, result, formatters.format_detection_result(result)
        )

    def _handler_for(self, detector: HarmDetector) -> ToolHandler:
        async def handler(args: dict[str, Any]) -> ToolResult:
            return await self.detect(detector, args)

        return handler

    def descriptors(self) -> list[ToolDescriptor]:
        return [
            ToolDescriptor(
                name=detector.name,
                title=detector.title,
                description=detector.description,
                input_schema=HARM_INPUT_SCHEMA,
                handler=self._handler_for(detector),
                presentation_hints=widget_hints(
                    f"Shows {detector.title.lower()} results with risk indicators",
                    detector.invoking,
                    detector.invoked,
                ),
            )
            for detector in HARM_DETECTORS
        ]
