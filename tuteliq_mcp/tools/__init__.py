"""Tuteliq tool modules and the startup registry builder."""

from tuteliq_mcp.client import TuteliqClient
from tuteliq_mcp.tool_registry import ToolRegistry
from tuteliq_mcp.tools.analysis import AnalysisTools
from tuteliq_mcp.tools.detection import DetectionTools
from tuteliq_mcp.tools.fraud import FraudTools
from tuteliq_mcp.tools.media import MediaTools
from tuteliq_mcp.tools.webhooks import WebhookTools

TOOL_MODULES = (DetectionTools, AnalysisTools, FraudTools, MediaTools, WebhookTools)


def build_tool_registry(client: TuteliqClient) -> ToolRegistry:
    """Register every tool module against ``client`` and freeze the registry.

    Raises:
        DuplicateToolName: Two modules declare the same tool name.
    """
    registry = ToolRegistry()
    for module_cls in TOOL_MODULES:
        for descriptor in module_cls(client).descriptors():
            registry.register(descriptor)
    registry.freeze()
    return registry


__all__ = [
    "AnalysisTools",
    "DetectionTools",
    "FraudTools",
    "MediaTools",
    "WebhookTools",
    "build_tool_registry",
]
