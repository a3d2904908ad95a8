"""Webhook management tools."""

from typing import Any

from tuteliq_mcp import formatters
from tuteliq_mcp.client import TuteliqClient
from tuteliq_mcp.tool_registry import ToolDescriptor, ToolResult
from tuteliq_mcp.tools.helpers import array, boolean, object_schema, string

WEBHOOK_ID_SCHEMA = object_schema({"id": string("Webhook ID")}, required=["id"])


class WebhookTools:
    def __init__(self, client: TuteliqClient) -> None:
        self.client = client

    async def list_webhooks(self, args: dict[str, Any]) -> ToolResult:
        result = await self.client.list_webhooks()
        return ToolResult.for_tool("list_webhooks", result, formatters.format_webhook_list(result))

    async def create_webhook(self, args: dict[str, Any]) -> ToolResult:
        result = await self.client.create_webhook(args["name"], args["url"], args["events"])
        return ToolResult.for_tool(
            "create_webhook", result, formatters.format_webhook_created(result)
        )

    async def update_webhook(self, args: dict[str, Any]) -> ToolResult:
        result = await self.client.update_webhook(
            args["id"],
            name=args.get("name"),
            url=args.get("url"),
            events=args.get("events"),
            is_active=args.get("is_active"),
        )
        return ToolResult.for_tool(
            "update_webhook", result, formatters.format_webhook_updated(result)
        )

    async def delete_webhook(self, args: dict[str, Any]) -> ToolResult:
        webhook_id = args["id"]
        result = await self.client.delete_webhook(webhook_id)
        return ToolResult.for_tool(
            "delete_webhook", result, formatters.format_webhook_deleted(webhook_id)
        )

    async def test_webhook(self, args: dict[str, Any]) -> ToolResult:
        result = await self.client.test_webhook(args["id"])
        return ToolResult.for_tool("test_webhook", result, formatters.format_webhook_test(result))

    async def regenerate_webhook_secret(self, args: dict[str, Any]) -> ToolResult:
        result = await self.client.regenerate_webhook_secret(args["id"])
        return ToolResult.for_tool(
            "regenerate_webhook_secret", result, formatters.format_webhook_secret(result)
        )

    def descriptors(self) -> list[ToolDescriptor]:
        write_annotations = {"readOnlyHint": False, "openWorldHint": True, "destructiveHint": False}
        return [
            ToolDescriptor(
                name="list_webhooks",
                description="List all webhooks configured for your account.",
                input_schema=object_schema({}),
                handler=self.list_webhooks,
            ),
            ToolDescriptor(
                name="create_webhook",
                description="Create a new webhook endpoint.",
                input_schema=object_schema(
                    {
                        "name": string("Display name for the webhook"),
                        "url": string("HTTPS URL to receive webhook payloads"),
                        "events": array("Event types to subscribe to", {"type": "string"}),
                    },
                    required=["name", "url", "events"],
                ),
                handler=self.create_webhook,
                annotations=write_annotations,
            ),
            ToolDescriptor(
                name="update_webhook",
                description="Update an existing webhook configuration.",
                input_schema=object_schema(
                    {
                        "id": string("Webhook ID"),
                        "name": string("New display name"),
                        "url": string("New HTTPS URL"),
                        "events": array("New event subscriptions", {"type": "string"}),
                        "is_active": boolean("Enable or disable the webhook"),
                    },
                    required=["id"],
                ),
                handler=self.update_webhook,
                annotations=write_annotations,
            ),
            ToolDescriptor(
                name="delete_webhook",
                description="Permanently delete a webhook.",
                input_schema=object_schema({"id": string("Webhook ID to delete")}, required=["id"]),
                handler=self.delete_webhook,
                annotations={**write_annotations, "destructiveHint": True},
            ),
            ToolDescriptor(
                name="test_webhook",
                description="Send a test payload to a webhook to verify it is working correctly.",
                input_schema=object_schema({"id": string("Webhook ID to test")}, required=["id"]),
                handler=self.test_webhook,
                annotations=write_annotations,
            ),
            ToolDescriptor(
                name="regenerate_webhook_secret",
                description="Regenerate a webhook signing secret.",
                input_schema=WEBHOOK_ID_SCHEMA,
                handler=self.regenerate_webhook_secret,
                annotations=write_annotations,
            ),
        ]
