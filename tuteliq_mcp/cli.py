"""Command-line entry point for the Tuteliq MCP server."""

import argparse
import asyncio
import logging
import sys

from tuteliq_mcp.client import TuteliqClient
from tuteliq_mcp.config import TRANSPORT_MODES, ServerConfig
from tuteliq_mcp.constants import SERVER_NAME
from tuteliq_mcp.errors import ConfigurationError, DuplicateToolName

logger = logging.getLogger("tuteliq_mcp")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str) -> None:
    """Send all logging to stderr; stdout is reserved for the stdio protocol."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=SERVER_NAME,
        description="Tuteliq content-safety tools over the Model Context Protocol",
    )
    parser.add_argument(
        "--transport",
        choices=TRANSPORT_MODES,
        help="Transport binding (default: TUTELIQ_MCP_TRANSPORT or http)",
    )
    parser.add_argument("--host", help="HTTP bind address (http transport only)")
    parser.add_argument("--port", type=int, help="HTTP port (default: PORT or 3001)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Log level (default: TUTELIQ_MCP_LOG_LEVEL or INFO)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the server; returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        config = ServerConfig.from_env().with_overrides(
            transport=args.transport,
            host=args.host,
            port=args.port,
            log_level=args.log_level,
        )
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    configure_logging(config.log_level)

    # Imported here so a missing credential fails before the web stack loads
    from tuteliq_mcp.tools import build_tool_registry

    client = TuteliqClient(
        config.api_key, base_url=config.api_base_url, timeout=config.api_timeout
    )
    try:
        tools = build_tool_registry(client)
    except DuplicateToolName as e:
        logger.error("Startup failed: %s", e)
        return 1

    try:
        if config.transport == "stdio":
            from tuteliq_mcp.transports.stdio import run_stdio

            logger.info("Tuteliq MCP server running on stdio (%d tools)", len(tools))
            asyncio.run(run_stdio(tools))
        else:
            from tuteliq_mcp.transports.http import run_http

            run_http(config, tools)
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down")
    finally:
        client.close()
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
