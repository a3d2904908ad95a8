"""Environment-driven configuration for the Tuteliq MCP server."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace

from dotenv import load_dotenv

from tuteliq_mcp.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_TIMEOUT_SECONDS,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_REAP_INTERVAL_SECONDS,
    DEFAULT_SSE_IDLE_TIMEOUT_SECONDS,
    DEFAULT_TRANSPORT,
)
from tuteliq_mcp.errors import ConfigurationError

TRANSPORT_MODES = ("stdio", "http")


@dataclass(frozen=True)
class ServerConfig:
    api_key: str
    transport: str = DEFAULT_TRANSPORT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    api_base_url: str = DEFAULT_API_BASE_URL
    api_timeout: float = DEFAULT_API_TIMEOUT_SECONDS
    session_idle_timeout: float | None = None
    reap_interval: float = DEFAULT_REAP_INTERVAL_SECONDS
    sse_idle_timeout: float = DEFAULT_SSE_IDLE_TIMEOUT_SECONDS
    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ServerConfig":
        """Build a config from environment variables.

        When ``environ`` is omitted, a ``.env`` file in the working directory is
        loaded first and ``os.environ`` is read.

        Raises:
            ConfigurationError: If ``TUTELIQ_API_KEY`` is missing or a value
                cannot be parsed.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        api_key = environ.get("TUTELIQ_API_KEY", "").strip()
        if not api_key:
            raise ConfigurationError("TUTELIQ_API_KEY environment variable is required")

        transport = environ.get("TUTELIQ_MCP_TRANSPORT", DEFAULT_TRANSPORT).strip().lower()
        if transport not in TRANSPORT_MODES:
            # Anything other than stdio falls back to http
            transport = DEFAULT_TRANSPORT

        cors_env = environ.get("TUTELIQ_MCP_CORS_ORIGINS", "")
        cors_origins = tuple(o.strip() for o in cors_env.split(",") if o.strip()) or ("*",)

        return cls(
            api_key=api_key,
            transport=transport,
            host=environ.get("TUTELIQ_MCP_HOST", DEFAULT_HOST),
            port=_parse_int(environ, "PORT", DEFAULT_PORT),
            api_base_url=environ.get("TUTELIQ_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
            api_timeout=_parse_float(environ, "TUTELIQ_API_TIMEOUT", DEFAULT_API_TIMEOUT_SECONDS),
            session_idle_timeout=_parse_optional_float(environ, "TUTELIQ_MCP_SESSION_IDLE_TIMEOUT"),
            reap_interval=_parse_float(
                environ, "TUTELIQ_MCP_REAP_INTERVAL", DEFAULT_REAP_INTERVAL_SECONDS
            ),
            sse_idle_timeout=_parse_float(
                environ, "TUTELIQ_MCP_SSE_IDLE_TIMEOUT", DEFAULT_SSE_IDLE_TIMEOUT_SECONDS
            ),
            cors_origins=cors_origins,
            log_level=environ.get("TUTELIQ_MCP_LOG_LEVEL", "INFO").upper(),
        )

    def with_overrides(self, **overrides: object) -> "ServerConfig":
        """Return a copy with the non-None overrides applied (CLI flags)."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        if "transport" in changes and changes["transport"] not in TRANSPORT_MODES:
            raise ConfigurationError(f"Unsupported transport: {changes['transport']}")
        return replace(self, **changes)


def _parse_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def _parse_float(environ: Mapping[str, str], name: str, default: float) -> float:
    value = _parse_optional_float(environ, name)
    return default if value is None else value


def _parse_optional_float(environ: Mapping[str, str], name: str) -> float | None:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value
