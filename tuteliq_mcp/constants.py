"""Constants and limits for the Tuteliq MCP server."""

SERVER_NAME = "tuteliq-mcp"
SERVER_VERSION = "3.0.0"
BRAND_NAME = "Tuteliq"

MCP_SESSION_ID_HEADER = "mcp-session-id"
MCP_ENDPOINT_PATH = "/mcp"

DEFAULT_TRANSPORT = "http"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3001
DEFAULT_API_BASE_URL = "https://api.tuteliq.ai"
DEFAULT_API_TIMEOUT_SECONDS = 30.0
DEFAULT_SSE_IDLE_TIMEOUT_SECONDS = 30.0
DEFAULT_REAP_INTERVAL_SECONDS = 60.0

STDIO_READ_CHUNK_BYTES = 65536
MAX_PENDING_NOTIFICATIONS = 200  # per session, oldest dropped first
MAX_VOICE_SEGMENTS = 20
