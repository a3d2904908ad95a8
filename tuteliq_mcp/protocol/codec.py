"""Newline-delimited JSON-RPC framing.

One message per line, validated against ``mcp.types.JSONRPCMessage``. A line
may also hold a JSON array (a batch); its items are decoded one by one.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from mcp import types
from pydantic import ValidationError

from tuteliq_mcp.errors import MalformedEnvelope

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"

PARSE_ERROR = types.PARSE_ERROR
INVALID_REQUEST = types.INVALID_REQUEST
METHOD_NOT_FOUND = types.METHOD_NOT_FOUND
INVALID_PARAMS = types.INVALID_PARAMS
INTERNAL_ERROR = types.INTERNAL_ERROR

CorrelationId = str | int


class EnvelopeKind(str, Enum):
    REQUEST = "request"
    NOTIFICATION = "notification"
    RESPONSE = "response"
    ERROR = "error"


@dataclass(frozen=True)
class Envelope:
    """One JSON-RPC message.

    ``payload`` holds ``params`` for requests and notifications, ``result`` for
    responses and the ``error`` object for errors.
    """

    kind: EnvelopeKind
    correlation_id: CorrelationId | None = None
    method: str | None = None
    payload: dict[str, Any] | None = None

    @classmethod
    def request(
        cls, correlation_id: CorrelationId, method: str, params: dict[str, Any] | None = None
    ) -> "Envelope":
        return cls(EnvelopeKind.REQUEST, correlation_id, method, params)

    @classmethod
    def notification(cls, method: str, params: dict[str, Any] | None = None) -> "Envelope":
        return cls(EnvelopeKind.NOTIFICATION, None, method, params)

    @classmethod
    def result(cls, correlation_id: CorrelationId, result: dict[str, Any]) -> "Envelope":
        return cls(EnvelopeKind.RESPONSE, correlation_id, None, result)

    @classmethod
    def error(
        cls,
        correlation_id: CorrelationId | None,
        code: int,
        message: str,
        data: Any | None = None,
    ) -> "Envelope":
        error: dict[str, Any] = {"code": code, "message": message}
        if data is not None:
            error["data"] = data
        return cls(EnvelopeKind.ERROR, correlation_id, None, error)

    @property
    def expects_response(self) -> bool:
        return self.kind is EnvelopeKind.REQUEST

    def to_wire(self) -> dict[str, Any]:
        message: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION}
        if self.kind is EnvelopeKind.REQUEST:
            message["id"] = self.correlation_id
            message["method"] = self.method
            if self.payload is not None:
                message["params"] = self.payload
        elif self.kind is EnvelopeKind.NOTIFICATION:
            message["method"] = self.method
            if self.payload is not None:
                message["params"] = self.payload
        elif self.kind is EnvelopeKind.RESPONSE:
            message["id"] = self.correlation_id
            message["result"] = self.payload if self.payload is not None else {}
        else:
            message["id"] = self.correlation_id
            message["error"] = self.payload or {"code": INTERNAL_ERROR, "message": "Unknown error"}
        return message


DecodedItem = Envelope | MalformedEnvelope


class ProtocolCodec:
    """Stateful decoder and stateless encoder for one session's byte stream."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def pending(self) -> bytes:
        """Bytes of a partial frame waiting for its terminating newline."""
        return bytes(self._buffer)

    def reset(self) -> None:
        self._buffer.clear()

    def decode(self, raw: bytes | str, final: bool = False) -> list[DecodedItem]:
        """Decode every complete frame in ``raw`` plus previously buffered bytes.

        A trailing partial line stays buffered for the next call unless
        ``final`` is set, in which case it is decoded as a complete frame.
        """
        if isinstance(raw, str):
            raw = raw.encode("utf-8")
        self._buffer.extend(raw)

        *lines, rest = self._buffer.split(b"\n")
        if final:
            lines.append(rest)
            rest = b""
        self._buffer = bytearray(rest)

        items: list[DecodedItem] = []
        for line in lines:
            line = line.strip()
            if line:
                items.extend(self._decode_frame(bytes(line)))
        return items

    def _decode_frame(self, frame: bytes) -> list[DecodedItem]:
        try:
            message = json.loads(frame.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.debug("Discarding undecodable frame: %s", e)
            return [MalformedEnvelope(f"Parse error: {e}")]

        if isinstance(message, list):
            if not message:
                return [MalformedEnvelope("Empty batch")]
            return [self._decode_message(item) for item in message]
        return [self._decode_message(message)]

    @staticmethod
    def _decode_message(message: Any) -> DecodedItem:
        if not isinstance(message, dict):
            return MalformedEnvelope("Envelope must be a JSON object")

        correlation_id = _recover_correlation_id(message)
        try:
            validated = types.JSONRPCMessage.model_validate(message).root
        except ValidationError as e:
            return MalformedEnvelope(
                f"Invalid envelope: {e.errors()[0].get('msg', 'validation failed')}",
                correlation_id=correlation_id,
            )

        if isinstance(validated, types.JSONRPCRequest):
            return Envelope.request(validated.id, validated.method, validated.params)
        if isinstance(validated, types.JSONRPCNotification):
            return Envelope.notification(validated.method, validated.params)
        if isinstance(validated, types.JSONRPCResponse):
            return Envelope.result(validated.id, validated.result)
        return Envelope(
            EnvelopeKind.ERROR,
            validated.id,
            None,
            validated.error.model_dump(exclude_none=True),
        )

    @staticmethod
    def encode(envelope: Envelope) -> bytes:
        """Serialize ``envelope`` as one compact, newline-terminated JSON line."""
        text = json.dumps(envelope.to_wire(), ensure_ascii=False, separators=(",", ":"))
        return (text + "\n").encode("utf-8")


def _recover_correlation_id(message: dict[str, Any]) -> CorrelationId | None:
    value = message.get("id")
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int)):
        return value
    return None
