"""Envelope normalizer — reduces both inbound shapes to one argument record.

Two shapes reach ``POST /api/create-event``:

* Tool-call envelope (voice orchestration transport)::

      {"message": {"type": "tool-calls",
                   "toolCallList": [{"id": "call_1",
                                     "function": {"name": "...", "arguments": {...}}}],
                   "call": {"metadata": {"sessionId": "...", "timezone": "..."}}}}

* Direct call: the payload itself is the flat argument object.

Decoded once here into an ``InboundCall``; nothing downstream inspects the
raw payload shape again.
"""
import enum
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)

TOOL_CALLS_MESSAGE_TYPE = "tool-calls"
METADATA_DEFAULT_KEYS = ("sessionId", "timezone")


class CallShape(str, enum.Enum):
    envelope = "envelope"
    direct = "direct"


@dataclass(frozen=True)
class InboundCall:
    shape: CallShape
    arguments: dict[str, Any]
    tool_call_id: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)


def _decode_arguments(raw: Any) -> dict[str, Any]:
    # Some transports deliver arguments as a JSON-encoded string.
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Tool call arguments are not valid JSON")
            return {}
    return raw if isinstance(raw, dict) else {}


def _tool_call_arguments(tool_call: dict[str, Any]) -> Any:
    function = tool_call.get("function")
    if isinstance(function, dict) and "arguments" in function:
        return function["arguments"]
    return tool_call.get("arguments")


def _extract_envelope(payload: Any) -> Optional[tuple[dict, dict, dict]]:
    """Return ``(message, first_tool_call, metadata)`` or None when not an envelope."""
    if not isinstance(payload, dict):
        return None
    message = payload.get("message")
    if not isinstance(message, dict) or message.get("type") != TOOL_CALLS_MESSAGE_TYPE:
        return None
    tool_calls = message.get("toolCallList") or message.get("toolCalls")
    if not isinstance(tool_calls, list) or not tool_calls:
        return None
    first = tool_calls[0]
    if not isinstance(first, dict) or not first.get("id"):
        return None
    call = message.get("call")
    metadata = call.get("metadata") if isinstance(call, dict) else None
    return message, first, metadata if isinstance(metadata, dict) else {}


def merge_arguments(metadata: dict[str, Any], arguments: dict[str, Any]) -> dict[str, Any]:
    """Metadata supplies sessionId/timezone defaults; explicit arguments win."""
    merged = {key: metadata[key] for key in METADATA_DEFAULT_KEYS if key in metadata}
    merged.update(arguments)
    return merged


def normalize(payload: Any) -> InboundCall:
    """Never fails: missing fields surface later as validation errors."""
    extracted = _extract_envelope(payload)
    if extracted is None:
        arguments = payload if isinstance(payload, dict) else {}
        return InboundCall(shape=CallShape.direct, arguments=dict(arguments))

    _, tool_call, metadata = extracted
    arguments = _decode_arguments(_tool_call_arguments(tool_call))
    return InboundCall(
        shape=CallShape.envelope,
        arguments=merge_arguments(metadata, arguments),
        tool_call_id=str(tool_call["id"]),
        metadata=metadata,
    )
