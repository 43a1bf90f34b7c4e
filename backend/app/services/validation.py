"""Schema validation — canonical argument dict → SchedulingRequest.

All violations are collected and reported together, keyed by the wire field
name, in a fixed field order.
"""
import logging
from typing import Any

from pydantic import ValidationError

from app.schemas.scheduling import SchedulingRequest
from app.services.errors import RequestValidationFailed

logger = logging.getLogger(__name__)

FIELD_ORDER = ["sessionId", "name", "date", "time", "timezone", "durationMinutes", "title"]

# Python attribute / alias → wire field name
_WIRE_NAMES = {
    "session_id": "sessionId",
    "duration_minutes": "durationMinutes",
    "durationMins": "durationMinutes",
}


def _wire_name(loc: tuple) -> str:
    head = str(loc[0]) if loc else "request"
    return _WIRE_NAMES.get(head, head)


def _reason(error: dict[str, Any]) -> str:
    if error["type"] == "missing":
        return "is required"
    if error["type"] == "value_error":
        return str(error["ctx"]["error"])
    return error["msg"]


def collect_errors(exc: ValidationError) -> dict[str, list[str]]:
    details: dict[str, list[str]] = {}
    for error in exc.errors():
        details.setdefault(_wire_name(error["loc"]), []).append(_reason(error))
    order = {name: i for i, name in enumerate(FIELD_ORDER)}
    return dict(sorted(details.items(), key=lambda item: order.get(item[0], len(order))))


def validate_request(arguments: dict[str, Any]) -> SchedulingRequest:
    """Validate the canonical record, raising RequestValidationFailed on any violation."""
    if not isinstance(arguments, dict):
        raise RequestValidationFailed({"request": ["must be a JSON object"]})
    try:
        return SchedulingRequest.model_validate(arguments)
    except ValidationError as exc:
        details = collect_errors(exc)
        logger.info("Validation failed for fields %s", ", ".join(details))
        raise RequestValidationFailed(details)
