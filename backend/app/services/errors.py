"""Error taxonomy for the scheduling pipeline.

Every failure carries a category, the HTTP status used for direct callers,
the audit stage that terminates the request, and a message that is safe to
relay to the end user.
"""
import enum
from datetime import datetime
from typing import Optional

from app.services.audit import AuditStage


class ErrorCategory(str, enum.Enum):
    validation = "validation"
    parse_failure = "parse_failure"
    zone_error = "zone_error"
    past_time = "past_time"
    unauthenticated = "unauthenticated"
    forbidden = "forbidden"
    rate_limited = "rate_limited"
    downstream_generic = "downstream_generic"
    internal = "internal"


HTTP_STATUS = {
    ErrorCategory.validation: 400,
    ErrorCategory.parse_failure: 400,
    ErrorCategory.zone_error: 400,
    ErrorCategory.past_time: 400,
    ErrorCategory.unauthenticated: 401,
    ErrorCategory.forbidden: 403,
    ErrorCategory.rate_limited: 429,
    ErrorCategory.downstream_generic: 502,
    ErrorCategory.internal: 500,
}

DOWNSTREAM_CATEGORIES = frozenset({
    ErrorCategory.unauthenticated,
    ErrorCategory.forbidden,
    ErrorCategory.rate_limited,
    ErrorCategory.downstream_generic,
})


class SchedulingError(Exception):
    category: ErrorCategory = ErrorCategory.internal
    audit_stage: AuditStage = AuditStage.downstream_error

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def http_status(self) -> int:
        return HTTP_STATUS[self.category]


class RequestValidationFailed(SchedulingError):
    category = ErrorCategory.validation
    audit_stage = AuditStage.validation_error

    def __init__(self, details: dict[str, list[str]]):
        self.details = details
        reasons = "; ".join(f"{field}: {', '.join(msgs)}" for field, msgs in details.items())
        super().__init__(f"Validation failed: {reasons}")


class DateParseError(SchedulingError):
    category = ErrorCategory.parse_failure
    audit_stage = AuditStage.parse_error

    def __init__(self, raw_date: str, raw_time: str):
        self.raw = f"{raw_date} {raw_time}"
        super().__init__(
            f'Could not understand the date and time "{self.raw}". '
            "Please give a date such as 2026-03-15 or \"next Friday\" and a time such as 2:30 PM."
        )


class ZoneApplicationError(SchedulingError):
    category = ErrorCategory.zone_error
    audit_stage = AuditStage.zone_error


class PastTimeError(SchedulingError):
    category = ErrorCategory.past_time
    audit_stage = AuditStage.past_time

    def __init__(self, start: datetime, tz_name: str):
        self.start = start
        super().__init__(
            f"The requested event time {start.isoformat()} ({tz_name}) is in the past. "
            "Please choose a future date and time."
        )


class CalendarError(SchedulingError):
    """Failure reported by the downstream calendar collaborator."""

    audit_stage = AuditStage.downstream_error

    def __init__(self, category: ErrorCategory, message: str, status: Optional[int] = None):
        if category not in DOWNSTREAM_CATEGORIES:
            raise ValueError(f"{category} is not a downstream error category")
        self.category = category
        self.downstream_status = status
        super().__init__(message)


class InternalError(SchedulingError):
    category = ErrorCategory.internal
    audit_stage = AuditStage.downstream_error

    def __init__(self, message: str = "Internal server error."):
        super().__init__(message)
