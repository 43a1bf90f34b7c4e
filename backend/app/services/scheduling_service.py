"""Scheduling pipeline — one inbound request to one terminal outcome.

Stages: normalize → validate → resolve → past-time guard → calendar create →
session ledger. The audit recorder writes a ``received`` entry on arrival and
exactly one terminal entry; every failure, classified or not, is caught here
and carried on the returned ``PipelineOutcome``.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from app.schemas.scheduling import SchedulingRequest
from app.services.audit import AuditRecorder, AuditStage
from app.services.calendar_client import CalendarClient, CreatedEvent, event_body
from app.services.envelope import InboundCall, normalize
from app.services.errors import CalendarError, InternalError, SchedulingError
from app.services.session_ledger import SessionEventLedger, SessionEventRecord
from app.services.session_store import UNKNOWN_SESSION_HASH, hash_session_id
from app.services.temporal import Clock, ResolvedInterval, ensure_future, resolve_interval, system_clock
from app.services.validation import validate_request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineOutcome:
    request_id: str
    call: InboundCall
    request: Optional[SchedulingRequest] = None
    interval: Optional[ResolvedInterval] = None
    created: Optional[CreatedEvent] = None
    error: Optional[SchedulingError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.created is not None

    @property
    def stage(self) -> AuditStage:
        return AuditStage.downstream_success if self.ok else self.error.audit_stage


def _claimed_session_hash(call: InboundCall) -> str:
    """Hash the claimed id the way validation will canonicalise it."""
    session_id = call.arguments.get("sessionId")
    if not isinstance(session_id, str):
        return UNKNOWN_SESSION_HASH
    return hash_session_id(session_id.strip().lower())


def schedule_event(
    payload: Any,
    request_id: str,
    calendar: CalendarClient,
    audit: AuditRecorder,
    ledger: SessionEventLedger,
    clock: Clock = system_clock,
) -> PipelineOutcome:
    """Run the full pipeline for one inbound payload."""
    call = normalize(payload)
    session_hash = _claimed_session_hash(call)
    audit.record(request_id, session_hash, AuditStage.received, payload)

    request: Optional[SchedulingRequest] = None
    interval: Optional[ResolvedInterval] = None
    created: Optional[CreatedEvent] = None
    error: Optional[SchedulingError] = None
    google_payload: Optional[dict] = None

    try:
        request = validate_request(call.arguments)
        session_hash = hash_session_id(request.session_id)
        interval = resolve_interval(
            request.date, request.time, request.timezone, request.duration_minutes, clock=clock,
        )
        ensure_future(interval, clock)

        title = request.effective_title
        description = f"Scheduled for {request.name}"
        logger.info(
            "Create-event request validated: session=%s title=%r start=%s end=%s tz=%s via=%s",
            session_hash, title, interval.start.isoformat(), interval.end.isoformat(),
            interval.timezone, interval.strategy,
        )
        google_payload = event_body(title, description, interval.start, interval.end, interval.timezone)
        created = calendar.create(
            session_id=request.session_id,
            title=title,
            description=description,
            start=interval.start,
            end=interval.end,
            timezone=interval.timezone,
        )
        ledger.record(request.session_id, SessionEventRecord(
            title=title,
            start_iso=interval.start.isoformat(),
            timezone=interval.timezone,
            event_link=created.event_link,
        ))
    except SchedulingError as exc:
        error = exc
        logger.warning("Scheduling request %s rejected (%s): %s", request_id, exc.category.value, exc.message)
    except Exception:
        logger.exception("Unexpected error while scheduling request %s", request_id)
        error = InternalError()
        created = None

    outcome = PipelineOutcome(
        request_id=request_id,
        call=call,
        request=request,
        interval=interval,
        created=created,
        error=error,
    )
    audit.record(
        request_id,
        session_hash,
        outcome.stage,
        payload,
        input=request.as_audit_dict() if request else None,
        parsedInterval=interval.as_audit_dict() if interval else None,
        errorMessage=error.message if error else None,
        downstreamStatus=error.downstream_status if isinstance(error, CalendarError) else None,
        eventId=created.event_id if created else None,
        eventLink=created.event_link if created else None,
        googlePayload=google_payload,
    )
    return outcome
