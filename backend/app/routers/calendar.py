"""Calendar API routes — create-event pipeline and session read-back."""
import json
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.dependencies import get_audit_recorder, get_calendar_client, get_clock, get_session_ledger
from app.schemas.scheduling import UUID_RE, SessionEventOut, SessionEventsOut
from app.services.audit import AuditRecorder
from app.services.calendar_client import CalendarClient
from app.services.outcome import build_response
from app.services.scheduling_service import schedule_event
from app.services.session_ledger import SessionEventLedger
from app.services.session_store import hash_session_id
from app.services.temporal import Clock

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/create-event")
async def create_event(
    request: Request,
    calendar: CalendarClient = Depends(get_calendar_client),
    audit: AuditRecorder = Depends(get_audit_recorder),
    ledger: SessionEventLedger = Depends(get_session_ledger),
    clock: Clock = Depends(get_clock),
) -> JSONResponse:
    """Schedule one event from either the tool-call envelope or a direct call."""
    body = await request.body()
    try:
        payload = json.loads(body) if body else {}
    except (json.JSONDecodeError, UnicodeDecodeError):
        payload = {"_unparsedBody": body.decode("utf-8", errors="replace")}

    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
    outcome = await run_in_threadpool(
        schedule_event,
        payload,
        request_id,
        calendar=calendar,
        audit=audit,
        ledger=ledger,
        clock=clock,
    )
    return build_response(outcome)


@router.get("/session/{session_id}/events", response_model=SessionEventsOut)
def list_session_events(session_id: str, ledger: SessionEventLedger = Depends(get_session_ledger)):
    """Events created during this process's lifetime for a session (best-effort)."""
    if not UUID_RE.match(session_id):
        raise HTTPException(status_code=400, detail="sessionId must be a valid UUID")
    records = ledger.list(session_id.lower())
    logger.info("Session read-back for %s: %d events", hash_session_id(session_id.lower()), len(records))
    return SessionEventsOut(
        session_id=session_id,
        count=len(records),
        events=[
            SessionEventOut(
                title=r.title, start_iso=r.start_iso, timezone=r.timezone, event_link=r.event_link,
            )
            for r in records
        ],
    )
