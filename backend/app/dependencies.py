"""Process-lifetime collaborators, injected into routes via ``Depends``.

Each provider is cached, so one instance lives for the life of the process.
The session ledger is in-memory only and is empty again after a restart.
Tests replace any of these through ``app.dependency_overrides``.
"""
from functools import lru_cache

from app.config import settings
from app.services.audit import AuditRecorder
from app.services.calendar_client import CalendarClient, GoogleCalendarClient
from app.services.session_ledger import SessionEventLedger
from app.services.temporal import Clock, system_clock


@lru_cache
def get_audit_recorder() -> AuditRecorder:
    return AuditRecorder(settings.AUDIT_LOG_PATH)


@lru_cache
def get_session_ledger() -> SessionEventLedger:
    return SessionEventLedger(max_entries=settings.SESSION_LEDGER_MAX)


@lru_cache
def get_calendar_client() -> CalendarClient:
    return GoogleCalendarClient()


def get_clock() -> Clock:
    return system_clock
