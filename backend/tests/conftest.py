"""Pytest fixtures — SQLite session store, fake calendar, fixed clock, tmp audit file."""
import os
import uuid
from datetime import datetime, timezone
from typing import Optional

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("AUDIT_LOG_PATH", "logs/test-calendar-audit.jsonl")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from app.database import Base
from app.dependencies import get_audit_recorder, get_calendar_client, get_clock, get_session_ledger
from app.main import app
from app.services.audit import AuditRecorder
from app.services.calendar_client import CalendarClient, CreatedEvent
from app.services.session_ledger import SessionEventLedger

# Import all models so they register with Base.metadata
from app.models.calendar_session import CalendarSession  # noqa: F401

# Sunday 1 March 2026, 12:00 UTC
FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def fixed_clock(instant: datetime = FIXED_NOW):
    """Return a zero-arg clock that always reports ``instant``."""
    return lambda: instant


class FakeCalendarClient(CalendarClient):
    """Records every create call; raises ``error`` instead when set."""

    def __init__(self):
        self.calls: list[dict] = []
        self.error: Optional[Exception] = None

    def create(self, session_id, title, description, start, end, timezone):
        self.calls.append({
            "session_id": session_id,
            "title": title,
            "description": description,
            "start": start,
            "end": end,
            "timezone": timezone,
        })
        if self.error is not None:
            raise self.error
        n = len(self.calls)
        return CreatedEvent(event_id=f"evt{n}", event_link=f"https://calendar.example.com/event?eid=evt{n}")


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(f"sqlite:///{tmp_path / 'sessions.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_calendar():
    return FakeCalendarClient()


@pytest.fixture
def audit(tmp_path):
    return AuditRecorder(tmp_path / "logs" / "calendar-audit.jsonl")


@pytest.fixture
def ledger():
    return SessionEventLedger(max_entries=50)


@pytest.fixture
def clock():
    return fixed_clock()


@pytest.fixture(scope="function")
def client(fake_calendar, audit, ledger, clock):
    """FastAPI TestClient with every collaborator overridden."""
    app.dependency_overrides[get_calendar_client] = lambda: fake_calendar
    app.dependency_overrides[get_audit_recorder] = lambda: audit
    app.dependency_overrides[get_session_ledger] = lambda: ledger
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helper: build request payloads in both inbound shapes
# ---------------------------------------------------------------------------
def make_args(**overrides) -> dict:
    """Valid flat create-event arguments, with overrides applied."""
    args = {
        "sessionId": str(uuid.uuid4()),
        "name": "Ada Lovelace",
        "date": "2026-03-20",
        "time": "10:00",
        "timezone": "America/New_York",
        "durationMinutes": 30,
    }
    args.update(overrides)
    return args


def make_envelope(arguments: dict, metadata: Optional[dict] = None, tool_call_id: str = "call_abc123") -> dict:
    """Wrap arguments in the voice transport's tool-call envelope."""
    return {
        "message": {
            "type": "tool-calls",
            "toolCallList": [{
                "id": tool_call_id,
                "type": "function",
                "function": {"name": "create_calendar_event", "arguments": arguments},
            }],
            "call": {"id": "call-xyz", "metadata": metadata or {}},
        }
    }
