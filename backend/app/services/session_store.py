"""Session store — lookup and upsert of stored OAuth refresh tokens.

Token acquisition happens elsewhere; this module only reads and maintains
what is already stored. Token strings are never logged.
"""
import hashlib
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.models.calendar_session import CalendarSession

logger = logging.getLogger(__name__)

UNKNOWN_SESSION_HASH = "--"


def hash_session_id(session_id: Optional[str]) -> str:
    """One-way short hash of a session id, safe for logs and audit entries."""
    if not session_id or not isinstance(session_id, str):
        return UNKNOWN_SESSION_HASH
    return hashlib.sha256(session_id.encode("utf-8")).hexdigest()[:12]


def get_refresh_token(db: Session, session_id: str) -> Optional[str]:
    row = db.query(CalendarSession).filter(CalendarSession.session_id == session_id).first()
    return row.refresh_token if row else None


def session_exists(db: Session, session_id: str) -> bool:
    return db.query(CalendarSession.session_id).filter(
        CalendarSession.session_id == session_id
    ).first() is not None


def upsert_session(db: Session, session_id: str, refresh_token: str) -> CalendarSession:
    """Persist (or replace) the refresh token for a session."""
    row = db.query(CalendarSession).filter(CalendarSession.session_id == session_id).first()
    if row:
        row.refresh_token = refresh_token
        row.updated_at = datetime.now(timezone.utc)
    else:
        row = CalendarSession(session_id=session_id, refresh_token=refresh_token)
        db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Stored refresh token for session %s", hash_session_id(session_id))
    return row


def delete_session(db: Session, session_id: str) -> None:
    db.query(CalendarSession).filter(CalendarSession.session_id == session_id).delete()
    db.commit()
    logger.info("Deleted session %s", hash_session_id(session_id))
