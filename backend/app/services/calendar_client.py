"""Calendar creation collaborator.

``CalendarClient`` is the narrow contract the scheduling pipeline depends on.
``GoogleCalendarClient`` implements it against Google Calendar using the
refresh token stored for the session. Every failure surfaces as a
``CalendarError`` with one of the downstream categories.
"""
import json
import logging
import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import httplib2
from google.auth.exceptions import RefreshError, TransportError
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.config import settings
from app.database import SessionLocal
from app.services.errors import CalendarError, ErrorCategory
from app.services.session_store import get_refresh_token, hash_session_id, upsert_session

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.events"]

RATE_LIMIT_REASONS = {"quotaExceeded", "userRateLimitExceeded", "rateLimitExceeded"}
FORBIDDEN_REASONS = {"insufficientPermissions", "forbidden"}


@dataclass(frozen=True)
class CreatedEvent:
    event_id: str
    event_link: str


def event_body(title: str, description: str, start: datetime, end: datetime, timezone: str) -> dict[str, Any]:
    """Google Calendar ``events.insert`` request body."""
    return {
        "summary": title,
        "description": description,
        "start": {"dateTime": start.isoformat(), "timeZone": timezone},
        "end": {"dateTime": end.isoformat(), "timeZone": timezone},
    }


class CalendarClient(ABC):
    @abstractmethod
    def create(
        self,
        session_id: str,
        title: str,
        description: str,
        start: datetime,
        end: datetime,
        timezone: str,
    ) -> CreatedEvent:
        """Create one event; raise CalendarError on any failure."""


def _parse_http_error(error: HttpError) -> tuple[int, str, str]:
    """Return ``(status, reason, message)`` from a Google API HttpError."""
    status = error.resp.status if error.resp is not None else 0
    content: dict[str, Any] = {}
    try:
        content = json.loads(error.content.decode("utf-8"))
    except (json.JSONDecodeError, AttributeError, UnicodeDecodeError):
        pass
    info = content.get("error", {}) if isinstance(content, dict) else {}
    if not isinstance(info, dict):
        info = {"message": str(info)}
    errors = info.get("errors") or [{}]
    reason = errors[0].get("reason", "") if isinstance(errors[0], dict) else ""
    message = info.get("message") or error.reason or str(error)
    return int(status), reason, message


def map_google_error(exc: Exception) -> CalendarError:
    """Map a raw Google client/auth/transport error onto a downstream category."""
    if isinstance(exc, CalendarError):
        return exc

    if isinstance(exc, RefreshError):
        return CalendarError(
            ErrorCategory.unauthenticated,
            "Google authorisation expired. Please reconnect Google Calendar.",
            401,
        )

    if isinstance(exc, (socket.timeout, TimeoutError)):
        return CalendarError(
            ErrorCategory.downstream_generic,
            "Google Calendar API error: the request timed out.",
        )

    if isinstance(exc, HttpError):
        status, reason, message = _parse_http_error(exc)
        if reason == "invalid_grant" or "invalid_grant" in message or "Token has been expired" in message:
            return CalendarError(
                ErrorCategory.unauthenticated,
                "Google authorisation expired. Please reconnect Google Calendar.",
                status or 401,
            )
        if status == 401:
            return CalendarError(
                ErrorCategory.unauthenticated,
                "Google rejected the stored credentials. Please reconnect Google Calendar.",
                status,
            )
        if reason in RATE_LIMIT_REASONS or status == 429:
            return CalendarError(
                ErrorCategory.rate_limited,
                "Google Calendar API rate limit exceeded. Please try again shortly.",
                status,
            )
        if reason in FORBIDDEN_REASONS or status == 403:
            return CalendarError(
                ErrorCategory.forbidden,
                "Insufficient Google Calendar permissions. Please reconnect and grant calendar access.",
                status,
            )
        return CalendarError(
            ErrorCategory.downstream_generic,
            f"Google Calendar API error: {message}",
            status or None,
        )

    return CalendarError(ErrorCategory.downstream_generic, f"Google Calendar API error: {exc}")


class GoogleCalendarClient(CalendarClient):
    """Creates events on the session owner's calendar."""

    def __init__(
        self,
        session_factory=SessionLocal,
        calendar_id: str = settings.CALENDAR_ID,
        timeout: float = settings.CALENDAR_TIMEOUT_SECONDS,
    ):
        self.session_factory = session_factory
        self.calendar_id = calendar_id
        self.timeout = timeout

    def _credentials(self, session_id: str) -> Credentials:
        db = self.session_factory()
        try:
            refresh_token = get_refresh_token(db, session_id)
        finally:
            db.close()
        if not refresh_token:
            raise CalendarError(
                ErrorCategory.unauthenticated,
                "Session not connected. Please authorise with Google Calendar first.",
                401,
            )
        return Credentials(
            token=None,
            refresh_token=refresh_token,
            token_uri=settings.GOOGLE_TOKEN_URI,
            client_id=settings.GOOGLE_CLIENT_ID,
            client_secret=settings.GOOGLE_CLIENT_SECRET,
            scopes=SCOPES,
        )

    def _persist_rotated_token(self, session_id: str, original: str, creds: Credentials) -> None:
        if creds.refresh_token and creds.refresh_token != original:
            db = self.session_factory()
            try:
                upsert_session(db, session_id, creds.refresh_token)
            finally:
                db.close()

    def create(
        self,
        session_id: str,
        title: str,
        description: str,
        start: datetime,
        end: datetime,
        timezone: str,
    ) -> CreatedEvent:
        session_hash = hash_session_id(session_id)
        logger.info("calendar.create.attempt session=%s start=%s tz=%s", session_hash, start.isoformat(), timezone)

        creds = self._credentials(session_id)
        original_refresh_token: Optional[str] = creds.refresh_token
        body = event_body(title, description, start, end, timezone)

        try:
            http = AuthorizedHttp(creds, http=httplib2.Http(timeout=self.timeout))
            service = build("calendar", "v3", http=http, cache_discovery=False)
            data = service.events().insert(calendarId=self.calendar_id, body=body).execute()
        except (HttpError, RefreshError, TransportError, httplib2.HttpLib2Error, OSError) as exc:
            mapped = map_google_error(exc)
            logger.warning(
                "calendar.create.failure session=%s category=%s status=%s",
                session_hash, mapped.category.value, mapped.downstream_status,
            )
            raise mapped from exc

        self._persist_rotated_token(session_id, original_refresh_token, creds)

        event_id = data.get("id")
        event_link = data.get("htmlLink")
        if not event_id or not event_link:
            raise CalendarError(
                ErrorCategory.downstream_generic,
                "Google Calendar returned an incomplete event response.",
            )

        logger.info("calendar.create.success session=%s event=%s", session_hash, event_id)
        return CreatedEvent(event_id=event_id, event_link=event_link)
