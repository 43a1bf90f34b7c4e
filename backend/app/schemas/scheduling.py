"""Pydantic schemas for scheduling requests and responses."""
from __future__ import annotations
import re
from typing import Optional

import pytz
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt, field_validator

UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

MIN_DURATION_MINUTES = 5
MAX_DURATION_MINUTES = 240


class SchedulingRequest(BaseModel):
    """Validated, immutable scheduling request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    session_id: str = Field(validation_alias=AliasChoices("sessionId", "session_id"))
    name: str = Field(min_length=1, max_length=100)
    date: str = Field(min_length=1)
    time: str = Field(min_length=1)
    timezone: str
    duration_minutes: StrictInt = Field(
        ge=MIN_DURATION_MINUTES,
        le=MAX_DURATION_MINUTES,
        validation_alias=AliasChoices("durationMinutes", "durationMins", "duration_minutes"),
    )
    title: Optional[str] = Field(None, min_length=1, max_length=200)

    @field_validator("session_id")
    @classmethod
    def _session_id_is_uuid(cls, value: str) -> str:
        if not UUID_RE.match(value):
            raise ValueError("must be a valid UUID")
        return value.lower()

    @field_validator("timezone")
    @classmethod
    def _timezone_is_known(cls, value: str) -> str:
        if value not in pytz.all_timezones_set:
            raise ValueError('must be a valid IANA timezone (e.g. "America/New_York")')
        return value

    @property
    def effective_title(self) -> str:
        return self.title or f"Meeting with {self.name}"

    def as_audit_dict(self) -> dict:
        """Validated fields under their wire names, without the session id."""
        fields = {
            "name": self.name,
            "date": self.date,
            "time": self.time,
            "timezone": self.timezone,
            "durationMinutes": self.duration_minutes,
        }
        if self.title is not None:
            fields["title"] = self.title
        return fields


class CreateEventResponse(BaseModel):
    """Flat-shape response body; omitted fields are dropped on the wire."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool
    event_id: Optional[str] = Field(None, alias="eventId")
    event_link: Optional[str] = Field(None, alias="eventLink")
    summary: Optional[str] = None
    start_iso: Optional[str] = Field(None, alias="startISO")
    end_iso: Optional[str] = Field(None, alias="endISO")
    timezone: Optional[str] = None
    error: Optional[str] = None
    details: Optional[dict[str, list[str]]] = None


class ToolCallResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tool_call_id: str = Field(alias="toolCallId")
    result: str


class ToolCallResponse(BaseModel):
    results: list[ToolCallResult]


class SessionEventOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    start_iso: str = Field(alias="startISO")
    timezone: str
    event_link: str = Field(alias="eventLink")


class SessionEventsOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    count: int
    events: list[SessionEventOut] = []
