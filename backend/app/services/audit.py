"""Audit recorder — append-only JSONL trail of every scheduling attempt.

One line per entry. Each request writes a ``received`` entry before any
parsing and exactly one terminal entry sharing the same ``request_id``.

Guarantees:
- The raw session id is never written, only ``hash_session_id`` output.
- Every write is flushed and fsync'd before returning, so entries are on disk
  before the HTTP response leaves.
- A lock serialises appends so concurrent requests never interleave a line.
- I/O failures are logged and swallowed; they must never fail the request.
"""
import enum
import json
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class AuditStage(str, enum.Enum):
    received = "received"
    validation_error = "validation_error"
    parse_error = "parse_error"
    zone_error = "zone_error"
    past_time = "past_time"
    downstream_success = "downstream_success"
    downstream_error = "downstream_error"


class ParsedInterval(BaseModel):
    start: str
    end: str
    timezone: str


class AuditEntry(BaseModel):
    """Serialized as camelCase JSON; absent optional fields are omitted.

    ``rawInput`` is always written, even when the body was JSON ``null``.
    ``input`` and ``googlePayload`` hold the validated fields and the exact
    event body sent downstream, once the request gets that far.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    timestamp: str
    requestId: str
    sessionIdHash: str
    stage: AuditStage
    rawInput: Any = None
    input: Optional[dict[str, Any]] = None
    parsedInterval: Optional[ParsedInterval] = None
    errorMessage: Optional[str] = None
    downstreamStatus: Optional[int] = None
    eventId: Optional[str] = None
    eventLink: Optional[str] = None
    googlePayload: Optional[dict[str, Any]] = None


class AuditRecorder:
    """Synchronous, lock-serialised appender for the audit file."""

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def record(
        self,
        request_id: str,
        session_id_hash: str,
        stage: AuditStage,
        raw_input: Any,
        **fields: Any,
    ) -> AuditEntry:
        entry = AuditEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            requestId=request_id,
            sessionIdHash=session_id_hash,
            stage=stage,
            rawInput=raw_input,
            **fields,
        )
        self.append(entry)
        return entry

    def append(self, entry: AuditEntry) -> None:
        data = {
            key: value
            for key, value in entry.model_dump(mode="json").items()
            if value is not None or key == "rawInput"
        }
        line = json.dumps(data) + "\n"
        try:
            with self._lock:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "a", encoding="utf-8") as fh:
                    fh.write(line)
                    fh.flush()
                    os.fsync(fh.fileno())
        except OSError:
            logger.exception("Failed to write audit entry to %s", self.path)

    def tail(self, n: int) -> tuple[list[dict[str, Any]], int]:
        """Return the last ``n`` entries and the total line count."""
        if not self.path.exists():
            return [], 0
        with self._lock:
            lines = [ln for ln in self.path.read_text(encoding="utf-8").splitlines() if ln]
        entries: list[dict[str, Any]] = []
        for line in lines[-n:] if n > 0 else []:
            try:
                entries.append(json.loads(line))
            except json.JSONDecodeError:
                entries.append({"_parseError": True, "raw": line})
        return entries, len(lines)
