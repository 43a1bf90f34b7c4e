"""Temporal resolver — free-text date + time + IANA zone → absolute interval.

The caller's date and time describe a wall-clock moment in *their* zone.
``dateparser`` resolves relative expressions ("tomorrow", "next Friday")
against whatever reference it is given, with no notion of the caller's zone,
so resolution runs in three steps:

1. Read "now" in the caller's zone and strip the tzinfo, producing a naive
   reference whose clock fields equal the caller's local reading.
2. Run the ordered strategies (strict formats, relative day words, weekday
   names, free text) against that naive reference. Each returns a naive datetime or ``None``.
3. Attach the caller's zone to the naive result *without* shifting the clock
   reading (``pytz`` ``localize``), then add the duration.

Converting a process-local parse result with ``astimezone`` instead of
``localize`` would move "11 PM" in a UTC+3 zone to 02:00 the next day.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import dateparser
import pytz

from app.services.errors import DateParseError, PastTimeError, ZoneApplicationError

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Strategy = Callable[[str, str, datetime], Optional[datetime]]


def system_clock() -> datetime:
    return datetime.now(timezone.utc)


# Tried in order; the first structurally valid match wins. Day-first forms
# precede month-first ones, so "03/04/2026" is 3 April.
DATE_FORMATS = [
    "%Y-%m-%d",      # 2026-02-28
    "%d/%m/%Y",      # 28/02/2026, 2/3/2026
    "%m/%d/%Y",      # 02/28/2026
    "%B %d, %Y",     # February 28, 2026
    "%B %d %Y",      # February 28 2026
    "%b %d, %Y",     # Feb 28, 2026
    "%b %d %Y",      # Feb 28 2026
    "%d %B %Y",      # 28 February 2026
    "%d %b %Y",      # 28 Feb 2026
]

TIME_FORMATS = [
    "%H:%M",         # 14:30, 9:30
    "%H:%M:%S",      # 14:30:00
    "%I:%M %p",      # 2:30 PM
    "%I:%M%p",       # 2:30PM
    "%I %p",         # 3 PM
    "%I%p",          # 3PM
    "%I:%M:%S %p",   # 2:30:00 PM
]

WORD_TIMES = {
    "noon": "12:00",
    "midday": "12:00",
    "midnight": "00:00",
}

RELATIVE_DAYS = {
    "today": 0,
    "tonight": 0,
    "tomorrow": 1,
    "day after tomorrow": 2,
    "the day after tomorrow": 2,
}

WEEKDAYS = {
    "monday": 0, "mon": 0,
    "tuesday": 1, "tue": 1, "tues": 1,
    "wednesday": 2, "wed": 2,
    "thursday": 3, "thu": 3, "thurs": 3,
    "friday": 4, "fri": 4,
    "saturday": 5, "sat": 5,
    "sunday": 6, "sun": 6,
}

_WEEKDAY_RE = re.compile(r"^(?:(?:next|this|on|coming|this coming)\s+)?([a-z]+)$")

_WHITESPACE_RE = re.compile(r"\s+")
_DOTTED_MERIDIEM_RE = re.compile(r"\b([ap])\.\s*m\.?", re.IGNORECASE)
_ORDINAL_RE = re.compile(r"\b(\d{1,2})(st|nd|rd|th)\b", re.IGNORECASE)


@dataclass(frozen=True)
class ResolvedInterval:
    start: datetime
    end: datetime
    timezone: str
    strategy: str

    def as_audit_dict(self) -> dict[str, str]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "timezone": self.timezone,
        }


# ── Normalisation ─────────────────────────────────────────────────

def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_time_text(raw_time: str) -> str:
    """Collapse whitespace, map word times and dotted meridiems ("p.m.")."""
    text = _collapse(raw_time)
    word = WORD_TIMES.get(text.lower())
    if word:
        return word
    return _DOTTED_MERIDIEM_RE.sub(lambda m: f"{m.group(1)}m", text)


def normalize_date_text(raw_date: str) -> str:
    return _ORDINAL_RE.sub(r"\1", _collapse(raw_date))


# ── Zone helpers ──────────────────────────────────────────────────

def get_zone(tz_name: str):
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        raise ZoneApplicationError(f'Unknown timezone "{tz_name}".')


def zone_now(tz_name: str, clock: Clock = system_clock) -> datetime:
    """Current instant expressed in the caller's zone."""
    return clock().astimezone(get_zone(tz_name))


def synthetic_reference(tz_name: str, clock: Clock = system_clock) -> datetime:
    """Naive datetime whose clock fields equal the caller's local reading."""
    local = zone_now(tz_name, clock)
    return datetime(local.year, local.month, local.day, local.hour, local.minute, local.second)


def bind_to_zone(naive: datetime, tz_name: str) -> datetime:
    """Attach the zone to a wall-clock reading without shifting it."""
    zone = get_zone(tz_name)
    try:
        return zone.localize(naive, is_dst=None)
    except pytz.NonExistentTimeError:
        raise ZoneApplicationError(
            f"{naive.strftime('%Y-%m-%d %H:%M')} does not exist in {tz_name} "
            "(it falls inside a daylight-saving clock change). Please pick another time."
        )
    except pytz.AmbiguousTimeError:
        # Fall-back overlap: take the first occurrence.
        return zone.localize(naive, is_dst=True)


# ── Strategies ────────────────────────────────────────────────────

def _parse_time(text: str) -> Optional[tuple[int, int, int]]:
    for fmt in TIME_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return parsed.hour, parsed.minute, parsed.second
    return None


def parse_strict(raw_date: str, raw_time: str, reference: datetime) -> Optional[datetime]:
    """Every DATE_FORMATS × TIME_FORMATS combination, first match wins."""
    combined = f"{normalize_date_text(raw_date)} {normalize_time_text(raw_time)}"
    for date_fmt in DATE_FORMATS:
        for time_fmt in TIME_FORMATS:
            try:
                return datetime.strptime(combined, f"{date_fmt} {time_fmt}")
            except ValueError:
                continue
    return None


def parse_relative_day(raw_date: str, raw_time: str, reference: datetime) -> Optional[datetime]:
    """Relative day words ("today", "tomorrow") with a strictly formatted time."""
    offset = RELATIVE_DAYS.get(_collapse(raw_date).lower())
    if offset is None:
        return None
    clock_fields = _parse_time(normalize_time_text(raw_time))
    if clock_fields is None:
        return None
    day = reference.date() + timedelta(days=offset)
    return datetime(day.year, day.month, day.day, *clock_fields)


def parse_weekday(raw_date: str, raw_time: str, reference: datetime) -> Optional[datetime]:
    """Weekday names ("Friday", "next monday") at their nearest future occurrence.

    "next" and "this" both mean the first matching day after the reference;
    today's weekday counts only when the requested time is still ahead.
    """
    match = _WEEKDAY_RE.match(_collapse(raw_date).lower())
    if match is None or match.group(1) not in WEEKDAYS:
        return None
    clock_fields = _parse_time(normalize_time_text(raw_time))
    if clock_fields is None:
        return None
    days_ahead = (WEEKDAYS[match.group(1)] - reference.weekday()) % 7
    day = reference.date() + timedelta(days=days_ahead)
    candidate = datetime(day.year, day.month, day.day, *clock_fields)
    if candidate <= reference:
        candidate += timedelta(days=7)
    return candidate


DATEPARSER_SETTINGS = {
    "PREFER_DATES_FROM": "future",
    "DATE_ORDER": "DMY",
    "RETURN_AS_TIMEZONE_AWARE": False,
}


def parse_free_text(raw_date: str, raw_time: str, reference: datetime) -> Optional[datetime]:
    """Natural-language fallback anchored to the synthetic reference."""
    settings = dict(DATEPARSER_SETTINGS, RELATIVE_BASE=reference)
    date_text = _collapse(raw_date)
    time_text = normalize_time_text(raw_time)
    for candidate in (f"{date_text} {time_text}", f"{date_text} at {time_text}"):
        parsed = dateparser.parse(candidate, languages=["en"], settings=settings)
        if parsed is not None:
            return parsed.replace(tzinfo=None)
    return None


STRATEGIES: list[tuple[str, Strategy]] = [
    ("strict", parse_strict),
    ("relative_day", parse_relative_day),
    ("weekday", parse_weekday),
    ("free_text", parse_free_text),
]


# ── Public API ────────────────────────────────────────────────────

def parse_local(
    raw_date: str,
    raw_time: str,
    reference: datetime,
    strategies: Optional[list[tuple[str, Strategy]]] = None,
) -> tuple[str, datetime]:
    """Run the strategy chain and return ``(strategy_name, naive_local)``."""
    for name, strategy in strategies or STRATEGIES:
        result = strategy(raw_date, raw_time, reference)
        if result is not None:
            return name, result
    raise DateParseError(raw_date, raw_time)


def resolve_interval(
    raw_date: str,
    raw_time: str,
    tz_name: str,
    duration_minutes: int,
    clock: Clock = system_clock,
    strategies: Optional[list[tuple[str, Strategy]]] = None,
) -> ResolvedInterval:
    """Resolve a caller's date/time into a zone-anchored start/end interval."""
    zone = get_zone(tz_name)
    reference = synthetic_reference(tz_name, clock)
    strategy_name, naive = parse_local(raw_date, raw_time, reference, strategies)
    start = bind_to_zone(naive, tz_name)
    end = zone.normalize(start + timedelta(minutes=duration_minutes))
    logger.debug(
        "Resolved %r %r in %s via %s -> %s",
        raw_date, raw_time, tz_name, strategy_name, start.isoformat(),
    )
    return ResolvedInterval(start=start, end=end, timezone=tz_name, strategy=strategy_name)


def ensure_future(interval: ResolvedInterval, clock: Clock = system_clock) -> None:
    """Reject a start that is not strictly after now in the same zone."""
    now = zone_now(interval.timezone, clock)
    if not interval.start > now:
        raise PastTimeError(interval.start, interval.timezone)
