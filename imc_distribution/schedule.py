"""Schedule normalization for timed channel payloads.

Turns an event's calendar date and free-form clock strings into explicit
local start/end timestamps plus the IANA timezone of the venue's region.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from imc_distribution.errors import InvalidTimeFormat

DEFAULT_REGION = "TX"
DEFAULT_DURATION = timedelta(hours=3)
DEFAULT_START = time(19, 0)
LOCAL_FORMAT = "%Y-%m-%dT%H:%M:%S"

# One representative zone per US state, keyed by postal code.
REGION_TIMEZONES: dict[str, str] = {
    "AL": "America/Chicago", "AK": "America/Anchorage", "AZ": "America/Phoenix",
    "AR": "America/Chicago", "CA": "America/Los_Angeles", "CO": "America/Denver",
    "CT": "America/New_York", "DE": "America/New_York", "DC": "America/New_York",
    "FL": "America/New_York", "GA": "America/New_York", "HI": "Pacific/Honolulu",
    "ID": "America/Boise", "IL": "America/Chicago", "IN": "America/Indiana/Indianapolis",
    "IA": "America/Chicago", "KS": "America/Chicago", "KY": "America/New_York",
    "LA": "America/Chicago", "ME": "America/New_York", "MD": "America/New_York",
    "MA": "America/New_York", "MI": "America/Detroit", "MN": "America/Chicago",
    "MS": "America/Chicago", "MO": "America/Chicago", "MT": "America/Denver",
    "NE": "America/Chicago", "NV": "America/Los_Angeles", "NH": "America/New_York",
    "NJ": "America/New_York", "NM": "America/Denver", "NY": "America/New_York",
    "NC": "America/New_York", "ND": "America/Chicago", "OH": "America/New_York",
    "OK": "America/Chicago", "OR": "America/Los_Angeles", "PA": "America/New_York",
    "RI": "America/New_York", "SC": "America/New_York", "SD": "America/Chicago",
    "TN": "America/Chicago", "TX": "America/Chicago", "UT": "America/Denver",
    "VT": "America/New_York", "VA": "America/New_York", "WA": "America/Los_Angeles",
    "WV": "America/New_York", "WI": "America/Chicago", "WY": "America/Denver",
    "PR": "America/Puerto_Rico",
}

REGION_NAMES: dict[str, str] = {
    "alabama": "AL", "alaska": "AK", "arizona": "AZ", "arkansas": "AR",
    "california": "CA", "colorado": "CO", "connecticut": "CT", "delaware": "DE",
    "district of columbia": "DC", "florida": "FL", "georgia": "GA", "hawaii": "HI",
    "idaho": "ID", "illinois": "IL", "indiana": "IN", "iowa": "IA", "kansas": "KS",
    "kentucky": "KY", "louisiana": "LA", "maine": "ME", "maryland": "MD",
    "massachusetts": "MA", "michigan": "MI", "minnesota": "MN", "mississippi": "MS",
    "missouri": "MO", "montana": "MT", "nebraska": "NE", "nevada": "NV",
    "new hampshire": "NH", "new jersey": "NJ", "new mexico": "NM", "new york": "NY",
    "north carolina": "NC", "north dakota": "ND", "ohio": "OH", "oklahoma": "OK",
    "oregon": "OR", "pennsylvania": "PA", "rhode island": "RI",
    "south carolina": "SC", "south dakota": "SD", "tennessee": "TN", "texas": "TX",
    "utah": "UT", "vermont": "VT", "virginia": "VA", "washington": "WA",
    "west virginia": "WV", "wisconsin": "WI", "wyoming": "WY", "puerto rico": "PR",
}

_TWELVE_HOUR = re.compile(
    r"^(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?P<meridiem>[ap])\.?\s*m\.?$",
    re.IGNORECASE,
)
_TWENTY_FOUR_HOUR = re.compile(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})$")


@dataclass(frozen=True)
class Schedule:
    start_local: str
    end_local: str
    timezone: str

    def _to_utc(self, local: str) -> str:
        naive = datetime.strptime(local, LOCAL_FORMAT)
        aware = naive.replace(tzinfo=ZoneInfo(self.timezone))
        return aware.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    def start_utc(self) -> str:
        return self._to_utc(self.start_local)

    def end_utc(self) -> str:
        return self._to_utc(self.end_local)


def parse_clock(value: str) -> time:
    """Parse "8 PM", "8:30 pm", "8:30 p.m." or 24-hour "20:30"."""
    text = (value or "").strip()
    match = _TWELVE_HOUR.match(text)
    if match:
        hour = int(match.group("hour"))
        minute = int(match.group("minute") or 0)
        if not 1 <= hour <= 12 or minute > 59:
            raise InvalidTimeFormat(f"Clock time out of range: {value!r}")
        hour %= 12
        if match.group("meridiem").lower() == "p":
            hour += 12
        return time(hour, minute)

    match = _TWENTY_FOUR_HOUR.match(text)
    if match:
        hour, minute = int(match.group("hour")), int(match.group("minute"))
        if hour > 23 or minute > 59:
            raise InvalidTimeFormat(f"Clock time out of range: {value!r}")
        return time(hour, minute)

    raise InvalidTimeFormat(f"Unrecognized clock time: {value!r}")


def resolve_timezone(region: str | None, default_region: str = DEFAULT_REGION) -> str:
    """Map a venue state/region to an IANA zone, falling back to the default region."""
    key = (region or "").strip()
    code = REGION_NAMES.get(key.lower(), key.upper())
    if code in REGION_TIMEZONES:
        return REGION_TIMEZONES[code]
    default_code = REGION_NAMES.get(default_region.strip().lower(), default_region.strip().upper())
    return REGION_TIMEZONES.get(default_code, REGION_TIMEZONES[DEFAULT_REGION])


def build_schedule(
    event_date: str,
    start_time: str = "",
    end_time: str = "",
    region: str | None = None,
    default_region: str = DEFAULT_REGION,
) -> Schedule:
    """Normalize date and clock strings into a Schedule.

    A blank start time means 7:00 PM. A missing end time means three hours
    after the start. An explicit end time at or before the start is taken to
    fall on the next calendar day.
    """
    try:
        day = date.fromisoformat(str(event_date).strip()[:10])
    except ValueError as exc:
        raise InvalidTimeFormat(f"Unrecognized event date: {event_date!r}") from exc

    start_clock = parse_clock(start_time) if (start_time or "").strip() else DEFAULT_START
    start = datetime.combine(day, start_clock)

    if (end_time or "").strip():
        end = datetime.combine(day, parse_clock(end_time))
        if end <= start:
            end += timedelta(days=1)
    else:
        end = start + DEFAULT_DURATION

    return Schedule(
        start_local=start.strftime(LOCAL_FORMAT),
        end_local=end.strftime(LOCAL_FORMAT),
        timezone=resolve_timezone(region, default_region),
    )
