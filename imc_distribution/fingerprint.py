"""Identity fingerprints for an event on a channel, and event id extraction."""

from __future__ import annotations

import hashlib
import json
import re
from urllib.parse import parse_qs, urlparse

from imc_distribution.event import Event, Venue

_EVENT_PATH = re.compile(r"/events/(?:s/[^/]+/)?(\d+)/?$")
_FACEBOOK_HOSTS = ("facebook.com", "fb.com")


def fingerprint_fields(event: Event, venue: Venue, discriminator: str) -> list[str]:
    """The fields that define an event's identity on one channel.

    Description, images and generated copy are deliberately absent so that
    content edits keep the same identity.
    """
    return [
        event.title.strip(),
        event.date.strip(),
        event.time.strip(),
        venue.name.strip(),
        venue.address.strip(),
        venue.city.strip(),
        venue.state.strip(),
        str(discriminator).strip(),
    ]


def build_fingerprint(event: Event, venue: Venue, discriminator: str = "") -> str:
    """Return a 64-char lowercase hex SHA-256 fingerprint."""
    # A JSON array keeps field boundaries unambiguous whatever the values contain.
    payload = json.dumps(
        fingerprint_fields(event, venue, discriminator),
        ensure_ascii=False, separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def extract_event_id(url: str | None) -> str | None:
    """Pull the numeric Facebook event id out of a shared event URL.

    Handles /events/<id>, /events/<id>?ref=..., /events/s/<slug>/<id>/ and
    /events/?event_id=<id>. Returns None for anything else.
    """
    if not url:
        return None
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return None

    host = (parsed.hostname or "").lower()
    if not any(host == h or host.endswith("." + h) for h in _FACEBOOK_HOSTS):
        return None

    match = _EVENT_PATH.search(parsed.path)
    if match:
        return match.group(1)

    if parsed.path.rstrip("/") == "/events":
        for value in parse_qs(parsed.query).get("event_id", []):
            if value.isdigit():
                return value
    return None
