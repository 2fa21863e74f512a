"""API version negotiation for channel integrations.

Resolution never fails: anything missing, malformed or older than the
supported floor resolves to the channel's known-good default.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping

_NUMBER = re.compile(r"^\d+(?:\.\d+)*$")


@dataclass(frozen=True)
class VersionPolicy:
    prefix: str
    floor: str
    default: str


VERSION_POLICIES: dict[str, VersionPolicy] = {
    "facebook": VersionPolicy(prefix="v", floor="19.0", default="v25.0"),
    "instagram": VersionPolicy(prefix="v", floor="19.0", default="v25.0"),
    "eventbrite": VersionPolicy(prefix="v", floor="3", default="v3"),
    "linkedin": VersionPolicy(prefix="", floor="202401", default="202501"),
}


def _as_tuple(number: str) -> tuple[int, ...]:
    return tuple(int(part) for part in number.split("."))


def _at_least(number: str, floor: str) -> bool:
    left, right = _as_tuple(number), _as_tuple(floor)
    width = max(len(left), len(right))
    return left + (0,) * (width - len(left)) >= right + (0,) * (width - len(right))


def resolve_version(requested: str | None, policy: VersionPolicy) -> str:
    """Return the canonical version string for a channel integration."""
    text = (requested or "").strip()
    if policy.prefix and text[:len(policy.prefix)].lower() == policy.prefix.lower():
        text = text[len(policy.prefix):]
    if not text or not _NUMBER.match(text) or not _at_least(text, policy.floor):
        return policy.default
    return f"{policy.prefix}{text}"


def resolve_channel_version(channel: str, requested: str | None) -> str:
    return resolve_version(requested, VERSION_POLICIES[channel])


def resolve_graph_version(options: Mapping[str, Any] | None = None) -> str:
    """Resolve the Graph API version from an options mapping.

    Accepts either ``graphVersion`` or ``graph_version``.
    """
    options = options or {}
    requested = options.get("graphVersion") or options.get("graph_version")
    return resolve_channel_version("facebook", requested)
