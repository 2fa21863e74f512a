"""Inbound request actions.

Maps a JSON-like request ``{"action": ..., "event": ..., "venue": ...}`` onto
distributor operations and shapes the response the request handler returns.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping

from imc_distribution.distributor import ALL_CHANNELS
from imc_distribution.errors import InvalidRequest
from imc_distribution.event import Event, Venue

if TYPE_CHECKING:
    from imc_distribution.distributor import EventDistributor

logger = logging.getLogger(__name__)

SINGLE_CHANNEL_ACTIONS = {
    "post-facebook": "facebook",
    "post-instagram": "instagram",
    "post-linkedin": "linkedin",
    "create-eventbrite": "eventbrite",
    "send-press-release": "press",
}


def _request_content(request: Mapping[str, Any]) -> dict[str, Any]:
    content = request.get("content")
    if isinstance(content, str):
        content = {"pressRelease": content}
    merged = dict(content or {})
    if request.get("html") and "html" not in merged:
        merged["html"] = request["html"]
    if request.get("recipients"):
        merged["recipients"] = request["recipients"]
    return merged


def _request_event(request: Mapping[str, Any]) -> tuple[Event, Venue]:
    event = request.get("event")
    if not isinstance(event, Mapping) or not event.get("title") or not event.get("date"):
        raise InvalidRequest("Request needs an event with at least a title and date")
    return Event.from_dict(event), Venue.from_dict(request.get("venue"))


def handle_action(distributor: EventDistributor, request: Mapping[str, Any]) -> dict[str, Any]:
    """Run one inbound action and return its response body.

    Raises:
        InvalidRequest: For a missing/unknown action or a malformed event.
        NoRunnableChannels: When distribute-all has nothing to run.
    """
    action = request.get("action")
    if not action:
        raise InvalidRequest("Missing action")

    if action == "check-status":
        status = distributor.check_status()
        return {"success": True, "channels": {name: s.to_dict() for name, s in status.items()}}

    if action == "distribute-all":
        event, venue = _request_event(request)
        report = distributor.distribute_all(
            event, venue,
            content=_request_content(request),
            images=request.get("images") or {},
            channels=request.get("channels") or ALL_CHANNELS,
        )
        return report.to_dict()

    channel = SINGLE_CHANNEL_ACTIONS.get(action)
    if channel is None:
        raise InvalidRequest(f"Unknown action: {action}")

    event, venue = _request_event(request)
    result = distributor.distribute(
        channel, event, venue,
        content=_request_content(request),
        images=request.get("images") or {},
    )
    logger.debug("Action %s finished with status %s", action, result.status.value)
    return result.to_dict()
