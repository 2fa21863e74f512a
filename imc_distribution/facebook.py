"""Facebook page distribution via the Graph API.

Primary strategy creates a page event. When the page lacks the events
capability or permission, the fallback publishes a feed post instead (a photo
post when a landscape image is available).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from imc_distribution.adapter import Channel, ChannelAdapter, Posted, content_text
from imc_distribution.errors import ChannelError
from imc_distribution.schedule import build_schedule
from imc_distribution.versions import resolve_graph_version

if TYPE_CHECKING:
    from imc_distribution.event import Event, Venue
    from imc_distribution.session import ChannelSession

GRAPH_URL = "https://graph.facebook.com"


@dataclass
class FacebookConfig:
    page_id: str = ""
    access_token: str = ""
    graph_version: str = ""
    signature: str = ""


def build_description(event: Event, venue: Venue, signature: str = "") -> str:
    lines = [event.description or event.title, ""]
    if venue.name:
        lines.append(f"📍 {venue.name}")
    if venue.address:
        lines.append(venue.one_line())
    if event.ticket_link:
        lines.extend(["", f"🎟️ Tickets: {event.ticket_link}"])
    if signature:
        lines.extend(["", signature])
    return "\n".join(lines).strip()


class FacebookAdapter(ChannelAdapter):
    channel = Channel.FACEBOOK
    provider = "Meta Graph API"
    has_fallback = True

    def __init__(self, config: FacebookConfig, session: ChannelSession, default_region: str = "TX") -> None:
        super().__init__(session, default_region)
        self.config = config

    @property
    def graph_version(self) -> str:
        return resolve_graph_version({"graphVersion": self.config.graph_version})

    def missing_settings(self) -> list[str]:
        missing = []
        if not self.config.page_id:
            missing.append("facebook.page_id")
        if not self.config.access_token:
            missing.append("facebook.access_token")
        return missing

    def discriminator(self) -> str:
        return f"facebook:{self.config.page_id}"

    def _url(self, path: str) -> str:
        return f"{GRAPH_URL}/{self.graph_version}/{path}"

    def _primary(
        self, event: Event, venue: Venue, content: Mapping[str, Any], images: Mapping[str, str],
    ) -> Posted:
        schedule = build_schedule(
            event.date, event.time, event.end_time,
            region=venue.state, default_region=self._default_region,
        )
        params = {
            "access_token": self.config.access_token,
            "name": event.title,
            "description": build_description(event, venue, self.config.signature),
            "start_time": schedule.start_local,
            "end_time": schedule.end_local,
            "timezone": schedule.timezone,
            "location": venue.name or "Venue TBD",
            "street": venue.address,
            "city": venue.city,
            "state": venue.state,
            "is_online": "false",
            "privacy_type": "OPEN",
            "ticket_uri": event.ticket_link or None,
        }
        result = self._session.post_form(self.name, self._url(f"{self.config.page_id}/events"), params)
        event_id = str(result.get("id") or "")
        if not event_id:
            raise ChannelError(self.name, "event creation returned no id")
        return Posted(external_id=event_id, url=f"https://www.facebook.com/events/{event_id}")

    def _fallback(
        self, event: Event, venue: Venue, content: Mapping[str, Any], images: Mapping[str, str],
        error: ChannelError,
    ) -> Posted:
        message = content_text(content, "socialFacebook", "facebook", default="")
        if not message:
            message = content_text(content, "pressRelease", default=event.title)[:500]
        image_url = images.get("fb_post_landscape") or images.get("fb_event_banner")

        params: dict[str, Any] = {"access_token": self.config.access_token, "message": message}
        if image_url:
            params["url"] = image_url
            path = f"{self.config.page_id}/photos"
        else:
            path = f"{self.config.page_id}/feed"
        result = self._session.post_form(self.name, self._url(path), params)
        post_id = str(result.get("post_id") or result.get("id") or "")
        if not post_id:
            raise ChannelError(self.name, "feed post returned no id")
        return Posted(external_id=post_id, url=f"https://www.facebook.com/{post_id}")
