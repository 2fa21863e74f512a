"""Instagram business account publishing through the Graph API.

Two-step publish: create a media container from a public image URL, then
publish the container. Instagram has no reduced-capability path, so
failures are terminal.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Any, Mapping
from urllib.parse import urlencode

from imc_distribution.adapter import Channel, ChannelAdapter, Posted, content_text
from imc_distribution.errors import ChannelError, ConfigurationError
from imc_distribution.facebook import GRAPH_URL
from imc_distribution.versions import resolve_channel_version

if TYPE_CHECKING:
    from imc_distribution.event import Event, Venue
    from imc_distribution.session import ChannelSession

MAX_CAPTION = 2200


@dataclass
class InstagramConfig:
    page_id: str = ""
    access_token: str = ""
    account_id: str = ""
    graph_version: str = ""
    hashtags: str = ""
    signature: str = ""


def build_caption(event: Event, venue: Venue, hashtags: str = "", signature: str = "") -> str:
    lines = [event.title, ""]
    try:
        day = date.fromisoformat(event.date[:10])
        when = day.strftime("%A, %B ") + str(day.day)
        lines.append(f"📅 {when}" + (f" · {event.time}" if event.time else ""))
    except ValueError:
        pass
    if venue.name:
        lines.append(f"📍 {venue.name}")
    if event.is_free:
        lines.append("🎟️ Free")
    elif event.ticket_link:
        lines.append("🎟️ Link in bio")
    if hashtags:
        lines.extend(["", hashtags])
    if signature:
        lines.extend(["", signature])
    return "\n".join(lines)[:MAX_CAPTION]


class InstagramAdapter(ChannelAdapter):
    channel = Channel.INSTAGRAM
    provider = "Meta Graph API (Instagram)"

    def __init__(self, config: InstagramConfig, session: ChannelSession, default_region: str = "TX") -> None:
        super().__init__(session, default_region)
        self.config = config

    def missing_settings(self) -> list[str]:
        missing = []
        if not (self.config.account_id or self.config.page_id):
            missing.append("instagram.account_id")
        if not self.config.access_token:
            missing.append("instagram.access_token")
        return missing

    def discriminator(self) -> str:
        return f"instagram:{self.config.account_id or self.config.page_id}"

    def _url(self, path: str) -> str:
        version = resolve_channel_version("instagram", self.config.graph_version)
        return f"{GRAPH_URL}/{version}/{path}"

    def _account_id(self) -> str:
        if self.config.account_id:
            return self.config.account_id
        query = urlencode({"fields": "instagram_business_account", "access_token": self.config.access_token})
        result = self._session.get_json(self.name, self._url(f"{self.config.page_id}?{query}"))
        if result.get("mock"):
            return f"mock-ig-{self.config.page_id}"
        account = result.get("instagram_business_account") or {}
        if not account.get("id"):
            raise ConfigurationError(self.name, detail="no Instagram business account linked to the page")
        return str(account["id"])

    def _primary(
        self, event: Event, venue: Venue, content: Mapping[str, Any], images: Mapping[str, str],
    ) -> Posted:
        image_url = images.get("ig_post_square") or images.get("ig_post_portrait")
        if not image_url:
            raise ConfigurationError(self.name, detail="a public HTTPS image URL is required")

        caption = content_text(content, "instagramCaption", "instagram", default="")
        if not caption:
            caption = build_caption(event, venue, self.config.hashtags, self.config.signature)

        account_id = self._account_id()
        container = self._session.post_json(self.name, self._url(f"{account_id}/media"), {
            "access_token": self.config.access_token,
            "image_url": image_url,
            "caption": caption[:MAX_CAPTION],
        })
        if not container.get("id"):
            raise ChannelError(self.name, "media container returned no id")
        published = self._session.post_json(self.name, self._url(f"{account_id}/media_publish"), {
            "access_token": self.config.access_token,
            "creation_id": container["id"],
        })
        media_id = str(published.get("id") or "")
        if not media_id:
            raise ChannelError(self.name, "media publish returned no id")
        return Posted(external_id=media_id)
