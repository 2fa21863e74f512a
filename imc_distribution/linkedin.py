"""LinkedIn organization posts via the versioned REST API.

Primary strategy uploads the event image and posts it with the commentary;
if image upload is outside the token's scope, the fallback posts the
commentary alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Any, Mapping

from imc_distribution.adapter import Channel, ChannelAdapter, Posted, content_text
from imc_distribution.errors import ChannelError
from imc_distribution.versions import resolve_channel_version

if TYPE_CHECKING:
    from imc_distribution.event import Event, Venue
    from imc_distribution.session import ChannelSession

API_URL = "https://api.linkedin.com/rest"
MAX_COMMENTARY = 3000


@dataclass
class LinkedInConfig:
    org_id: str = ""
    access_token: str = ""
    api_version: str = ""
    hashtags: str = ""


def build_commentary(event: Event, venue: Venue, hashtags: str = "") -> str:
    lines = [event.title, ""]
    try:
        day = date.fromisoformat(event.date[:10])
        when = day.strftime("%A, %B ") + f"{day.day}, {day.year}"
        lines.append(f"📅 {when}" + (f" · {event.time}" if event.time else ""))
    except ValueError:
        pass
    if venue.name:
        lines.append(f"📍 {venue.name}" + (f", {venue.city}" if venue.city else ""))
    lines.append("")
    if event.description:
        lines.extend([event.description[:800], ""])
    if event.ticket_link:
        lines.extend([f"🎟️ {event.ticket_link}", ""])
    if hashtags:
        lines.append(hashtags)
    return "\n".join(lines).strip()[:MAX_COMMENTARY]


class LinkedInAdapter(ChannelAdapter):
    channel = Channel.LINKEDIN
    provider = "LinkedIn Marketing API"
    has_fallback = True

    def __init__(self, config: LinkedInConfig, session: ChannelSession, default_region: str = "TX") -> None:
        super().__init__(session, default_region)
        self.config = config

    @property
    def author(self) -> str:
        return f"urn:li:organization:{self.config.org_id}"

    def missing_settings(self) -> list[str]:
        missing = []
        if not self.config.org_id:
            missing.append("linkedin.org_id")
        if not self.config.access_token:
            missing.append("linkedin.access_token")
        return missing

    def discriminator(self) -> str:
        return f"linkedin:{self.config.org_id}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.access_token}",
            "X-Restli-Protocol-Version": "2.0.0",
            "LinkedIn-Version": resolve_channel_version("linkedin", self.config.api_version),
        }

    def _commentary(self, event: Event, venue: Venue, content: Mapping[str, Any]) -> str:
        text = content_text(content, "linkedinPost", "linkedin", default="")
        return (text or build_commentary(event, venue, self.config.hashtags))[:MAX_COMMENTARY]

    def _upload_image(self, image_url: str) -> str:
        registered = self._session.post_json(
            self.name, f"{API_URL}/images?action=initializeUpload",
            {"initializeUploadRequest": {"owner": self.author}},
            headers=self._headers(),
        )
        value = registered.get("value") or {}
        if registered.get("mock"):
            value = {"uploadUrl": f"{API_URL}/mock-upload", "image": f"urn:li:image:{registered['id']}"}
        if not value.get("uploadUrl") or not value.get("image"):
            raise ChannelError(self.name, "image upload registration returned no upload URL")
        data = self._session.get_bytes(self.name, image_url)
        self._session.put_bytes(
            self.name, value["uploadUrl"], data,
            headers={"Authorization": f"Bearer {self.config.access_token}"},
        )
        return str(value["image"])

    def _create_post(self, event: Event, commentary: str, image_urn: str | None) -> Posted:
        body: dict[str, Any] = {
            "author": self.author,
            "commentary": commentary,
            "visibility": "PUBLIC",
            "distribution": {
                "feedDistribution": "MAIN_FEED",
                "targetEntities": [],
                "thirdPartyDistributionChannels": [],
            },
            "lifecycleState": "PUBLISHED",
        }
        if image_urn:
            body["content"] = {"media": {"title": event.title, "id": image_urn}}
        result = self._session.post_json(self.name, f"{API_URL}/posts", body, headers=self._headers())
        post_id = str(result.get("id") or result.get("headers", {}).get("x-restli-id") or "")
        if not post_id:
            raise ChannelError(self.name, "post creation returned no id")
        return Posted(external_id=post_id, url=f"https://www.linkedin.com/feed/update/{post_id}")

    def _primary(
        self, event: Event, venue: Venue, content: Mapping[str, Any], images: Mapping[str, str],
    ) -> Posted:
        image_url = images.get("linkedin_post") or images.get("fb_post_landscape")
        image_urn = self._upload_image(image_url) if image_url else None
        return self._create_post(event, self._commentary(event, venue, content), image_urn)

    def _fallback(
        self, event: Event, venue: Venue, content: Mapping[str, Any], images: Mapping[str, str],
        error: ChannelError,
    ) -> Posted:
        return self._create_post(event, self._commentary(event, venue, content), None)
