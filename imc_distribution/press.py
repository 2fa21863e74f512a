"""Press release email blast through the Resend API.

The release goes out from the configured sender domain. Resend refuses
senders on unverified domains; in that case the fallback repeats the send
from the provider's shared fallback address.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any, Mapping

from imc_distribution.adapter import Channel, ChannelAdapter, Posted, content_text
from imc_distribution.errors import ChannelError, ConfigurationError

if TYPE_CHECKING:
    from imc_distribution.event import Event, Venue
    from imc_distribution.rate_limiter import RateLimiter
    from imc_distribution.session import ChannelSession

logger = logging.getLogger(__name__)

API_URL = "https://api.resend.com/emails"
BATCH_SIZE = 50


@dataclass
class PressConfig:
    api_key: str = ""
    from_email: str = ""
    fallback_from: str = "onboarding@resend.dev"
    reply_to: str = ""
    organization: str = ""
    dateline_city: str = ""
    contact_html: str = ""
    recipients: list[str] = field(default_factory=list)


def _recipient_address(recipient: Any) -> str:
    if isinstance(recipient, Mapping):
        return str(recipient.get("email") or "").strip()
    return str(recipient or "").strip()


def build_press_release_html(
    event: Event, venue: Venue, content: Mapping[str, Any] | str, config: PressConfig,
) -> str:
    body = content_text(content, "pressRelease", "press", "html", default=event.description or event.title)
    try:
        day = date.fromisoformat(event.date[:10])
        when = day.strftime("%B ") + f"{day.day}, {day.year}"
    except ValueError:
        when = event.date
    dateline = f"{config.dateline_city.upper()} — {when} —" if config.dateline_city else f"{when} —"
    venue_line = f"<p><strong>{html.escape(venue.name)}</strong> {html.escape(venue.one_line())}</p>" if venue.name else ""
    return "\n".join([
        "<!DOCTYPE html>",
        '<html><head><meta charset="UTF-8">',
        f"<title>Press Release: {html.escape(event.title)}</title></head>",
        '<body style="font-family: Georgia, serif; line-height: 1.6; max-width: 600px; margin: 0 auto;">',
        f"<div><strong>{html.escape(config.organization)}</strong></div>" if config.organization else "",
        f"<p><strong>{html.escape(dateline)}</strong></p>",
        venue_line,
        f'<div style="white-space: pre-line;">{body}</div>',
        f"<footer>{config.contact_html}</footer>" if config.contact_html else "",
        "</body></html>",
    ])


class PressAdapter(ChannelAdapter):
    channel = Channel.PRESS
    provider = "Resend"
    has_fallback = True

    def __init__(
        self,
        config: PressConfig,
        session: ChannelSession,
        default_region: str = "TX",
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        super().__init__(session, default_region)
        self.config = config
        self._rate_limiter = rate_limiter

    def missing_settings(self) -> list[str]:
        missing = []
        if not self.config.api_key:
            missing.append("press.api_key")
        if not self.config.from_email:
            missing.append("press.from_email")
        return missing

    def discriminator(self) -> str:
        return f"press:{self.config.from_email}"

    def _recipients(self, content: Mapping[str, Any]) -> list[str]:
        requested = content.get("recipients") if isinstance(content, Mapping) else None
        source = requested or self.config.recipients
        addresses = [_recipient_address(r) for r in source or []]
        unique = list(dict.fromkeys(a for a in addresses if a))
        if not unique:
            raise ConfigurationError(self.name, detail="no press recipients available")
        return unique

    def _send(
        self, sender: str, recipients: list[str], subject: str, body_html: str,
        sent_ids: list[str] | None = None,
    ) -> list[str]:
        """Send in batches, skipping the batches already covered by ``sent_ids``.

        On failure the raised ChannelError carries the ids of every batch
        delivered so far in ``completed``.
        """
        ids = list(sent_ids or [])
        for start in range(len(ids) * BATCH_SIZE, len(recipients), BATCH_SIZE):
            if self._rate_limiter:
                self._rate_limiter.acquire(block=True)
            payload: dict[str, Any] = {
                "from": sender,
                "to": recipients[start:start + BATCH_SIZE],
                "subject": subject,
                "html": body_html,
            }
            if self.config.reply_to:
                payload["reply_to"] = self.config.reply_to
            try:
                result = self._session.post_json(
                    self.name, API_URL, payload,
                    headers={"Authorization": f"Bearer {self.config.api_key}"},
                )
                if not result.get("id"):
                    raise ChannelError(self.name, "email send returned no id")
            except ChannelError as exc:
                exc.completed = list(ids)
                raise
            ids.append(str(result["id"]))
        logger.info("Press release sent to %d recipients in %d batches", len(recipients), len(ids))
        return ids

    def _release(self, event: Event, venue: Venue, content: Mapping[str, Any]) -> tuple[str, str]:
        subject = f"Press Release: {event.title}"
        return subject, build_press_release_html(event, venue, content, self.config)

    def _primary(
        self, event: Event, venue: Venue, content: Mapping[str, Any], images: Mapping[str, str],
    ) -> Posted:
        recipients = self._recipients(content)
        subject, body_html = self._release(event, venue, content)
        ids = self._send(self.config.from_email, recipients, subject, body_html)
        return Posted(external_id=ids[0])

    def _fallback(
        self, event: Event, venue: Venue, content: Mapping[str, Any], images: Mapping[str, str],
        error: ChannelError,
    ) -> Posted:
        recipients = self._recipients(content)
        subject, body_html = self._release(event, venue, content)
        if error.completed:
            logger.info("Resuming press release after %d delivered batches", len(error.completed))
        ids = self._send(self.config.fallback_from, recipients, subject, body_html, sent_ids=error.completed)
        return Posted(external_id=ids[0])
