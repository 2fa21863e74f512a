"""Eventbrite ticketed event creation.

Primary: create a listed event at the configured venue, attach a ticket class
and publish it. If the organization lacks the capability for any of those
steps, the fallback settles for an unlisted draft: the already-created event
is kept as is, or a bare draft without venue is created.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from imc_distribution.adapter import Channel, ChannelAdapter, Posted
from imc_distribution.errors import ChannelError
from imc_distribution.schedule import Schedule, build_schedule
from imc_distribution.versions import resolve_channel_version

if TYPE_CHECKING:
    from imc_distribution.event import Event, Venue
    from imc_distribution.session import ChannelSession

logger = logging.getLogger(__name__)

API_URL = "https://www.eventbriteapi.com"


@dataclass
class EventbriteConfig:
    token: str = ""
    org_id: str = ""
    venue_id: str = ""
    api_version: str = ""
    currency: str = "USD"
    capacity: int = 100


class EventbriteAdapter(ChannelAdapter):
    channel = Channel.EVENTBRITE
    provider = "Eventbrite"
    has_fallback = True

    def __init__(self, config: EventbriteConfig, session: ChannelSession, default_region: str = "TX") -> None:
        super().__init__(session, default_region)
        self.config = config

    def missing_settings(self) -> list[str]:
        missing = []
        if not self.config.token:
            missing.append("eventbrite.token")
        if not self.config.org_id:
            missing.append("eventbrite.org_id")
        return missing

    def discriminator(self) -> str:
        return f"eventbrite:{self.config.org_id}"

    def _url(self, path: str) -> str:
        version = resolve_channel_version("eventbrite", self.config.api_version)
        return f"{API_URL}/{version}/{path}"

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.config.token}"}

    def _event_body(self, event: Event, schedule: Schedule, listed: bool, venue_id: str) -> dict[str, Any]:
        body: dict[str, Any] = {
            "name": {"html": event.title},
            "description": {"html": event.description or event.title},
            "start": {"timezone": schedule.timezone, "utc": schedule.start_utc()},
            "end": {"timezone": schedule.timezone, "utc": schedule.end_utc()},
            "currency": self.config.currency,
            "listed": listed,
            "shareable": listed,
            "online_event": False,
        }
        if venue_id:
            body["venue_id"] = venue_id
        return {"event": body}

    def _ticket_class(self, event: Event) -> dict[str, Any]:
        ticket: dict[str, Any] = {
            "name": "General Admission (Free)" if event.free else "General Admission",
            "free": event.free,
            "quantity_total": self.config.capacity,
        }
        if not event.free:
            ticket["cost"] = f"{self.config.currency},{round(event.ticket_price * 100)}"
        return {"ticket_class": ticket}

    def _schedule(self, event: Event, venue: Venue) -> Schedule:
        return build_schedule(
            event.date, event.time, event.end_time,
            region=venue.state, default_region=self._default_region,
        )

    def _create(self, event: Event, schedule: Schedule, listed: bool, venue_id: str) -> str:
        created = self._session.post_json(
            self.name, self._url(f"organizations/{self.config.org_id}/events/"),
            self._event_body(event, schedule, listed, venue_id), headers=self._headers(),
        )
        event_id = str(created.get("id") or "")
        if not event_id:
            raise ChannelError(self.name, "event creation returned no id")
        return event_id

    def _primary(
        self, event: Event, venue: Venue, content: Mapping[str, Any], images: Mapping[str, str],
    ) -> Posted:
        schedule = self._schedule(event, venue)
        event_id = self._create(event, schedule, listed=True, venue_id=self.config.venue_id)
        try:
            self._session.post_json(
                self.name, self._url(f"events/{event_id}/ticket_classes/"),
                self._ticket_class(event), headers=self._headers(),
            )
            self._session.post_json(
                self.name, self._url(f"events/{event_id}/publish/"), {}, headers=self._headers(),
            )
        except ChannelError as exc:
            exc.partial_id = event_id
            raise
        return Posted(external_id=event_id, url=f"https://www.eventbrite.com/e/{event_id}")

    def _fallback(
        self, event: Event, venue: Venue, content: Mapping[str, Any], images: Mapping[str, str],
        error: ChannelError,
    ) -> Posted:
        event_id = error.partial_id
        if event_id:
            logger.info("Keeping Eventbrite event %s as an unpublished draft", event_id)
        else:
            event_id = self._create(event, self._schedule(event, venue), listed=False, venue_id="")
        return Posted(external_id=event_id, url=f"https://www.eventbrite.com/e/{event_id}")
