"""Channel adapter base: one event, one channel, at most one fallback.

Every adapter runs the same sequence:

  PRIMARY   -> the channel's full-featured posting strategy
  FALLBACK  -> a reduced-capability strategy, entered only once and only
               when the primary failure classifies as a capability error
  TERMINAL  -> a ChannelResult carrying the outcome (or the last error)

Subclasses implement ``_primary`` and optionally ``_fallback``; the sequence
itself lives here so no adapter can loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping

from imc_distribution.errors import (
    ChannelError,
    ChannelTimeoutError,
    ConfigurationError,
    DistributionError,
    ErrorKind,
)
from imc_distribution.fingerprint import build_fingerprint

if TYPE_CHECKING:
    from imc_distribution.event import Event, Venue
    from imc_distribution.session import ChannelSession

logger = logging.getLogger(__name__)


class Channel(Enum):
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
    LINKEDIN = "linkedin"
    EVENTBRITE = "eventbrite"
    PRESS = "press"


class DistributionStatus(Enum):
    PUBLISHED = "published"
    DUPLICATE = "duplicate"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ChannelResult:
    channel: str
    status: DistributionStatus
    external_id: str | None = None
    url: str | None = None
    error: str | None = None
    used_fallback: bool = False
    fingerprint: str = ""

    @property
    def success(self) -> bool:
        return self.status in (DistributionStatus.PUBLISHED, DistributionStatus.DUPLICATE)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "channel": self.channel,
            "success": self.success,
            "status": self.status.value,
            "usedFallback": self.used_fallback,
        }
        if self.success:
            data["id"] = self.external_id
            data["url"] = self.url
        else:
            data["error"] = self.error
        return data

    @classmethod
    def failed(
        cls, channel: str, error: str, fingerprint: str = "", used_fallback: bool = False,
    ) -> ChannelResult:
        return cls(
            channel=channel, status=DistributionStatus.FAILED, error=error,
            fingerprint=fingerprint, used_fallback=used_fallback,
        )


def content_text(content: Mapping[str, Any] | str | None, *keys: str, default: str = "") -> str:
    """First non-empty string among ``keys`` in a generated-content mapping."""
    if isinstance(content, str):
        return content or default
    for key in keys:
        value = (content or {}).get(key)
        if isinstance(value, str) and value.strip():
            return value
    return default


@dataclass(frozen=True)
class Posted:
    """What a successful strategy produced on the channel."""
    external_id: str
    url: str | None = None


class ChannelAdapter:
    """Base class for a single-channel distribution strategy pair."""

    channel: Channel
    provider: str = ""
    has_fallback: bool = False

    def __init__(self, session: ChannelSession, default_region: str = "TX") -> None:
        self._session = session
        self._default_region = default_region

    @property
    def name(self) -> str:
        return self.channel.value

    def missing_settings(self) -> list[str]:
        """Names of required settings that are absent."""
        return []

    @property
    def ready(self) -> bool:
        return not self.missing_settings()

    def discriminator(self) -> str:
        """Channel-specific part of the fingerprint, e.g. the parent page id."""
        return self.name

    def fingerprint(self, event: Event, venue: Venue) -> str:
        return build_fingerprint(event, venue, self.discriminator())

    def distribute(
        self,
        event: Event,
        venue: Venue,
        content: Mapping[str, Any] | None = None,
        images: Mapping[str, str] | None = None,
    ) -> ChannelResult:
        content = content or {}
        images = images or {}
        fingerprint = self.fingerprint(event, venue)

        missing = self.missing_settings()
        if missing:
            error = ConfigurationError(self.name, missing)
            logger.info("Skipping %s: %s", self.name, error)
            return ChannelResult(
                channel=self.name, status=DistributionStatus.SKIPPED,
                error=str(error), fingerprint=fingerprint,
            )

        try:
            posted = self._primary(event, venue, content, images)
            logger.info("Distributed %r to %s (%s)", event.title, self.name, posted.external_id)
            return self._published(posted, fingerprint, used_fallback=False)
        except ChannelTimeoutError as exc:
            logger.warning("%s timed out: %s", self.name, exc)
            return ChannelResult.failed(self.name, str(exc), fingerprint)
        except ChannelError as exc:
            if not (self.has_fallback and exc.kind is ErrorKind.CAPABILITY):
                logger.warning("%s failed without fallback: %s", self.name, exc)
                return ChannelResult.failed(self.name, str(exc), fingerprint)
            logger.warning("%s primary failed (%s), trying fallback", self.name, exc)
            primary_error = exc
        except DistributionError as exc:
            logger.warning("%s failed: %s", self.name, exc)
            return ChannelResult.failed(self.name, str(exc), fingerprint)

        try:
            posted = self._fallback(event, venue, content, images, primary_error)
        except DistributionError as exc:
            logger.warning("%s fallback failed: %s", self.name, exc)
            return ChannelResult.failed(self.name, str(exc), fingerprint, used_fallback=True)
        logger.info("Distributed %r to %s via fallback (%s)", event.title, self.name, posted.external_id)
        return self._published(posted, fingerprint, used_fallback=True)

    def _published(self, posted: Posted, fingerprint: str, used_fallback: bool) -> ChannelResult:
        return ChannelResult(
            channel=self.name,
            status=DistributionStatus.PUBLISHED,
            external_id=posted.external_id,
            url=posted.url,
            used_fallback=used_fallback,
            fingerprint=fingerprint,
        )

    def _primary(
        self, event: Event, venue: Venue, content: Mapping[str, Any], images: Mapping[str, str],
    ) -> Posted:
        raise NotImplementedError

    def _fallback(
        self, event: Event, venue: Venue, content: Mapping[str, Any], images: Mapping[str, str],
        error: ChannelError,
    ) -> Posted:
        raise ConfigurationError(self.name, detail="no fallback strategy")
