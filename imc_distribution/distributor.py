"""Distribution coordinator: one event, many channels, one report.

Each selected channel runs in its own worker and owns its adapter call;
outcomes are merged only once every worker has finished. A failing channel
produces a failed ChannelResult and never stops its siblings.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from imc_distribution.adapter import ChannelResult, DistributionStatus
from imc_distribution.delivery_log import DeliveryRecord
from imc_distribution.errors import InvalidRequest, NoRunnableChannels

if TYPE_CHECKING:
    from imc_distribution.adapter import ChannelAdapter
    from imc_distribution.delivery_log import IdempotencyStore
    from imc_distribution.event import Event, Venue

logger = logging.getLogger(__name__)

ALL_CHANNELS = "all"
CHANNEL_ALIASES = {"email": "press", "press-release": "press"}


@dataclass(frozen=True)
class ChannelStatus:
    ready: bool
    provider: str
    missing: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"ready": self.ready, "provider": self.provider}
        if self.missing:
            data["missing"] = list(self.missing)
        return data


@dataclass(frozen=True)
class DistributionReport:
    results: list[ChannelResult]

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> list[str]:
        return [r.channel for r in self.results if not r.success]

    def get(self, channel: str) -> ChannelResult | None:
        return next((r for r in self.results if r.channel == channel), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.succeeded > 0,
            "results": [r.to_dict() for r in self.results],
            "succeeded": self.succeeded,
            "total": self.total,
        }


class EventDistributor:
    """Fans an event out to channel adapters and aggregates their results.

    Args:
        adapters: Channel adapters in the order "all" should run them.
        delivery_log: Optional idempotency store consulted before each
            channel; successful distributions are recorded in it.
        max_workers: Upper bound on concurrent channel calls.
    """

    def __init__(
        self,
        adapters: Iterable[ChannelAdapter] = (),
        delivery_log: IdempotencyStore | None = None,
        max_workers: int = 8,
    ) -> None:
        self._adapters: dict[str, ChannelAdapter] = {a.name: a for a in adapters}
        self._delivery_log = delivery_log
        self._max_workers = max(1, max_workers)

    @property
    def channels(self) -> list[str]:
        return list(self._adapters)

    def adapter(self, channel: str) -> ChannelAdapter | None:
        return self._adapters.get(CHANNEL_ALIASES.get(channel, channel))

    def resolve_channels(self, channels: Iterable[str] | str | None = ALL_CHANNELS) -> list[str]:
        """Turn a request's channel selection into an ordered, de-duplicated list."""
        if channels is None or channels == ALL_CHANNELS:
            return [name for name, a in self._adapters.items() if a.ready]
        if isinstance(channels, str):
            channels = channels.split(",")
        try:
            channels = list(channels)
        except TypeError as exc:
            raise InvalidRequest(f"Invalid channel selection: {channels!r}") from exc
        bad = [c for c in channels if not isinstance(c, str)]
        if bad:
            raise InvalidRequest(f"Channel names must be strings, got {bad!r}")
        names = [CHANNEL_ALIASES.get(c.strip().lower(), c.strip().lower()) for c in channels]
        names = [n for n in names if n]
        if not names or ALL_CHANNELS in names:
            return [name for name, a in self._adapters.items() if a.ready]
        return list(dict.fromkeys(names))

    def check_status(self) -> dict[str, ChannelStatus]:
        """Report, per known channel, whether its required settings are present."""
        return {
            name: ChannelStatus(
                ready=adapter.ready,
                provider=adapter.provider,
                missing=adapter.missing_settings(),
            )
            for name, adapter in self._adapters.items()
        }

    def _run_channel(
        self,
        channel: str,
        event: Event,
        venue: Venue,
        content: Mapping[str, Any],
        images: Mapping[str, str],
    ) -> ChannelResult:
        adapter = self._adapters.get(channel)
        if adapter is None:
            return ChannelResult.failed(channel, f"Unknown channel: {channel}")

        fingerprint = adapter.fingerprint(event, venue)
        if self._delivery_log is not None:
            previous = self._delivery_log.get(fingerprint)
            if previous is not None:
                logger.info("Skipping %s: already distributed as %s", channel, previous.external_id)
                return ChannelResult(
                    channel=channel,
                    status=DistributionStatus.DUPLICATE,
                    external_id=previous.external_id or None,
                    url=previous.url or None,
                    used_fallback=previous.used_fallback,
                    fingerprint=fingerprint,
                )

        try:
            result = adapter.distribute(event, venue, content, images)
        except Exception as exc:
            logger.exception("Adapter %s raised unexpectedly", channel)
            return ChannelResult.failed(channel, f"{type(exc).__name__}: {exc}", fingerprint)

        if result.status is DistributionStatus.PUBLISHED and self._delivery_log is not None:
            try:
                self._delivery_log.set_if_absent(fingerprint, DeliveryRecord(
                    fingerprint=fingerprint,
                    channel=channel,
                    external_id=result.external_id or "",
                    url=result.url or "",
                    title=event.title,
                    used_fallback=result.used_fallback,
                ))
            except Exception:
                # The post already went out; report it even if it cannot be recorded.
                logger.exception("Could not record %s delivery %s", channel, result.external_id)
        return result

    def distribute(
        self,
        channel: str,
        event: Event,
        venue: Venue,
        content: Mapping[str, Any] | None = None,
        images: Mapping[str, str] | None = None,
    ) -> ChannelResult:
        """Distribute to a single channel."""
        name = CHANNEL_ALIASES.get(channel, channel)
        if name not in self._adapters:
            raise NoRunnableChannels(f"Unknown channel: {channel}")
        return self._run_channel(name, event, venue, content or {}, images or {})

    def distribute_all(
        self,
        event: Event,
        venue: Venue,
        content: Mapping[str, Any] | None = None,
        images: Mapping[str, str] | None = None,
        channels: Iterable[str] | str | None = ALL_CHANNELS,
    ) -> DistributionReport:
        """Distribute to every selected channel concurrently.

        Raises:
            InvalidRequest: If the channel selection is not a list of names.
            NoRunnableChannels: If the selection resolves to no channel that
                is both known and configured.
        """
        selected = self.resolve_channels(channels)
        runnable = [c for c in selected if c in self._adapters and self._adapters[c].ready]
        if not runnable:
            raise NoRunnableChannels(
                f"No configured channels to run (requested: {', '.join(selected) or 'none'})"
            )

        content = content or {}
        images = images or {}
        logger.info("Distributing %r to %s", event.title, ", ".join(selected))

        workers = min(self._max_workers, len(selected))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="distribute") as pool:
            futures = [
                pool.submit(self._run_channel, channel, event, venue, content, images)
                for channel in selected
            ]
            results = [f.result() for f in futures]

        report = DistributionReport(results=results)
        logger.info("Distributed %r: %d/%d channels succeeded", event.title, report.succeeded, report.total)
        return report
