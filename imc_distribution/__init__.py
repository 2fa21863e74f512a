"""imc-distribution: promote one live event across many external channels.

Fingerprints each event-on-a-channel for idempotency, normalizes schedules
with timezone semantics, classifies channel errors for a single fallback
attempt, and fans out to all channels with isolated failures.
"""

__version__ = "0.1.0"

from imc_distribution.adapter import Channel, ChannelAdapter, ChannelResult, DistributionStatus
from imc_distribution.config import DistributionConfig, load_config
from imc_distribution.delivery_log import DeliveryLog, DeliveryRecord
from imc_distribution.distributor import ALL_CHANNELS, DistributionReport, EventDistributor
from imc_distribution.event import Event, Venue
from imc_distribution.factory import build_distributor

__all__ = [
    "ALL_CHANNELS",
    "Channel",
    "ChannelAdapter",
    "ChannelResult",
    "DistributionStatus",
    "DistributionConfig",
    "load_config",
    "DeliveryLog",
    "DeliveryRecord",
    "DistributionReport",
    "EventDistributor",
    "Event",
    "Venue",
    "build_distributor",
]
