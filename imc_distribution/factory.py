"""Factory for building an EventDistributor from DistributionConfig.

Shared by the CLI and the request action handler so client construction
lives in one place. One ChannelSession is built per distributor and passed
to every adapter.
"""

from __future__ import annotations

from pathlib import Path

from imc_distribution.config import DistributionConfig
from imc_distribution.delivery_log import DeliveryLog
from imc_distribution.distributor import EventDistributor
from imc_distribution.eventbrite import EventbriteAdapter, EventbriteConfig
from imc_distribution.facebook import FacebookAdapter, FacebookConfig
from imc_distribution.instagram import InstagramAdapter, InstagramConfig
from imc_distribution.linkedin import LinkedInAdapter, LinkedInConfig
from imc_distribution.press import PressAdapter, PressConfig
from imc_distribution.rate_limiter import RateLimiter, RateLimiterConfig
from imc_distribution.session import ChannelSession


def build_distributor(
    cfg: DistributionConfig,
    delivery_log: DeliveryLog | None = None,
    session: ChannelSession | None = None,
) -> EventDistributor:
    """Build an EventDistributor from a DistributionConfig.

    Args:
        cfg: Configuration with channel credentials and live_mode.
        delivery_log: Optional pre-built delivery log. If None, one is
            constructed from cfg.delivery_log_path.
        session: Optional pre-built session (tests inject fakes here).

    Returns:
        A distributor wired with every known channel adapter. Channels
        without credentials are present but report not ready.
    """
    if session is None:
        session = ChannelSession(timeout=cfg.request_timeout, live=cfg.live_mode)
    region = cfg.default_region

    adapters = [
        PressAdapter(
            PressConfig(
                api_key=cfg.press_api_key,
                from_email=cfg.press_from_email,
                fallback_from=cfg.press_fallback_from,
                reply_to=cfg.press_reply_to,
                organization=cfg.organization,
                dateline_city=cfg.dateline_city,
                contact_html=cfg.signature,
                recipients=list(cfg.press_recipients),
            ),
            session, region,
            rate_limiter=RateLimiter(RateLimiterConfig(
                tokens_per_second=cfg.press_sends_per_second,
                max_tokens=cfg.press_sends_per_second,
            )),
        ),
        EventbriteAdapter(
            EventbriteConfig(
                token=cfg.eventbrite_token,
                org_id=cfg.eventbrite_org_id,
                venue_id=cfg.eventbrite_venue_id,
                api_version=cfg.eventbrite_api_version,
                capacity=cfg.eventbrite_capacity,
            ),
            session, region,
        ),
        FacebookAdapter(
            FacebookConfig(
                page_id=cfg.facebook_page_id,
                access_token=cfg.facebook_access_token,
                graph_version=cfg.facebook_graph_version,
                signature=cfg.signature,
            ),
            session, region,
        ),
        InstagramAdapter(
            InstagramConfig(
                page_id=cfg.facebook_page_id,
                access_token=cfg.instagram_access_token,
                account_id=cfg.instagram_account_id,
                graph_version=cfg.facebook_graph_version,
                hashtags=cfg.instagram_hashtags,
            ),
            session, region,
        ),
        LinkedInAdapter(
            LinkedInConfig(
                org_id=cfg.linkedin_org_id,
                access_token=cfg.linkedin_access_token,
                api_version=cfg.linkedin_api_version,
                hashtags=cfg.linkedin_hashtags,
            ),
            session, region,
        ),
    ]

    if delivery_log is None:
        log_path = Path(cfg.delivery_log_path) if cfg.delivery_log_path else None
        delivery_log = DeliveryLog(log_path)

    return EventDistributor(adapters, delivery_log=delivery_log, max_workers=cfg.max_workers)
