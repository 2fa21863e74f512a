"""Configuration loader for imc-distribution.

Loads a YAML config file with environment variable overrides.
All env vars use the IMC_ prefix. Channel credentials come only from here,
never from a distribution request.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


ENV_PREFIX = "IMC_"


@dataclass
class DistributionConfig:
    """Unified configuration for the distributor and its channel adapters."""
    facebook_page_id: str = ""
    facebook_access_token: str = ""
    facebook_graph_version: str = ""
    instagram_account_id: str = ""
    instagram_access_token: str = ""
    instagram_hashtags: str = ""
    linkedin_org_id: str = ""
    linkedin_access_token: str = ""
    linkedin_api_version: str = ""
    linkedin_hashtags: str = ""
    eventbrite_token: str = ""
    eventbrite_org_id: str = ""
    eventbrite_venue_id: str = ""
    eventbrite_api_version: str = ""
    eventbrite_capacity: int = 100
    press_api_key: str = ""
    press_from_email: str = ""
    press_fallback_from: str = "onboarding@resend.dev"
    press_reply_to: str = ""
    press_recipients: list[str] = field(default_factory=list)
    press_sends_per_second: float = 10.0
    organization: str = ""
    dateline_city: str = ""
    signature: str = ""
    default_region: str = "TX"
    request_timeout: float = 30.0
    max_workers: int = 8
    delivery_log_path: str = "delivery_log.json"
    live_mode: bool = False


def load_config(path: Path | None = None) -> DistributionConfig:
    """Load config from YAML file with env var overrides.

    Env vars override YAML values. Mapping:
      IMC_FACEBOOK_PAGE_ID → facebook.page_id
      IMC_FACEBOOK_ACCESS_TOKEN → facebook.access_token
      IMC_FACEBOOK_GRAPH_VERSION → facebook.graph_version
      IMC_INSTAGRAM_ACCOUNT_ID → instagram.account_id
      IMC_INSTAGRAM_ACCESS_TOKEN → instagram.access_token (defaults to the Facebook token)
      IMC_LINKEDIN_ORG_ID → linkedin.org_id
      IMC_LINKEDIN_ACCESS_TOKEN → linkedin.access_token
      IMC_EVENTBRITE_TOKEN → eventbrite.token
      IMC_EVENTBRITE_ORG_ID → eventbrite.org_id
      IMC_EVENTBRITE_VENUE_ID → eventbrite.venue_id
      IMC_RESEND_API_KEY → press.api_key
      IMC_RESEND_FROM_EMAIL → press.from_email
      IMC_DEFAULT_REGION → default_region
      IMC_REQUEST_TIMEOUT → request_timeout
      IMC_LIVE_MODE → live_mode
    """
    raw: dict[str, Any] = {}
    if path and path.exists():
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
        raw = loaded if isinstance(loaded, dict) else {}

    facebook = raw.get("facebook") or {}
    instagram = raw.get("instagram") or {}
    linkedin = raw.get("linkedin") or {}
    eventbrite = raw.get("eventbrite") or {}
    press = raw.get("press") or {}

    facebook_token = _env_or("FACEBOOK_ACCESS_TOKEN", facebook.get("access_token", ""))

    cfg = DistributionConfig(
        facebook_page_id=str(_env_or("FACEBOOK_PAGE_ID", facebook.get("page_id", ""))),
        facebook_access_token=facebook_token,
        facebook_graph_version=str(_env_or("FACEBOOK_GRAPH_VERSION", facebook.get("graph_version", ""))),
        instagram_account_id=str(_env_or("INSTAGRAM_ACCOUNT_ID", instagram.get("account_id", ""))),
        instagram_access_token=_env_or(
            "INSTAGRAM_ACCESS_TOKEN",
            instagram.get("access_token", "") or facebook_token,
        ),
        instagram_hashtags=instagram.get("hashtags", ""),
        linkedin_org_id=str(_env_or("LINKEDIN_ORG_ID", linkedin.get("org_id", ""))),
        linkedin_access_token=_env_or("LINKEDIN_ACCESS_TOKEN", linkedin.get("access_token", "")),
        linkedin_api_version=str(linkedin.get("api_version", "")),
        linkedin_hashtags=linkedin.get("hashtags", ""),
        eventbrite_token=_env_or("EVENTBRITE_TOKEN", eventbrite.get("token", "")),
        eventbrite_org_id=str(_env_or("EVENTBRITE_ORG_ID", eventbrite.get("org_id", ""))),
        eventbrite_venue_id=str(_env_or("EVENTBRITE_VENUE_ID", eventbrite.get("venue_id", ""))),
        eventbrite_api_version=str(eventbrite.get("api_version", "")),
        eventbrite_capacity=int(eventbrite.get("capacity", 100)),
        press_api_key=_env_or("RESEND_API_KEY", press.get("api_key", "")),
        press_from_email=_env_or("RESEND_FROM_EMAIL", press.get("from_email", "")),
        press_fallback_from=press.get("fallback_from", "onboarding@resend.dev"),
        press_reply_to=press.get("reply_to", ""),
        press_recipients=list(press.get("recipients") or []),
        press_sends_per_second=float(press.get("sends_per_second", 10.0)),
        organization=raw.get("organization", ""),
        dateline_city=raw.get("dateline_city", ""),
        signature=raw.get("signature", ""),
        default_region=_env_or("DEFAULT_REGION", raw.get("default_region", "TX")),
        request_timeout=_env_float("REQUEST_TIMEOUT", raw.get("request_timeout", 30.0)),
        max_workers=int(raw.get("max_workers", 8)),
        delivery_log_path=raw.get("delivery_log_path", "delivery_log.json"),
        live_mode=_env_bool("LIVE_MODE", raw.get("live_mode", False)),
    )

    return cfg


def _env_or(suffix: str, default: str) -> str:
    return os.environ.get(f"{ENV_PREFIX}{suffix}", default)


def _env_float(suffix: str, default: float) -> float:
    val = os.environ.get(f"{ENV_PREFIX}{suffix}")
    if val is None:
        return float(default)
    try:
        return float(val)
    except ValueError:
        return float(default)


def _env_bool(suffix: str, default: bool) -> bool:
    val = os.environ.get(f"{ENV_PREFIX}{suffix}")
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")
