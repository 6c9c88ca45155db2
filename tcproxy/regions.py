import logging
from typing import Dict, Optional, Tuple

from .config import (
    CORE_API_HOSTS,
    CORE_API_HOSTS_STAGING,
    TOPICS_API_HOSTS,
    TOPICS_API_HOSTS_STAGING,
)

logger = logging.getLogger(__name__)

REGION_CODES: Tuple[str, ...] = ("us", "eu", "ap", "ap-au")
DEFAULT_REGION = "eu"

# Project "location" strings as reported by Connect, plus the codes themselves
LOCATION_ALIASES: Dict[str, str] = {
    "northamerica": "us",
    "us": "us",
    "europe": "eu",
    "eu": "eu",
    "asia": "ap",
    "ap": "ap",
    "australia": "ap-au",
    "ap-au": "ap-au",
}


def resolve_region_code(location: Optional[str]) -> str:
    """Map a location string to a region code. Unknown or empty input gives `eu`."""
    normalized = (location or "").strip().lower()
    region = LOCATION_ALIASES.get(normalized, DEFAULT_REGION)
    logger.debug("Location %r -> region %s", location, region)
    return region


def core_api_host(region: str, staging: bool = False) -> str:
    table = CORE_API_HOSTS_STAGING if staging else CORE_API_HOSTS
    return table.get(region) or table[DEFAULT_REGION]


def topics_api_host(region: str, staging: bool = False) -> str:
    table = TOPICS_API_HOSTS_STAGING if staging else TOPICS_API_HOSTS
    return table.get(region) or table[DEFAULT_REGION]
