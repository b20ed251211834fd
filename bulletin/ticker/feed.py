"""
Approved-items feed for the ticker. Any failure (network, HTTP status, JSON) is logged and
yields an empty list: no ticker rather than a broken page. The fetch is never retried.
"""
import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5
ENVELOPE_KEYS = ("announcements", "testimonials", "items")


def extract_items(data: Any) -> list[dict]:
    """Accepts the legacy bare array or the { success, announcements: [...] } envelope."""
    if isinstance(data, dict):
        for key in ENVELOPE_KEYS:
            if isinstance(data.get(key), list):
                data = data[key]
                break
        else:
            return []
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]


def fetch_approved_items(url: str, session: requests.Session | None = None, timeout: float = DEFAULT_TIMEOUT) -> list[dict]:
    http = session or requests
    try:
        response = http.get(url, headers={"Accept": "application/json"}, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Ticker feed %s unavailable: %s", url, e)
        return []
    return extract_items(data)
