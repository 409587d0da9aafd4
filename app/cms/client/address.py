from __future__ import annotations

import logging
from typing import Any

import requests

from app.cms.client.config import load_client_settings
from app.cms.client.errors import ApiError, status_of
from app.cms.client.http import DEFAULT_TIMEOUT

log = logging.getLogger(__name__)

OPENCAGE_API_URL = "https://api.opencagedata.com/geocode/v1/json"
SUGGESTION_LIMIT = 5


def fetch_address_suggestions(
    query: str,
    *,
    api_key: str | None = None,
    session: requests.Session | None = None,
) -> list[dict[str, Any]]:
    """
    Geocoding suggestions straight from OpenCage; the backend is not involved.
    """
    if api_key is None:
        api_key = load_client_settings().opencage_api_key
    try:
        resp = (session or requests).get(
            OPENCAGE_API_URL,
            params={"q": query, "key": api_key, "limit": SUGGESTION_LIMIT},
            timeout=DEFAULT_TIMEOUT,
        )
        resp.raise_for_status()
        results = resp.json()["results"]
    except (requests.RequestException, ValueError, KeyError) as e:
        log.error("Error fetching address suggestions: %s", e)
        raise ApiError("Failed to fetch address suggestions. Please try again.", status_of(e)) from e
    log.info("Address suggestions fetched: %s result(s)", len(results))
    return results
