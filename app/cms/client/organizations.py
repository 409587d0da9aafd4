from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import requests

from app.cms.client.errors import ApiError, logged, msg_of, status_of
from app.cms.client.http import ApiClient

log = logging.getLogger(__name__)

REGISTER_FAILED = "Failed to register organization. Please try again."


@logged("fetching organizations")
def get_organizations(api: ApiClient) -> Any:
    return api.get("/organizations")


def register_organization(api: ApiClient, organization: dict) -> dict:
    try:
        data = api.post("/organizations/register", organization)
    except requests.RequestException as e:
        log.error("Organization registration error: %s", e)
        raise ApiError(msg_of(e) or REGISTER_FAILED, status_of(e)) from e
    log.info("Organization registration response: %s", data)
    if not isinstance(data, dict) or not data.get("organizationId"):
        log.error("Organization ID not received in response")
        raise ApiError(REGISTER_FAILED)
    return data


@logged("fetching organization")
def fetch_organization_by_id(api: ApiClient, organization_id: int) -> Any:
    return api.get(f"/organizations/{organization_id}")


@logged("checking organization name")
def check_organization_name(api: ApiClient, name: str) -> Any:
    return api.get(f"/organizations/check-name/{quote(name, safe='')}")
