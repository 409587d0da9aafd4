from __future__ import annotations

import logging
from typing import Any

import requests

from app.cms.client.errors import msg_or, payload_of, payload_or_message, status_of
from app.cms.client.http import ApiClient, FormData

log = logging.getLogger(__name__)


def create_complaint(api: ApiClient, complaint: dict | FormData) -> Any:
    """JSON body for a dict; multipart when a FormData (with an optional attachment) is given."""
    try:
        return api.post("/complaints", complaint)
    except requests.RequestException as e:
        log.error("Complaint creation error: status=%s data=%s", status_of(e), payload_of(e))
        raise


@payload_or_message
def get_complaints(api: ApiClient, filters: dict | None = None) -> Any:
    return api.get("/complaints", params=filters or {})


@msg_or("Failed to fetch complaint details")
def get_complaint_by_id(api: ApiClient, complaint_id: int) -> Any:
    return api.get(f"/complaints/{complaint_id}")


@payload_or_message
def update_complaint_status(api: ApiClient, complaint_id: int, status: dict) -> Any:
    return api.put(f"/complaints/{complaint_id}/status", status)


@msg_or("Failed to fetch comments")
def fetch_complaint_comments(api: ApiClient, complaint_id: int) -> Any:
    return api.get(f"/complaints/{complaint_id}/comments")


@msg_or("Failed to add comment")
def add_comment_to_complaint(api: ApiClient, complaint_id: int, comment: dict) -> Any:
    return api.post(f"/complaints/{complaint_id}/comments", comment)


@payload_or_message
def escalate_complaint(api: ApiClient, complaint_id: int, escalation: dict) -> Any:
    return api.post(f"/complaints/{complaint_id}/escalate", escalation)


@payload_or_message
def assign_complaint(api: ApiClient, complaint_id: int, assignment: dict) -> Any:
    return api.put(f"/complaints/{complaint_id}/assign", assignment)
