from __future__ import annotations

import logging
from typing import Any

import requests

from app.cms.client.errors import logged, payload_of, status_of
from app.cms.client.http import ApiClient

log = logging.getLogger(__name__)


def _truthy(params: dict | None, keys: tuple[str, ...]) -> dict[str, Any]:
    params = params or {}
    return {k: params[k] for k in keys if params.get(k)}


@logged("submitting feedback")
def submit_feedback(api: ApiClient, feedback: dict) -> Any:
    return api.post("/feedback", feedback)


def get_feedback_by_complaint(api: ApiClient, complaint_id: int) -> Any:
    """Feedback left on a complaint, or None when there is none yet."""
    try:
        return api.get(f"/feedback/complaint/{complaint_id}")
    except requests.RequestException as e:
        if status_of(e) == 404:
            return None
        log.error("Error fetching feedback: %s", payload_of(e) or e)
        raise


@logged("checking feedback eligibility")
def can_provide_feedback(api: ApiClient, complaint_id: int) -> Any:
    return api.get(f"/feedback/can-provide/{complaint_id}")


@logged("fetching all feedback")
def get_all_feedback(api: ApiClient, params: dict | None = None) -> Any:
    return api.get("/feedback", params=_truthy(params, ("page", "limit", "rating", "department")))


@logged("fetching feedback statistics")
def get_feedback_stats(api: ApiClient) -> Any:
    return api.get("/feedback/stats")


@logged("fetching department feedback statistics")
def get_feedback_stats_by_department(api: ApiClient, department_id: int) -> Any:
    return api.get(f"/feedback/department/{department_id}/stats")


@logged("fetching department feedback")
def get_feedback_by_department(api: ApiClient, department_id: int, params: dict | None = None) -> Any:
    return api.get(f"/feedback/department/{department_id}", params=_truthy(params, ("page", "limit", "rating")))
