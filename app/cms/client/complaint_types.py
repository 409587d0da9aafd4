from __future__ import annotations

from typing import Any

from app.cms.client.errors import payload_or_message
from app.cms.client.http import ApiClient


@payload_or_message
def create_complaint_type(api: ApiClient, complaint_type: dict) -> Any:
    return api.post("/complaints/types", complaint_type)


@payload_or_message
def get_complaint_types(api: ApiClient) -> Any:
    return api.get("/complaints/types")


@payload_or_message
def update_complaint_type(api: ApiClient, type_id: int, complaint_type: dict) -> Any:
    return api.put(f"/complaints/types/{type_id}", complaint_type)


@payload_or_message
def delete_complaint_type(api: ApiClient, type_id: int) -> Any:
    return api.delete(f"/complaints/types/{type_id}")
