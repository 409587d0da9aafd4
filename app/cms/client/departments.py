from __future__ import annotations

from typing import Any

import requests

from app.cms.client.errors import PermissionDeniedError, msg_or, payload_or_message, status_of
from app.cms.client.http import ApiClient


@payload_or_message
def create_department(api: ApiClient, department: dict) -> Any:
    return api.post("/departments", department)


def get_all_departments(api: ApiClient) -> Any:
    try:
        return api.get("/departments")
    except requests.HTTPError as e:
        if status_of(e) == 403:
            raise PermissionDeniedError("You do not have permission to view departments", 403) from e
        raise


@payload_or_message
def get_department_by_id(api: ApiClient, department_id: int) -> Any:
    return api.get(f"/departments/{department_id}")


@payload_or_message
def update_department(api: ApiClient, department_id: int, department: dict) -> Any:
    return api.put(f"/departments/{department_id}", department)


@msg_or()
def delete_department(api: ApiClient, department_id: int) -> Any:
    return api.delete(f"/departments/{department_id}")


@payload_or_message
def assign_users_to_department(api: ApiClient, department_id: int, user_ids: list[int]) -> Any:
    return api.post(f"/departments/{department_id}/users", {"userIds": user_ids})


@payload_or_message
def get_department_users(api: ApiClient, department_id: int) -> Any:
    return api.get(f"/departments/{department_id}/users")


@payload_or_message
def remove_user_from_department(api: ApiClient, department_id: int, user_id: int) -> Any:
    return api.delete(f"/departments/{department_id}/users/{user_id}")
