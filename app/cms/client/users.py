from __future__ import annotations

from typing import Any

from app.cms.client.errors import logged, payload_or_message
from app.cms.client.http import ApiClient


@logged("adding user")
def add_user(api: ApiClient, user: dict) -> Any:
    return api.post("/users/add", user)


@logged("fetching users")
def fetch_users(api: ApiClient) -> Any:
    return api.get("/users")


@logged("deleting user")
def delete_user(api: ApiClient, user_id: int) -> Any:
    return api.delete(f"/users/{user_id}")


@payload_or_message
def fetch_department_eligible_users(api: ApiClient) -> Any:
    return api.get("/users/department-eligible")
