from __future__ import annotations

from typing import Any

from app.cms.client.errors import logged
from app.cms.client.http import ApiClient


@logged("fetching notifications")
def get_notifications(api: ApiClient, params: dict | None = None) -> Any:
    return api.get("/notifications", params=params or {})


@logged("fetching unread notification count")
def get_unread_notification_count(api: ApiClient) -> int:
    return api.get("/notifications/unread-count")["count"]


@logged("marking notification as read")
def mark_notification_as_read(api: ApiClient, notification_id: int) -> Any:
    return api.put(f"/notifications/{notification_id}/read")


@logged("marking all notifications as read")
def mark_all_notifications_as_read(api: ApiClient) -> Any:
    return api.put("/notifications/read-all")


@logged("deleting notification")
def delete_notification(api: ApiClient, notification_id: int) -> Any:
    return api.delete(f"/notifications/{notification_id}")
