from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from sqlalchemy import func

from app.cms.errors import NotFoundError
from app.cms.modules.notifications.models import Notification

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.cms.models import User


def notify(
    s: "Session",
    *,
    user_id: int,
    organization_id: int,
    kind: str,
    title: str,
    message: str = "",
    complaint_id: int | None = None,
) -> Notification:
    """
    Queue an in-app notification. Caller commits.
    """
    n = Notification(
        user_id=user_id,
        organization_id=organization_id,
        kind=kind,
        title=title,
        message=message,
        complaint_id=complaint_id,
    )
    s.add(n)
    return n


def notify_users(
    s: "Session",
    users: Iterable["User | None"],
    *,
    kind: str,
    title: str,
    message: str = "",
    complaint_id: int | None = None,
    exclude: "User | None" = None,
) -> list[Notification]:
    """Notify each distinct user once, skipping the actor who caused the event."""
    out: list[Notification] = []
    seen: set[int] = set()
    for u in users:
        if u is None or u.id in seen or (exclude is not None and u.id == exclude.id):
            continue
        seen.add(u.id)
        out.append(
            notify(
                s,
                user_id=u.id,
                organization_id=u.organization_id,
                kind=kind,
                title=title,
                message=message,
                complaint_id=complaint_id,
            )
        )
    return out


def list_notifications(s: "Session", user: "User", *, page: int, limit: int, unread_only: bool = False) -> tuple[list[Notification], int]:
    q = s.query(Notification).filter(Notification.user_id == user.id)
    if unread_only:
        q = q.filter(Notification.is_read.is_(False))
    total = q.count()
    rows = (
        q.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def unread_count(s: "Session", user: "User") -> int:
    return (
        s.query(func.count(Notification.id))
        .filter(Notification.user_id == user.id, Notification.is_read.is_(False))
        .scalar()
        or 0
    )


def _own(s: "Session", user: "User", notification_id: int) -> Notification:
    n = s.get(Notification, notification_id)
    if n is None or n.user_id != user.id:
        raise NotFoundError("Notification not found")
    return n


def mark_read(s: "Session", user: "User", notification_id: int) -> Notification:
    n = _own(s, user, notification_id)
    n.is_read = True
    return n


def mark_all_read(s: "Session", user: "User") -> int:
    return (
        s.query(Notification)
        .filter(Notification.user_id == user.id, Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )


def delete_notification(s: "Session", user: "User", notification_id: int) -> None:
    s.delete(_own(s, user, notification_id))
