from __future__ import annotations

from flask import Blueprint, request

from app.cms.db import db_session
from app.cms.modules.notifications import service
from app.cms.rbac import current_user, require_auth
from app.cms.utils import page_payload, parse_page

bp = Blueprint("notifications", __name__)


@bp.get("")
@require_auth
def notifications_list():
    s = db_session()
    page, limit = parse_page(request.args)
    unread_only = (request.args.get("unread") or "").strip().lower() in ("1", "true", "yes")
    rows, total = service.list_notifications(s, current_user(), page=page, limit=limit, unread_only=unread_only)
    return page_payload([n.to_dict() for n in rows], total=total, page=page, limit=limit)


@bp.get("/unread-count")
@require_auth
def notifications_unread_count():
    return {"count": service.unread_count(db_session(), current_user())}


@bp.put("/read-all")
@require_auth
def notifications_read_all():
    s = db_session()
    updated = service.mark_all_read(s, current_user())
    s.commit()
    return {"msg": "All notifications marked as read", "updated": updated}


@bp.put("/<int:notification_id>/read")
@require_auth
def notification_read(notification_id: int):
    s = db_session()
    n = service.mark_read(s, current_user(), notification_id)
    s.commit()
    return n.to_dict()


@bp.delete("/<int:notification_id>")
@require_auth
def notification_delete(notification_id: int):
    s = db_session()
    service.delete_notification(s, current_user(), notification_id)
    s.commit()
    return {"msg": "Notification deleted"}
