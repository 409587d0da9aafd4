from __future__ import annotations

from flask import Blueprint, request

from app.cms.db import db_session
from app.cms.modules.complaints import service
from app.cms.rbac import current_user, require_auth
from app.cms.utils import page_payload, parse_page

bp = Blueprint("complaints", __name__)


def _payload() -> dict:
    """JSON body, or the form fields of a multipart upload."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


@bp.post("")
@require_auth
def complaints_create():
    s = db_session()
    complaint = service.create_complaint(s, current_user(), _payload(), request.files.get("attachment"))
    s.commit()
    return complaint.to_dict(), 201


@bp.get("")
@require_auth
def complaints_list():
    s = db_session()
    page, limit = parse_page(request.args)
    rows, total = service.list_complaints(s, current_user(), request.args, page=page, limit=limit)
    return page_payload([c.to_dict() for c in rows], total=total, page=page, limit=limit)


@bp.get("/<int:complaint_id>")
@require_auth
def complaint_detail(complaint_id: int):
    return service.get_visible_complaint(db_session(), current_user(), complaint_id).to_dict()


@bp.put("/<int:complaint_id>/status")
@require_auth
def complaint_status(complaint_id: int):
    s = db_session()
    user = current_user()
    complaint = service.get_visible_complaint(s, user, complaint_id)
    service.update_status(s, user, complaint, request.get_json(silent=True) or {})
    s.commit()
    return complaint.to_dict()


@bp.get("/<int:complaint_id>/comments")
@require_auth
def complaint_comments(complaint_id: int):
    user = current_user()
    complaint = service.get_visible_complaint(db_session(), user, complaint_id)
    return {"comments": [c.to_dict() for c in service.list_comments(user, complaint)]}


@bp.post("/<int:complaint_id>/comments")
@require_auth
def complaint_comment_add(complaint_id: int):
    s = db_session()
    user = current_user()
    complaint = service.get_visible_complaint(s, user, complaint_id)
    comment = service.add_comment(s, user, complaint, request.get_json(silent=True) or {})
    s.commit()
    return comment.to_dict(), 201


@bp.post("/<int:complaint_id>/escalate")
@require_auth
def complaint_escalate(complaint_id: int):
    s = db_session()
    user = current_user()
    complaint = service.get_visible_complaint(s, user, complaint_id)
    service.escalate(s, user, complaint, request.get_json(silent=True) or {})
    s.commit()
    return complaint.to_dict()


@bp.put("/<int:complaint_id>/assign")
@require_auth
def complaint_assign(complaint_id: int):
    s = db_session()
    user = current_user()
    complaint = service.get_visible_complaint(s, user, complaint_id)
    service.assign(s, user, complaint, request.get_json(silent=True) or {})
    s.commit()
    return complaint.to_dict()
