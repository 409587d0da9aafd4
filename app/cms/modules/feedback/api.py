from __future__ import annotations

from flask import Blueprint, request

from app.cms.constants import ADMIN_ROLES, STAFF_ROLES
from app.cms.db import db_session
from app.cms.errors import get_in_org
from app.cms.modules.complaints.service import get_visible_complaint
from app.cms.modules.departments.models import Department
from app.cms.modules.feedback import service
from app.cms.rbac import current_user, require_auth, require_role
from app.cms.utils import page_payload, parse_int, parse_page

bp = Blueprint("feedback", __name__)


@bp.post("")
@require_auth
def feedback_submit():
    s = db_session()
    fb = service.submit_feedback(s, current_user(), request.get_json(silent=True) or {})
    s.commit()
    return fb.to_dict(), 201


@bp.get("")
@require_role(*ADMIN_ROLES)
def feedback_list():
    s = db_session()
    page, limit = parse_page(request.args)
    rows, total = service.list_feedback(
        s,
        current_user().organization_id,
        page=page,
        limit=limit,
        rating=parse_int(request.args.get("rating")),
        department_id=parse_int(request.args.get("department")),
    )
    return page_payload([fb.to_dict() for fb in rows], total=total, page=page, limit=limit)


@bp.get("/stats")
@require_role(*ADMIN_ROLES)
def feedback_stats():
    return service.feedback_stats(db_session(), current_user().organization_id)


@bp.get("/complaint/<int:complaint_id>")
@require_auth
def feedback_for_complaint(complaint_id: int):
    s = db_session()
    get_visible_complaint(s, current_user(), complaint_id)
    fb = service.feedback_for_complaint(s, complaint_id)
    if fb is None:
        return {"msg": "No feedback found for this complaint"}, 404
    return fb.to_dict()


@bp.get("/can-provide/<int:complaint_id>")
@require_auth
def feedback_can_provide(complaint_id: int):
    s = db_session()
    user = current_user()
    complaint = get_visible_complaint(s, user, complaint_id)
    allowed, reason = service.eligibility(s, user, complaint)
    return {"canProvide": allowed, "reason": reason}


@bp.get("/department/<int:department_id>")
@require_role(*STAFF_ROLES)
def feedback_by_department(department_id: int):
    s = db_session()
    user = current_user()
    get_in_org(s, Department, department_id, user, label="Department")
    page, limit = parse_page(request.args)
    rows, total = service.list_feedback(
        s,
        user.organization_id,
        page=page,
        limit=limit,
        rating=parse_int(request.args.get("rating")),
        department_id=department_id,
    )
    return page_payload([fb.to_dict() for fb in rows], total=total, page=page, limit=limit)


@bp.get("/department/<int:department_id>/stats")
@require_role(*STAFF_ROLES)
def feedback_department_stats(department_id: int):
    s = db_session()
    user = current_user()
    get_in_org(s, Department, department_id, user, label="Department")
    return service.feedback_stats(s, user.organization_id, department_id=department_id)
