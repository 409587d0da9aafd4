from __future__ import annotations

from flask import Blueprint, request

from app.cms.constants import ADMIN_ROLES
from app.cms.db import db_session
from app.cms.modules.users import service
from app.cms.rbac import current_user, require_role

bp = Blueprint("users", __name__)


@bp.post("/add")
@require_role(*ADMIN_ROLES)
def users_add():
    s = db_session()
    user = service.add_user(s, current_user(), request.get_json(silent=True) or {})
    s.commit()
    return {"msg": "User added successfully", "user": user.to_dict()}, 201


@bp.get("")
@require_role(*ADMIN_ROLES)
def users_list():
    return {"users": [u.to_dict() for u in service.list_users(db_session(), current_user())]}


@bp.get("/department-eligible")
@require_role(*ADMIN_ROLES)
def users_department_eligible():
    users = service.department_eligible_users(db_session(), current_user())
    return {"users": [u.to_dict() for u in users]}


@bp.delete("/<int:user_id>")
@require_role(*ADMIN_ROLES)
def users_delete(user_id: int):
    s = db_session()
    service.delete_user(s, current_user(), user_id)
    s.commit()
    return {"msg": "User deleted successfully"}
