from __future__ import annotations

from flask import Blueprint, request

from app.cms.constants import ADMIN_ROLES, STAFF_ROLES
from app.cms.db import db_session
from app.cms.errors import get_in_org
from app.cms.modules.departments import service
from app.cms.modules.departments.models import Department
from app.cms.rbac import current_user, require_role

bp = Blueprint("departments", __name__)


def _department(s, department_id: int) -> Department:
    return get_in_org(s, Department, department_id, current_user(), label="Department")


@bp.post("")
@require_role(*ADMIN_ROLES)
def departments_create():
    s = db_session()
    department = service.create_department(s, current_user(), request.get_json(silent=True) or {})
    s.commit()
    return department.to_dict(), 201


@bp.get("")
@require_role(*ADMIN_ROLES)
def departments_list():
    rows = service.list_departments(db_session(), current_user())
    return {"departments": [d.to_dict() for d in rows]}


@bp.get("/<int:department_id>")
@require_role(*STAFF_ROLES)
def department_detail(department_id: int):
    return _department(db_session(), department_id).to_dict(include_members=True)


@bp.put("/<int:department_id>")
@require_role(*ADMIN_ROLES)
def department_update(department_id: int):
    s = db_session()
    department = service.update_department(
        s, current_user(), _department(s, department_id), request.get_json(silent=True) or {}
    )
    s.commit()
    return department.to_dict()


@bp.delete("/<int:department_id>")
@require_role(*ADMIN_ROLES)
def department_delete(department_id: int):
    s = db_session()
    service.delete_department(s, _department(s, department_id))
    s.commit()
    return {"msg": "Department deleted successfully"}


@bp.post("/<int:department_id>/users")
@require_role(*ADMIN_ROLES)
def department_assign_users(department_id: int):
    s = db_session()
    data = request.get_json(silent=True) or {}
    users = service.assign_users(s, current_user(), _department(s, department_id), data.get("userIds"))
    s.commit()
    return {"msg": "Users assigned to department", "users": [u.to_dict() for u in users]}


@bp.get("/<int:department_id>/users")
@require_role(*STAFF_ROLES)
def department_users(department_id: int):
    department = _department(db_session(), department_id)
    return {"users": [u.to_dict() for u in department.members]}


@bp.delete("/<int:department_id>/users/<int:user_id>")
@require_role(*ADMIN_ROLES)
def department_remove_user(department_id: int, user_id: int):
    s = db_session()
    service.remove_user(s, current_user(), _department(s, department_id), user_id)
    s.commit()
    return {"msg": "User removed from department"}
