from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from app.cms.constants import STATUS_CLOSED, STATUS_REJECTED, STATUS_RESOLVED
from app.cms.errors import NotFoundError, ServiceError, get_in_org
from app.cms.models import User
from app.cms.modules.departments.models import Department
from app.cms.utils import clean_str, parse_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def validate_department_payload(payload: dict, *, partial: bool = False) -> list[str]:
    errors = []
    if not partial and not clean_str(payload.get("name")):
        errors.append("Department name is required.")
    return errors


def _ensure_unique_name(s: "Session", organization_id: int, name: str, *, exclude_id: int | None = None) -> None:
    q = s.query(Department).filter(Department.organization_id == organization_id, Department.name == name)
    if exclude_id is not None:
        q = q.filter(Department.id != exclude_id)
    if q.first():
        raise ServiceError("A department with this name already exists")


def _resolve_head(s: "Session", actor: User, raw) -> int | None:
    head_id = parse_int(raw)
    if head_id is None:
        return None
    return get_in_org(s, User, head_id, actor, label="User").id


def create_department(s: "Session", actor: User, payload: dict) -> Department:
    errors = validate_department_payload(payload)
    if errors:
        raise ServiceError(" ".join(errors))
    name = clean_str(payload.get("name")) or ""
    _ensure_unique_name(s, actor.organization_id, name)
    head_user_id = _resolve_head(s, actor, payload.get("headUserId"))
    now = datetime.utcnow()
    department = Department(
        organization_id=actor.organization_id,
        name=name,
        description=clean_str(payload.get("description")),
        head_user_id=head_user_id,
        created_at=now,
        updated_at=now,
    )
    s.add(department)
    s.flush()
    return department


def list_departments(s: "Session", actor: User) -> list[Department]:
    return (
        s.query(Department)
        .filter(Department.organization_id == actor.organization_id)
        .order_by(Department.name.asc())
        .all()
    )


def update_department(s: "Session", actor: User, department: Department, payload: dict) -> Department:
    new_name = clean_str(payload.get("name"))
    if new_name and new_name != department.name:
        _ensure_unique_name(s, actor.organization_id, new_name, exclude_id=department.id)
        department.name = new_name
    if "description" in payload:
        department.description = clean_str(payload.get("description"))
    if "headUserId" in payload:
        department.head_user_id = _resolve_head(s, actor, payload.get("headUserId"))
    department.updated_at = datetime.utcnow()
    return department


def delete_department(s: "Session", department: Department) -> None:
    from app.cms.modules.complaints.models import Complaint

    open_count = (
        s.query(Complaint)
        .filter(Complaint.department_id == department.id)
        .filter(Complaint.status.notin_((STATUS_RESOLVED, STATUS_CLOSED, STATUS_REJECTED)))
        .count()
    )
    if open_count:
        raise ServiceError(f"Cannot delete department with {open_count} active complaint(s)")
    for u in s.query(User).filter(User.department_id == department.id).all():
        u.department_id = None
    s.delete(department)


def _release_head(s: "Session", user: User, *, keep_id: int | None = None) -> None:
    """Clear head assignments held by the user, except on department `keep_id`."""
    q = s.query(Department).filter(Department.head_user_id == user.id)
    if keep_id is not None:
        q = q.filter(Department.id != keep_id)
    for d in q.all():
        d.head_user_id = None


def assign_users(s: "Session", actor: User, department: Department, user_ids: list) -> list[User]:
    if not isinstance(user_ids, list) or not user_ids:
        raise ServiceError("userIds must be a non-empty list")
    users = []
    for raw in user_ids:
        user_id = parse_int(raw)
        user = s.get(User, user_id) if user_id is not None else None
        if user is None or user.organization_id != actor.organization_id:
            raise NotFoundError(f"User {raw} not found")
        _release_head(s, user, keep_id=department.id)
        user.department_id = department.id
        users.append(user)
    department.updated_at = datetime.utcnow()
    return users


def remove_user(s: "Session", actor: User, department: Department, user_id: int) -> User:
    user = get_in_org(s, User, user_id, actor, label="User")
    if user.department_id != department.id:
        raise ServiceError("User is not a member of this department")
    user.department_id = None
    if department.head_user_id == user.id:
        department.head_user_id = None
    return user
