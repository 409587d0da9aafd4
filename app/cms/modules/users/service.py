from __future__ import annotations

from typing import TYPE_CHECKING

from werkzeug.security import generate_password_hash

from app.cms.constants import ROLE_ADMIN, ROLE_AGENT, ROLE_SUPERADMIN, ROLE_USER, ROLES
from app.cms.errors import ForbiddenError, NotFoundError, ServiceError
from app.cms.models import User
from app.cms.utils import clean_str, parse_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def validate_user_payload(payload: dict) -> list[str]:
    errors = []
    if not clean_str(payload.get("email")):
        errors.append("Email is required.")
    if not payload.get("password"):
        errors.append("Password is required.")
    role = clean_str(payload.get("role"))
    if role and role not in ROLES:
        errors.append(f"Invalid role. Must be one of: {', '.join(sorted(ROLES))}")
    return errors


def create_user(s: "Session", *, organization_id: int, payload: dict, role: str) -> User:
    """Create a user in the organization. Caller commits."""
    errors = validate_user_payload(payload)
    if errors:
        raise ServiceError(" ".join(errors))
    email = (clean_str(payload.get("email")) or "").lower()
    if s.query(User).filter(User.email == email).one_or_none():
        raise ServiceError("User already exists")
    user = User(
        organization_id=organization_id,
        email=email,
        password_hash=generate_password_hash(payload["password"]),
        first_name=clean_str(payload.get("firstName")) or "",
        last_name=clean_str(payload.get("lastName")) or "",
        phone=clean_str(payload.get("phone")),
        role=role,
        is_active=True,
    )
    s.add(user)
    s.flush()
    return user


def add_user(s: "Session", actor: User, payload: dict) -> User:
    """Admin-driven user creation inside the actor's organization."""
    role = clean_str(payload.get("role")) or ROLE_USER
    if role == ROLE_SUPERADMIN:
        raise ForbiddenError("A SuperAdmin cannot be created here")
    if role == ROLE_ADMIN and actor.role != ROLE_SUPERADMIN:
        raise ForbiddenError("Only a SuperAdmin can add admins")
    user = create_user(s, organization_id=actor.organization_id, payload=payload, role=role)

    department_id = parse_int(payload.get("departmentId"))
    if department_id is not None:
        from app.cms.errors import get_in_org
        from app.cms.modules.departments.models import Department

        department = get_in_org(s, Department, department_id, actor, label="Department")
        user.department_id = department.id
    return user


def list_users(s: "Session", actor: User) -> list[User]:
    return (
        s.query(User)
        .filter(User.organization_id == actor.organization_id)
        .order_by(User.last_name.asc(), User.first_name.asc(), User.id.asc())
        .all()
    )


def delete_user(s: "Session", actor: User, user_id: int) -> None:
    user = s.get(User, user_id)
    if user is None or user.organization_id != actor.organization_id:
        raise NotFoundError("User not found")
    if user.id == actor.id:
        raise ServiceError("You cannot delete your own account")
    if user.role == ROLE_SUPERADMIN:
        raise ForbiddenError("A SuperAdmin cannot be deleted")
    from app.cms.modules.departments.models import Department

    for d in s.query(Department).filter(Department.head_user_id == user.id).all():
        d.head_user_id = None
    s.delete(user)


def department_eligible_users(s: "Session", actor: User) -> list[User]:
    """Staff members not yet attached to a department."""
    return (
        s.query(User)
        .filter(User.organization_id == actor.organization_id)
        .filter(User.role.in_((ROLE_ADMIN, ROLE_AGENT)))
        .filter(User.department_id.is_(None))
        .filter(User.is_active.is_(True))
        .order_by(User.last_name.asc(), User.first_name.asc())
        .all()
    )
