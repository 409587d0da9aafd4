from __future__ import annotations

from flask import Blueprint, request

from app.cms.constants import ADMIN_ROLES, PRIORITIES
from app.cms.db import db_session
from app.cms.errors import ServiceError, get_in_org
from app.cms.modules.complaint_types.models import ComplaintType
from app.cms.modules.departments.models import Department
from app.cms.rbac import current_user, require_auth, require_role
from app.cms.utils import clean_str, parse_int

# Mounted at /api/complaints/types, ahead of the complaints blueprint.
bp = Blueprint("complaint_types", __name__)


def _apply(s, ct: ComplaintType, data: dict) -> None:
    if "name" in data:
        name = clean_str(data.get("name"))
        if not name:
            raise ServiceError("Complaint type name is required")
        q = s.query(ComplaintType).filter(
            ComplaintType.organization_id == ct.organization_id, ComplaintType.name == name
        )
        if ct.id is not None:
            q = q.filter(ComplaintType.id != ct.id)
        if q.first():
            raise ServiceError("A complaint type with this name already exists")
        ct.name = name
    if "description" in data:
        ct.description = clean_str(data.get("description"))
    if "departmentId" in data:
        department_id = parse_int(data.get("departmentId"))
        if department_id is not None:
            get_in_org(s, Department, department_id, current_user(), label="Department")
        ct.department_id = department_id
    if "defaultPriority" in data:
        priority = clean_str(data.get("defaultPriority")) or "Medium"
        if priority not in PRIORITIES:
            raise ServiceError(f"Invalid priority. Must be one of: {', '.join(PRIORITIES)}")
        ct.default_priority = priority
    if "isActive" in data:
        ct.is_active = bool(data.get("isActive"))


@bp.post("")
@require_role(*ADMIN_ROLES)
def complaint_types_create():
    s = db_session()
    data = request.get_json(silent=True) or {}
    if not clean_str(data.get("name")):
        return {"msg": "Complaint type name is required"}, 400
    ct = ComplaintType(organization_id=current_user().organization_id)
    _apply(s, ct, data)
    s.add(ct)
    s.commit()
    return ct.to_dict(), 201


@bp.get("")
@require_auth
def complaint_types_list():
    rows = (
        db_session()
        .query(ComplaintType)
        .filter(ComplaintType.organization_id == current_user().organization_id)
        .order_by(ComplaintType.name.asc())
        .all()
    )
    return {"complaintTypes": [ct.to_dict() for ct in rows]}


@bp.put("/<int:type_id>")
@require_role(*ADMIN_ROLES)
def complaint_type_update(type_id: int):
    s = db_session()
    ct = get_in_org(s, ComplaintType, type_id, current_user(), label="Complaint type")
    _apply(s, ct, request.get_json(silent=True) or {})
    s.commit()
    return ct.to_dict()


@bp.delete("/<int:type_id>")
@require_role(*ADMIN_ROLES)
def complaint_type_delete(type_id: int):
    s = db_session()
    ct = get_in_org(s, ComplaintType, type_id, current_user(), label="Complaint type")
    s.delete(ct)
    s.commit()
    return {"msg": "Complaint type deleted successfully"}
