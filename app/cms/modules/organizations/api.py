from __future__ import annotations

from flask import Blueprint, current_app, request
from sqlalchemy import func

from app.cms.db import db_session
from app.cms.models import Organization
from app.cms.utils import clean_str

bp = Blueprint("organizations", __name__)


def _name_taken(s, name: str) -> bool:
    return (
        s.query(Organization.id)
        .filter(func.lower(Organization.name) == name.lower())
        .first()
        is not None
    )


@bp.get("")
def organizations_list():
    s = db_session()
    rows = s.query(Organization).order_by(Organization.name.asc()).all()
    return {"organizations": [o.to_dict() for o in rows]}


@bp.post("/register")
def organizations_register():
    data = request.get_json(silent=True) or {}
    name = clean_str(data.get("name"))
    if not name:
        return {"msg": "Organization name is required"}, 400

    s = db_session()
    if _name_taken(s, name):
        return {"msg": "Organization name already exists"}, 400

    org = Organization(
        name=name,
        email=clean_str(data.get("email")),
        phone=clean_str(data.get("phone")),
        address=clean_str(data.get("address")),
    )
    s.add(org)
    s.commit()
    current_app.logger.info("Organization registered (id=%s name=%s)", org.id, org.name)
    return {"msg": "Organization registered successfully", "organizationId": org.id, "organization": org.to_dict()}, 201


@bp.get("/<int:organization_id>")
def organization_detail(organization_id: int):
    org = db_session().get(Organization, organization_id)
    if not org:
        return {"msg": "Organization not found"}, 404
    return org.to_dict()


@bp.get("/check-name/<path:name>")
def organization_check_name(name: str):
    name = (name or "").strip()
    if not name:
        return {"msg": "Name is required"}, 400
    return {"name": name, "available": not _name_taken(db_session(), name)}
