from __future__ import annotations

from flask import Blueprint, request

from app.cms.constants import ADMIN_ROLES, STAFF_ROLES
from app.cms.db import db_session
from app.cms.errors import get_in_org
from app.cms.modules.complaints.service import get_visible_complaint
from app.cms.modules.workflows import service
from app.cms.modules.workflows.models import Workflow, WorkflowTemplate
from app.cms.rbac import current_user, require_auth, require_role
from app.cms.utils import clean_str, parse_int

bp = Blueprint("workflows", __name__)


def _workflow(s, workflow_id: int) -> Workflow:
    return get_in_org(s, Workflow, workflow_id, current_user(), label="Workflow")


# ---------- Workflows ----------
@bp.post("")
@require_role(*ADMIN_ROLES)
def workflows_create():
    s = db_session()
    wf = service.create_workflow(s, current_user(), request.get_json(silent=True) or {})
    s.commit()
    return wf.to_dict(), 201


@bp.get("")
@require_role(*STAFF_ROLES)
def workflows_list():
    return {"workflows": [wf.to_dict() for wf in service.list_workflows(db_session(), current_user())]}


@bp.get("/<int:workflow_id>")
@require_role(*STAFF_ROLES)
def workflow_detail(workflow_id: int):
    return _workflow(db_session(), workflow_id).to_dict()


@bp.put("/<int:workflow_id>")
@require_role(*ADMIN_ROLES)
def workflow_update(workflow_id: int):
    s = db_session()
    wf = service.update_workflow(s, current_user(), _workflow(s, workflow_id), request.get_json(silent=True) or {})
    s.commit()
    return wf.to_dict()


@bp.delete("/<int:workflow_id>")
@require_role(*ADMIN_ROLES)
def workflow_delete(workflow_id: int):
    s = db_session()
    service.delete_workflow(s, _workflow(s, workflow_id))
    s.commit()
    return {"msg": "Workflow deleted successfully"}


@bp.get("/department/<int:department_id>")
@require_role(*STAFF_ROLES)
def workflows_by_department(department_id: int):
    rows = service.list_workflows(db_session(), current_user(), department_id=department_id)
    return {"workflows": [wf.to_dict() for wf in rows]}


@bp.get("/complaint-type/<int:complaint_type_id>")
@require_role(*STAFF_ROLES)
def workflows_by_complaint_type(complaint_type_id: int):
    rows = service.list_workflows(db_session(), current_user(), complaint_type_id=complaint_type_id)
    return {"workflows": [wf.to_dict() for wf in rows]}


# ---------- Complaint lifecycle ----------
@bp.get("/complaint/<int:complaint_id>")
@require_auth
def workflow_for_complaint(complaint_id: int):
    s = db_session()
    get_visible_complaint(s, current_user(), complaint_id)
    cw = service.complaint_workflow(s, complaint_id)
    if cw is None:
        return {"msg": "No workflow assigned to this complaint"}, 404
    return cw.to_dict()


@bp.put("/complaint/<int:complaint_id>/stage")
@require_role(*STAFF_ROLES)
def workflow_stage_update(complaint_id: int):
    s = db_session()
    user = current_user()
    get_visible_complaint(s, user, complaint_id)
    cw = service.complaint_workflow(s, complaint_id)
    if cw is None:
        return {"msg": "No workflow assigned to this complaint"}, 404
    data = request.get_json(silent=True) or {}
    service.update_stage(
        s,
        user,
        cw,
        stage_index=parse_int(data.get("stageIndex")),
        note=clean_str(data.get("note")),
    )
    s.commit()
    return cw.to_dict()


# ---------- Templates ----------
@bp.get("/templates")
@require_role(*STAFF_ROLES)
def templates_list():
    rows = db_session().query(WorkflowTemplate).order_by(WorkflowTemplate.category, WorkflowTemplate.name).all()
    return {"templates": [t.to_dict() for t in rows]}


@bp.get("/templates/category/<category>")
@require_role(*STAFF_ROLES)
def templates_by_category(category: str):
    rows = (
        db_session()
        .query(WorkflowTemplate)
        .filter(WorkflowTemplate.category == category)
        .order_by(WorkflowTemplate.name)
        .all()
    )
    return {"templates": [t.to_dict() for t in rows]}


@bp.get("/templates/<int:template_id>")
@require_role(*STAFF_ROLES)
def template_detail(template_id: int):
    return service.get_template(db_session(), template_id).to_dict()


@bp.post("/from-template")
@require_role(*ADMIN_ROLES)
def workflow_from_template():
    s = db_session()
    wf = service.create_from_template(s, current_user(), request.get_json(silent=True) or {})
    s.commit()
    return wf.to_dict(), 201


@bp.post("/import-templates")
@require_role(*ADMIN_ROLES)
def templates_import():
    s = db_session()
    data = request.get_json(silent=True) or {}
    counts = service.import_templates(s, data.get("templates"))
    s.commit()
    return {"msg": "Templates imported", **counts}
