from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from app.cms.constants import STATUS_IN_PROGRESS, STATUS_OPEN, STATUS_RESOLVED
from app.cms.errors import NotFoundError, ServiceError, get_in_org
from app.cms.modules.complaint_types.models import ComplaintType
from app.cms.modules.departments.models import Department
from app.cms.modules.notifications.service import notify_users
from app.cms.modules.workflows.models import ComplaintWorkflow, Workflow, WorkflowTemplate
from app.cms.modules.workflows.templates import DEFAULT_TEMPLATES
from app.cms.utils import clean_str, dump_json, parse_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.cms.models import User
    from app.cms.modules.complaints.models import Complaint


def normalize_stages(raw) -> list[dict]:
    """Validate a stage list; every stage needs a name."""
    if not isinstance(raw, list) or not raw:
        raise ServiceError("A workflow needs at least one stage")
    out = []
    for i, stage in enumerate(raw):
        if isinstance(stage, str):
            stage = {"name": stage}
        if not isinstance(stage, dict) or not clean_str(stage.get("name")):
            raise ServiceError(f"Stage {i + 1} needs a name")
        out.append(
            {
                "name": clean_str(stage.get("name")),
                "description": clean_str(stage.get("description")),
                "assigneeRole": clean_str(stage.get("assigneeRole")),
                "slaHours": parse_int(stage.get("slaHours")),
            }
        )
    return out


def _apply_scope(s: "Session", actor: "User", wf: Workflow, payload: dict) -> None:
    if "departmentId" in payload:
        department_id = parse_int(payload.get("departmentId"))
        if department_id is not None:
            get_in_org(s, Department, department_id, actor, label="Department")
        wf.department_id = department_id
    if "complaintTypeId" in payload:
        type_id = parse_int(payload.get("complaintTypeId"))
        if type_id is not None:
            get_in_org(s, ComplaintType, type_id, actor, label="Complaint type")
        wf.complaint_type_id = type_id


def create_workflow(s: "Session", actor: "User", payload: dict) -> Workflow:
    name = clean_str(payload.get("name"))
    if not name:
        raise ServiceError("Workflow name is required")
    now = datetime.utcnow()
    wf = Workflow(
        organization_id=actor.organization_id,
        name=name,
        description=clean_str(payload.get("description")),
        stages_json=dump_json(normalize_stages(payload.get("stages"))),
        is_active=bool(payload.get("isActive", True)),
        template_id=parse_int(payload.get("templateId")),
        created_by_user_id=actor.id,
        created_at=now,
        updated_at=now,
    )
    _apply_scope(s, actor, wf, payload)
    s.add(wf)
    s.flush()
    return wf


def update_workflow(s: "Session", actor: "User", wf: Workflow, payload: dict) -> Workflow:
    if "name" in payload:
        name = clean_str(payload.get("name"))
        if not name:
            raise ServiceError("Workflow name is required")
        wf.name = name
    if "description" in payload:
        wf.description = clean_str(payload.get("description"))
    if "stages" in payload:
        stages = normalize_stages(payload.get("stages"))
        in_use = (
            s.query(ComplaintWorkflow)
            .filter(ComplaintWorkflow.workflow_id == wf.id)
            .filter(ComplaintWorkflow.current_stage >= len(stages))
            .count()
        )
        if in_use:
            raise ServiceError("Complaints are past the last stage of the new stage list")
        wf.stages_json = dump_json(stages)
    if "isActive" in payload:
        wf.is_active = bool(payload.get("isActive"))
    _apply_scope(s, actor, wf, payload)
    wf.updated_at = datetime.utcnow()
    return wf


def delete_workflow(s: "Session", wf: Workflow) -> None:
    s.query(ComplaintWorkflow).filter(ComplaintWorkflow.workflow_id == wf.id).delete(synchronize_session=False)
    s.delete(wf)


def list_workflows(s: "Session", actor: "User", *, department_id: int | None = None, complaint_type_id: int | None = None) -> list[Workflow]:
    q = s.query(Workflow).filter(Workflow.organization_id == actor.organization_id)
    if department_id is not None:
        q = q.filter(Workflow.department_id == department_id)
    if complaint_type_id is not None:
        q = q.filter(Workflow.complaint_type_id == complaint_type_id)
    return q.order_by(Workflow.name.asc(), Workflow.id.asc()).all()


def find_workflow_for(s: "Session", complaint: "Complaint") -> Workflow | None:
    """First active workflow for the complaint type, else a type-less one for the department."""
    base = s.query(Workflow).filter(
        Workflow.organization_id == complaint.organization_id,
        Workflow.is_active.is_(True),
    )
    if complaint.complaint_type_id is not None:
        wf = base.filter(Workflow.complaint_type_id == complaint.complaint_type_id).order_by(Workflow.id).first()
        if wf:
            return wf
    if complaint.department_id is not None:
        return (
            base.filter(Workflow.department_id == complaint.department_id)
            .filter(Workflow.complaint_type_id.is_(None))
            .order_by(Workflow.id)
            .first()
        )
    return None


def attach_matching_workflow(s: "Session", complaint: "Complaint") -> ComplaintWorkflow | None:
    wf = find_workflow_for(s, complaint)
    if wf is None:
        return None
    now = datetime.utcnow()
    first = wf.stages[0]["name"] if wf.stages else None
    cw = ComplaintWorkflow(
        complaint_id=complaint.id,
        workflow_id=wf.id,
        current_stage=0,
        history_json=dump_json([{"from": None, "to": 0, "stageName": first, "by": None, "note": "Workflow attached", "at": now.isoformat()}]),
        started_at=now,
        updated_at=now,
    )
    s.add(cw)
    return cw


def complaint_workflow(s: "Session", complaint_id: int) -> ComplaintWorkflow | None:
    return s.query(ComplaintWorkflow).filter(ComplaintWorkflow.complaint_id == complaint_id).one_or_none()


def update_stage(
    s: "Session",
    actor: "User",
    cw: ComplaintWorkflow,
    *,
    stage_index: int | None = None,
    note: str | None = None,
) -> ComplaintWorkflow:
    """
    Move a complaint to another stage of its workflow (default: the next one).

    Leaving the first stage puts an open complaint In Progress; reaching the
    final stage resolves it.
    """
    stages = cw.workflow.stages
    target = cw.current_stage + 1 if stage_index is None else stage_index
    if target < 0 or target >= len(stages):
        raise ServiceError(f"Stage index must be between 0 and {len(stages) - 1}")
    if target == cw.current_stage:
        raise ServiceError("Complaint is already at this stage")

    now = datetime.utcnow()
    history = cw.history
    history.append(
        {
            "from": cw.current_stage,
            "to": target,
            "stageName": stages[target]["name"],
            "by": actor.id,
            "note": note,
            "at": now.isoformat(),
        }
    )
    cw.history_json = dump_json(history)
    cw.current_stage = target
    cw.updated_at = now

    complaint = cw.complaint
    final = target == len(stages) - 1
    if final:
        cw.completed_at = now
        complaint.status = STATUS_RESOLVED
        complaint.resolved_at = now
    else:
        cw.completed_at = None
        if complaint.status in (STATUS_OPEN, STATUS_RESOLVED):
            complaint.status = STATUS_IN_PROGRESS
            complaint.resolved_at = None
    complaint.updated_at = now

    notify_users(
        s,
        [complaint.creator, complaint.assignee],
        kind="workflow.stage",
        title=f"Complaint #{complaint.id} moved to {stages[target]['name']}",
        message=note or "",
        complaint_id=complaint.id,
        exclude=actor,
    )
    return cw


# ---------- Templates ----------
def import_templates(s: "Session", templates: list[dict] | None = None) -> dict[str, int]:
    """Insert templates by name; existing names are left untouched."""
    if templates is None:
        templates = DEFAULT_TEMPLATES
    elif not isinstance(templates, list):
        raise ServiceError("templates must be a list")
    created = skipped = 0
    seen: set[str] = set()
    for t in templates:
        name = clean_str(t.get("name")) if isinstance(t, dict) else None
        if not name:
            raise ServiceError("Every template needs a name")
        if name in seen or s.query(WorkflowTemplate).filter(WorkflowTemplate.name == name).one_or_none():
            skipped += 1
            continue
        seen.add(name)
        s.add(
            WorkflowTemplate(
                name=name,
                category=clean_str(t.get("category")) or "General",
                description=clean_str(t.get("description")),
                stages_json=dump_json(normalize_stages(t.get("stages"))),
            )
        )
        created += 1
    s.flush()
    return {"created": created, "skipped": skipped}


def get_template(s: "Session", template_id: int) -> WorkflowTemplate:
    t = s.get(WorkflowTemplate, template_id)
    if t is None:
        raise NotFoundError("Workflow template not found")
    return t


def create_from_template(s: "Session", actor: "User", payload: dict) -> Workflow:
    template = get_template(s, parse_int(payload.get("templateId"), 0) or 0)
    merged = {
        "name": template.name,
        "description": template.description,
        "stages": template.stages,
        "templateId": template.id,
    }
    merged.update({k: v for k, v in payload.items() if k != "templateId"})
    return create_workflow(s, actor, merged)
