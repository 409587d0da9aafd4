from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from flask import current_app
from sqlalchemy import or_

from app.cms.constants import (
    ADMIN_ROLES,
    COMPLAINT_STATUSES,
    PRIORITIES,
    ROLE_AGENT,
    ROLE_USER,
    STAFF_ROLES,
    STATUS_CLOSED,
    STATUS_ESCALATED,
    STATUS_IN_PROGRESS,
    STATUS_OPEN,
    STATUS_RESOLVED,
)
from app.cms.errors import ForbiddenError, NotFoundError, ServiceError, get_in_org
from app.cms.models import User
from app.cms.modules.complaint_types.models import ComplaintType
from app.cms.modules.complaints.models import Complaint, ComplaintComment
from app.cms.modules.departments.models import Department
from app.cms.modules.notifications.service import notify_users
from app.cms.modules.workflows.service import attach_matching_workflow
from app.cms.storage import build_upload_key, storage_from_config
from app.cms.utils import clean_str, parse_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from werkzeug.datastructures import FileStorage


def validate_complaint_payload(payload: dict) -> list[str]:
    errors = []
    if not clean_str(payload.get("title")):
        errors.append("Title is required.")
    if not clean_str(payload.get("description")):
        errors.append("Description is required.")
    priority = clean_str(payload.get("priority"))
    if priority and priority not in PRIORITIES:
        errors.append(f"Invalid priority. Must be one of: {', '.join(PRIORITIES)}")
    return errors


def can_view(user: User, complaint: Complaint) -> bool:
    if complaint.organization_id != user.organization_id:
        return False
    if user.role in ADMIN_ROLES:
        return True
    if complaint.created_by_user_id == user.id:
        return True
    if user.role == ROLE_AGENT:
        return complaint.assigned_to_user_id == user.id or (
            user.department_id is not None and complaint.department_id == user.department_id
        )
    return False


def get_visible_complaint(s: "Session", user: User, complaint_id: int) -> Complaint:
    complaint = s.get(Complaint, complaint_id)
    if complaint is None or complaint.organization_id != user.organization_id:
        raise NotFoundError("Complaint not found")
    if not can_view(user, complaint):
        raise ForbiddenError("You do not have access to this complaint")
    return complaint


def _org_admins(s: "Session", organization_id: int) -> list[User]:
    return (
        s.query(User)
        .filter(User.organization_id == organization_id, User.role.in_(tuple(ADMIN_ROLES)), User.is_active.is_(True))
        .all()
    )


def _department_staff(department: Department | None) -> list[User]:
    if department is None:
        return []
    return [u for u in department.members if u.role in STAFF_ROLES and u.is_active]


def _save_attachment(complaint: Complaint, upload: "FileStorage") -> None:
    data = upload.read()
    if not data:
        return
    key = build_upload_key(f"complaints/{complaint.organization_id}", upload.filename or "attachment.bin")
    storage = storage_from_config(current_app.config)
    storage.put_bytes(key, data, content_type=upload.mimetype)
    complaint.attachment_key = key
    complaint.attachment_filename = upload.filename


def create_complaint(s: "Session", user: User, payload: dict, upload: "FileStorage | None" = None) -> Complaint:
    errors = validate_complaint_payload(payload)
    if errors:
        raise ServiceError(" ".join(errors))

    complaint_type = None
    type_id = parse_int(payload.get("complaintTypeId") or payload.get("complaintType"))
    if type_id is not None:
        complaint_type = get_in_org(s, ComplaintType, type_id, user, label="Complaint type")

    department = None
    department_id = parse_int(payload.get("departmentId") or payload.get("department"))
    if department_id is None and complaint_type is not None:
        department_id = complaint_type.department_id
    if department_id is not None:
        department = get_in_org(s, Department, department_id, user, label="Department")

    priority = clean_str(payload.get("priority")) or (complaint_type.default_priority if complaint_type else "Medium")
    now = datetime.utcnow()
    complaint = Complaint(
        organization_id=user.organization_id,
        complaint_type_id=complaint_type.id if complaint_type else None,
        department_id=department.id if department else None,
        title=clean_str(payload.get("title")) or "",
        description=clean_str(payload.get("description")) or "",
        status=STATUS_OPEN,
        priority=priority,
        location=clean_str(payload.get("location") or payload.get("address")),
        created_by_user_id=user.id,
        created_at=now,
        updated_at=now,
    )
    s.add(complaint)
    s.flush()

    if upload is not None and upload.filename:
        _save_attachment(complaint, upload)

    cw = attach_matching_workflow(s, complaint)
    if cw is not None:
        current_app.logger.info("Complaint %s attached to workflow %s", complaint.id, cw.workflow_id)

    recipients = _department_staff(department) or _org_admins(s, user.organization_id)
    notify_users(
        s,
        recipients,
        kind="complaint.created",
        title=f"New complaint #{complaint.id}: {complaint.title}",
        message=complaint.description[:200],
        complaint_id=complaint.id,
        exclude=user,
    )
    return complaint


def list_complaints(s: "Session", user: User, filters: dict[str, Any], *, page: int, limit: int) -> tuple[list[Complaint], int]:
    q = s.query(Complaint).filter(Complaint.organization_id == user.organization_id)

    if user.role == ROLE_USER:
        q = q.filter(Complaint.created_by_user_id == user.id)
    elif user.role == ROLE_AGENT:
        visible = [Complaint.assigned_to_user_id == user.id, Complaint.created_by_user_id == user.id]
        if user.department_id is not None:
            visible.append(Complaint.department_id == user.department_id)
        q = q.filter(or_(*visible))

    status = clean_str(filters.get("status"))
    if status:
        q = q.filter(Complaint.status == status)
    priority = clean_str(filters.get("priority"))
    if priority:
        q = q.filter(Complaint.priority == priority)
    department_id = parse_int(filters.get("department"))
    if department_id is not None:
        q = q.filter(Complaint.department_id == department_id)
    type_id = parse_int(filters.get("complaintType"))
    if type_id is not None:
        q = q.filter(Complaint.complaint_type_id == type_id)
    search = clean_str(filters.get("q"))
    if search:
        like = f"%{search}%"
        q = q.filter(Complaint.title.ilike(like) | Complaint.description.ilike(like))

    total = q.count()
    rows = q.order_by(Complaint.created_at.desc(), Complaint.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return rows, total


def _add_comment(s: "Session", user: User, complaint: Complaint, text: str, *, internal: bool = False) -> ComplaintComment:
    comment = ComplaintComment(complaint_id=complaint.id, user_id=user.id, text=text, is_internal=internal)
    s.add(comment)
    return comment


def update_status(s: "Session", user: User, complaint: Complaint, payload: dict) -> Complaint:
    if user.role not in STAFF_ROLES:
        raise ForbiddenError("Only staff can change complaint status")
    status = clean_str(payload.get("status"))
    if status not in COMPLAINT_STATUSES:
        raise ServiceError(f"Invalid status. Must be one of: {', '.join(COMPLAINT_STATUSES)}")

    old = complaint.status
    now = datetime.utcnow()
    complaint.status = status
    complaint.updated_at = now
    if status in (STATUS_RESOLVED, STATUS_CLOSED):
        complaint.resolved_at = complaint.resolved_at or now
    else:
        complaint.resolved_at = None

    note = clean_str(payload.get("note") or payload.get("comment"))
    _add_comment(s, user, complaint, f"Status changed from {old} to {status}" + (f": {note}" if note else ""))
    notify_users(
        s,
        [complaint.creator, complaint.assignee],
        kind="complaint.status",
        title=f"Complaint #{complaint.id} is now {status}",
        message=note or "",
        complaint_id=complaint.id,
        exclude=user,
    )
    return complaint


def list_comments(user: User, complaint: Complaint) -> list[ComplaintComment]:
    if user.role in STAFF_ROLES:
        return list(complaint.comments)
    return [c for c in complaint.comments if not c.is_internal]


def add_comment(s: "Session", user: User, complaint: Complaint, payload: dict) -> ComplaintComment:
    text = clean_str(payload.get("text") or payload.get("comment"))
    if not text:
        raise ServiceError("Comment text is required")
    internal = bool(payload.get("isInternal")) and user.role in STAFF_ROLES
    comment = _add_comment(s, user, complaint, text, internal=internal)
    complaint.updated_at = datetime.utcnow()
    if not internal:
        notify_users(
            s,
            [complaint.creator, complaint.assignee],
            kind="complaint.comment",
            title=f"New comment on complaint #{complaint.id}",
            message=text[:200],
            complaint_id=complaint.id,
            exclude=user,
        )
    s.flush()
    return comment


def escalate(s: "Session", user: User, complaint: Complaint, payload: dict) -> Complaint:
    reason = clean_str(payload.get("reason"))
    if not reason:
        raise ServiceError("An escalation reason is required")
    if complaint.status in (STATUS_RESOLVED, STATUS_CLOSED):
        raise ServiceError("Resolved or closed complaints cannot be escalated")
    complaint.escalation_level += 1
    complaint.escalation_reason = reason
    complaint.status = STATUS_ESCALATED
    complaint.updated_at = datetime.utcnow()
    _add_comment(s, user, complaint, f"Escalated (level {complaint.escalation_level}): {reason}")
    notify_users(
        s,
        _org_admins(s, complaint.organization_id) + [complaint.assignee],
        kind="complaint.escalated",
        title=f"Complaint #{complaint.id} escalated",
        message=reason,
        complaint_id=complaint.id,
        exclude=user,
    )
    return complaint


def assign(s: "Session", user: User, complaint: Complaint, payload: dict) -> Complaint:
    if user.role not in ADMIN_ROLES:
        raise ForbiddenError("Only admins can assign complaints")
    assignee_id = parse_int(payload.get("assignedTo") or payload.get("userId"))
    if assignee_id is None:
        raise ServiceError("assignedTo is required")
    assignee = get_in_org(s, User, assignee_id, user, label="User")
    if assignee.role not in STAFF_ROLES or not assignee.is_active:
        raise ServiceError("Complaints can only be assigned to active staff")

    complaint.assigned_to_user_id = assignee.id
    complaint.assignee = assignee
    department_id = parse_int(payload.get("departmentId"))
    if department_id is not None:
        complaint.department_id = get_in_org(s, Department, department_id, user, label="Department").id
    if complaint.status == STATUS_OPEN:
        complaint.status = STATUS_IN_PROGRESS
    complaint.updated_at = datetime.utcnow()
    notify_users(
        s,
        [assignee, complaint.creator],
        kind="complaint.assigned",
        title=f"Complaint #{complaint.id} assigned to {assignee.full_name or assignee.email}",
        message=complaint.title,
        complaint_id=complaint.id,
        exclude=user,
    )
    return complaint
