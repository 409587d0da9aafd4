from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import func

from app.cms.constants import FEEDBACK_ELIGIBLE_STATUSES
from app.cms.errors import ServiceError
from app.cms.modules.complaints.service import get_visible_complaint
from app.cms.modules.feedback.models import Feedback
from app.cms.modules.notifications.service import notify_users
from app.cms.utils import clean_str, parse_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.cms.models import User
    from app.cms.modules.complaints.models import Complaint


def feedback_for_complaint(s: "Session", complaint_id: int) -> Feedback | None:
    return s.query(Feedback).filter(Feedback.complaint_id == complaint_id).one_or_none()


def eligibility(s: "Session", user: "User", complaint: "Complaint") -> tuple[bool, str | None]:
    """Whether `user` may rate `complaint`, and why not."""
    if complaint.created_by_user_id != user.id:
        return False, "Only the person who raised the complaint can give feedback"
    if complaint.status not in FEEDBACK_ELIGIBLE_STATUSES:
        return False, "Feedback can be given once the complaint is resolved"
    if feedback_for_complaint(s, complaint.id) is not None:
        return False, "Feedback has already been submitted"
    return True, None


def submit_feedback(s: "Session", user: "User", payload: dict) -> Feedback:
    complaint_id = parse_int(payload.get("complaintId"))
    if complaint_id is None:
        raise ServiceError("complaintId is required")
    rating = parse_int(payload.get("rating"))
    if rating is None or not 1 <= rating <= 5:
        raise ServiceError("Rating must be an integer between 1 and 5")

    complaint = get_visible_complaint(s, user, complaint_id)
    allowed, reason = eligibility(s, user, complaint)
    if not allowed:
        raise ServiceError(reason or "Feedback not allowed")

    fb = Feedback(
        organization_id=complaint.organization_id,
        complaint_id=complaint.id,
        user_id=user.id,
        department_id=complaint.department_id,
        rating=rating,
        comment=clean_str(payload.get("comment")),
    )
    s.add(fb)
    s.flush()
    notify_users(
        s,
        [complaint.assignee],
        kind="feedback.received",
        title=f"Feedback received for complaint #{complaint.id}",
        message=f"Rating: {rating}/5",
        complaint_id=complaint.id,
        exclude=user,
    )
    return fb


def list_feedback(
    s: "Session",
    organization_id: int,
    *,
    page: int,
    limit: int,
    rating: int | None = None,
    department_id: int | None = None,
) -> tuple[list[Feedback], int]:
    q = s.query(Feedback).filter(Feedback.organization_id == organization_id)
    if rating is not None:
        q = q.filter(Feedback.rating == rating)
    if department_id is not None:
        q = q.filter(Feedback.department_id == department_id)
    total = q.count()
    rows = q.order_by(Feedback.created_at.desc(), Feedback.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return rows, total


def feedback_stats(s: "Session", organization_id: int, *, department_id: int | None = None) -> dict[str, Any]:
    q = s.query(Feedback.rating, func.count(Feedback.id)).filter(Feedback.organization_id == organization_id)
    if department_id is not None:
        q = q.filter(Feedback.department_id == department_id)
    distribution = {str(r): 0 for r in range(1, 6)}
    total = 0
    weighted = 0
    for rating, count in q.group_by(Feedback.rating).all():
        distribution[str(rating)] = count
        total += count
        weighted += rating * count
    return {
        "departmentId": department_id,
        "totalFeedback": total,
        "averageRating": round(weighted / total, 2) if total else 0,
        "ratingDistribution": distribution,
    }
