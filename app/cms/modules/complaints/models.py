from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.cms.constants import STATUS_OPEN, UPLOADS_PREFIX
from app.cms.models import Base
from app.cms.utils import iso

if TYPE_CHECKING:
    from app.cms.models import User
    from app.cms.modules.complaint_types.models import ComplaintType
    from app.cms.modules.departments.models import Department


class Complaint(Base):
    __tablename__ = "complaints"
    __table_args__ = (
        Index("idx_complaints_org_status", "organization_id", "status"),
        Index("idx_complaints_department", "department_id"),
        Index("idx_complaints_assignee", "assigned_to_user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    complaint_type_id: Mapped[int | None] = mapped_column(ForeignKey("complaint_types.id", ondelete="SET NULL"), nullable=True)
    department_id: Mapped[int | None] = mapped_column(ForeignKey("departments.id", ondelete="SET NULL"), nullable=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_OPEN)
    priority: Mapped[str] = mapped_column(String(32), nullable=False, default="Medium")
    location: Mapped[str | None] = mapped_column(Text, nullable=True)

    attachment_key: Mapped[str | None] = mapped_column(String(512), nullable=True)
    attachment_filename: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assigned_to_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    escalation_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    escalation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    creator: Mapped["User | None"] = relationship("User", foreign_keys=[created_by_user_id], lazy="selectin")
    assignee: Mapped["User | None"] = relationship("User", foreign_keys=[assigned_to_user_id], lazy="selectin")
    complaint_type: Mapped["ComplaintType | None"] = relationship("ComplaintType", lazy="selectin")
    department: Mapped["Department | None"] = relationship("Department", lazy="selectin")
    comments: Mapped[list["ComplaintComment"]] = relationship(
        back_populates="complaint",
        cascade="all, delete-orphan",
        order_by="ComplaintComment.created_at",
    )

    @property
    def attachment_url(self) -> str | None:
        if not self.attachment_key:
            return None
        return f"{UPLOADS_PREFIX}/{self.attachment_key}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organizationId": self.organization_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "location": self.location,
            "complaintTypeId": self.complaint_type_id,
            "complaintType": self.complaint_type.name if self.complaint_type else None,
            "departmentId": self.department_id,
            "department": self.department.name if self.department else None,
            "createdBy": self.created_by_user_id,
            "createdByName": self.creator.full_name if self.creator else None,
            "assignedTo": self.assigned_to_user_id,
            "assignedToName": self.assignee.full_name if self.assignee else None,
            "escalationLevel": self.escalation_level,
            "escalationReason": self.escalation_reason,
            "attachment": self.attachment_url,
            "attachmentName": self.attachment_filename,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
            "resolvedAt": iso(self.resolved_at),
        }


class ComplaintComment(Base):
    __tablename__ = "complaint_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    complaint_id: Mapped[int] = mapped_column(ForeignKey("complaints.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    is_internal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    complaint: Mapped[Complaint] = relationship(back_populates="comments")
    author: Mapped["User | None"] = relationship("User", lazy="selectin")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "complaintId": self.complaint_id,
            "userId": self.user_id,
            "author": self.author.full_name if self.author else None,
            "authorRole": self.author.role if self.author else None,
            "text": self.text,
            "isInternal": self.is_internal,
            "createdAt": iso(self.created_at),
        }
