from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.cms.models import Base
from app.cms.utils import iso, load_json_list

if TYPE_CHECKING:
    from app.cms.modules.complaints.models import Complaint


class Workflow(Base):
    __tablename__ = "workflows"
    __table_args__ = (
        Index("idx_workflows_org_type", "organization_id", "complaint_type_id"),
        Index("idx_workflows_org_department", "organization_id", "department_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    department_id: Mapped[int | None] = mapped_column(ForeignKey("departments.id", ondelete="SET NULL"), nullable=True)
    complaint_type_id: Mapped[int | None] = mapped_column(ForeignKey("complaint_types.id", ondelete="SET NULL"), nullable=True)
    template_id: Mapped[int | None] = mapped_column(ForeignKey("workflow_templates.id", ondelete="SET NULL"), nullable=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # JSON list of {"name", "description", "assigneeRole", "slaHours"}
    stages_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    @property
    def stages(self) -> list[dict]:
        return load_json_list(self.stages_json)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organizationId": self.organization_id,
            "departmentId": self.department_id,
            "complaintTypeId": self.complaint_type_id,
            "templateId": self.template_id,
            "name": self.name,
            "description": self.description,
            "stages": self.stages,
            "isActive": self.is_active,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


class WorkflowTemplate(Base):
    """Organization-independent starting point for a workflow."""

    __tablename__ = "workflow_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    category: Mapped[str] = mapped_column(String(128), nullable=False, default="General", index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    stages_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    @property
    def stages(self) -> list[dict]:
        return load_json_list(self.stages_json)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "stages": self.stages,
            "createdAt": iso(self.created_at),
        }


class ComplaintWorkflow(Base):
    """A workflow attached to one complaint, with its current position."""

    __tablename__ = "complaint_workflows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    complaint_id: Mapped[int] = mapped_column(
        ForeignKey("complaints.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    workflow_id: Mapped[int] = mapped_column(ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False)
    current_stage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    history_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")

    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    workflow: Mapped[Workflow] = relationship(lazy="selectin")
    complaint: Mapped["Complaint"] = relationship("Complaint", lazy="selectin")

    @property
    def history(self) -> list[dict]:
        return load_json_list(self.history_json)

    def to_dict(self) -> dict:
        stages = self.workflow.stages
        current = stages[self.current_stage] if 0 <= self.current_stage < len(stages) else None
        return {
            "id": self.id,
            "complaintId": self.complaint_id,
            "workflow": self.workflow.to_dict(),
            "currentStage": self.current_stage,
            "currentStageName": current.get("name") if current else None,
            "totalStages": len(stages),
            "history": self.history,
            "startedAt": iso(self.started_at),
            "updatedAt": iso(self.updated_at),
            "completedAt": iso(self.completed_at),
        }
