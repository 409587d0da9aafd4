from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.cms.models import Base
from app.cms.utils import iso

if TYPE_CHECKING:
    from app.cms.models import User


class Department(Base):
    __tablename__ = "departments"
    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_departments_org_name"),
        Index("idx_departments_org", "organization_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Plain id (no FK) to keep users <-> departments free of a cycle.
    head_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    members: Mapped[list["User"]] = relationship(
        "User",
        foreign_keys="User.department_id",
        lazy="selectin",
        viewonly=True,
    )

    def to_dict(self, *, include_members: bool = False) -> dict:
        d = {
            "id": self.id,
            "organizationId": self.organization_id,
            "name": self.name,
            "description": self.description,
            "headUserId": self.head_user_id,
            "memberCount": len(self.members),
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
        if include_members:
            d["members"] = [u.to_dict() for u in self.members]
        return d
