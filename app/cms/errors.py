from __future__ import annotations

from typing import TypeVar

from sqlalchemy.orm import Session

from app.cms.models import User

T = TypeVar("T")


class ServiceError(Exception):
    """Raised by the service layer; blueprints answer with {"msg": ...} and `status`."""

    status = 400

    def __init__(self, msg: str, *, status: int | None = None):
        super().__init__(msg)
        self.msg = msg
        if status is not None:
            self.status = status


class NotFoundError(ServiceError):
    status = 404


class ForbiddenError(ServiceError):
    status = 403


def get_in_org(s: Session, model: type[T], obj_id: int, user: User, *, label: str | None = None) -> T:
    """Load a row by id, hiding rows that belong to another organization."""
    obj = s.get(model, obj_id)
    if obj is None or getattr(obj, "organization_id", None) != user.organization_id:
        raise NotFoundError(f"{label or model.__name__} not found")
    return obj
