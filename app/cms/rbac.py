from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import current_app, g

from app.cms.models import User


def current_user() -> User | None:
    return getattr(g, "current_user", None)


def user_has_role(user: User | None, roles: frozenset[str] | tuple[str, ...]) -> bool:
    if not user or not user.is_active:
        return False
    return user.role in roles


def require_auth(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        user = current_user()
        if not user or not user.is_active:
            return {"msg": "Not authorized, token missing or invalid"}, 401
        return fn(*args, **kwargs)

    return wrapped


def require_role(*roles: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            user = current_user()
            # Unauthenticated -> 401 so the client tears its session down.
            if not user or not user.is_active:
                return {"msg": "Not authorized, token missing or invalid"}, 401
            # Authenticated but unauthorized -> 403
            if user.role not in roles:
                current_app.logger.warning(
                    "Forbidden: role=%s required=%s request_id=%s", user.role, ",".join(roles), getattr(g, "request_id", None)
                )
                return {"msg": "Access denied"}, 403
            return fn(*args, **kwargs)

        return wrapped

    return decorator
