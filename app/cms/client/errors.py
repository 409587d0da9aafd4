from __future__ import annotations

import functools
import logging
from typing import Any, Callable, TypeVar

import requests

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class ApiError(RuntimeError):
    """
    Reshaped endpoint failure.

    `detail` is what the server sent back (usually a dict with "msg") or a plain message.
    """

    def __init__(self, detail: Any, status: int | None = None):
        super().__init__(detail.get("msg", str(detail)) if isinstance(detail, dict) else str(detail))
        self.detail = detail
        self.status = status


class PermissionDeniedError(ApiError):
    pass


def response_of(exc: BaseException) -> requests.Response | None:
    return getattr(exc, "response", None)


def status_of(exc: BaseException) -> int | None:
    resp = response_of(exc)
    return resp.status_code if resp is not None else None


def payload_of(exc: BaseException) -> Any:
    """Decoded error body, or None when no response was received."""
    resp = response_of(exc)
    if resp is None or not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text


def msg_of(exc: BaseException) -> str | None:
    payload = payload_of(exc)
    if isinstance(payload, dict):
        return payload.get("msg") or None
    return None


def logged(action: str) -> Callable[[F], F]:
    """Log a failed call and re-raise the transport error unchanged."""

    def deco(fn: F) -> F:
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except requests.RequestException as e:
                log.error("Error %s: %s", action, payload_of(e) or e)
                raise

        return wrapper  # type: ignore[return-value]

    return deco


def payload_or_message(fn: F) -> F:
    """Raise ApiError carrying the server payload, or the transport message when there is none."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except requests.RequestException as e:
            raise ApiError(payload_of(e) or str(e), status_of(e)) from e

    return wrapper  # type: ignore[return-value]


def msg_or(fallback: str | None = None) -> Callable[[F], F]:
    """
    Raise ApiError with the server's "msg", else `fallback`.

    With no fallback the transport error's own message is used.
    """

    def deco(fn: F) -> F:
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except requests.RequestException as e:
                raise ApiError(msg_of(e) or fallback or str(e), status_of(e)) from e

        return wrapper  # type: ignore[return-value]

    return deco
