from __future__ import annotations

import json
import logging
from typing import Any

import requests

from app.cms.client.errors import ApiError, logged, payload_of, payload_or_message
from app.cms.client.http import ApiClient, bearer
from app.cms.client.session_store import TOKEN_KEY, USER_KEY, Session

log = logging.getLogger(__name__)


def login_user(api: ApiClient, email: str, password: str, organization_id: Any) -> Session:
    """
    Authenticate and persist the bearer token. The session carries the caller's organization id.
    """
    try:
        data = api.post("/auth/login", {"email": email, "password": password, "organizationId": organization_id})
    except requests.RequestException as e:
        log.error("Login failed: %s", payload_of(e) or e)
        raise

    if not isinstance(data, dict) or not data.get("token"):
        log.error("Token not received in response")
        raise ApiError("Token not received in response")

    session = Session(
        token=bearer(data["token"]),
        role=data.get("role"),
        email=email,
        user_id=data.get("userId"),
        first_name=data.get("firstName"),
        last_name=data.get("lastName"),
        organization_id=organization_id,
        department_id=data.get("departmentId"),
    )
    api.store.set(TOKEN_KEY, session.token)
    api.store.set(USER_KEY, json.dumps(session.to_dict()))
    return session


def logout_user(api: ApiClient) -> None:
    """Notify the server; local session state is cleared whether or not that succeeds."""
    try:
        api.post("/auth/logout")
        log.info("User logged out successfully")
    except requests.RequestException as e:
        log.error("Error logging out: %s", payload_of(e) or e)
        raise
    finally:
        api.clear_session()


@logged("signing up")
def signup_user(api: ApiClient, user: dict) -> Any:
    return api.post("/auth/signup", user)


@logged("registering SuperAdmin")
def register_superadmin(api: ApiClient, superadmin: dict) -> Any:
    return api.post("/auth/register-superadmin", superadmin)


@payload_or_message
def request_password_reset(api: ApiClient, email: str) -> Any:
    return api.post("/auth/forgot-password", {"email": email})


@payload_or_message
def verify_otp(api: ApiClient, email: str, otp: str) -> Any:
    return api.post("/auth/verify-otp", {"email": email, "otp": otp})


@payload_or_message
def reset_password(api: ApiClient, email: str, password: str) -> Any:
    return api.post("/auth/reset-password", {"email": email, "password": password})
