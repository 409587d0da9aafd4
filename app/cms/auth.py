from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, current_app, g, request
from werkzeug.security import check_password_hash, generate_password_hash

from app.cms.constants import OTP_TTL_MINUTES, ROLE_SUPERADMIN, ROLE_USER
from app.cms.db import db_session
from app.cms.models import Organization, User
from app.cms.modules.users.service import create_user
from app.cms.rbac import current_user, require_auth
from app.cms.security import TokenError, decode_token, generate_otp, issue_token, token_from_header
from app.cms.utils import clean_str, parse_int

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[datetime]] = defaultdict(list)
_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds


def _check_rate_limit(ip: str) -> bool:
    now = datetime.utcnow()
    cutoff = now - timedelta(seconds=_LOGIN_RATE_WINDOW)
    _login_attempts[ip] = [t for t in _login_attempts[ip] if t > cutoff]
    return len(_login_attempts[ip]) >= _LOGIN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(datetime.utcnow())


def load_current_user() -> None:
    """
    Loads g.current_user from the bearer token in the Authorization header.
    Also assigns a simple per-request request_id (for log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    g.current_user = None

    token = token_from_header(request.headers.get("Authorization"))
    if not token:
        return

    try:
        claims = decode_token(token)
    except TokenError as e:
        current_app.logger.info("Rejected token (request_id=%s): %s", g.request_id, e)
        return

    try:
        s = db_session()
        user = s.get(User, int(claims["sub"]))
    except Exception as e:
        current_app.logger.error("load_current_user DB error: %s", e)
        return
    if not user or not user.is_active or user.token_version != claims.get("ver"):
        return
    g.current_user = user


def _body() -> dict:
    return request.get_json(silent=True) or {}


@bp.post("/login")
def login():
    data = _body()
    email = (clean_str(data.get("email")) or "").lower()
    password = data.get("password") or ""
    organization_id = parse_int(data.get("organizationId"))
    ip = request.remote_addr or "unknown"

    if _check_rate_limit(ip):
        return {"msg": "Too many login attempts. Please wait 5 minutes."}, 429

    _record_attempt(ip)

    s = db_session()
    user = s.query(User).filter(User.email == email).one_or_none()
    if not user or not user.is_active or not check_password_hash(user.password_hash, password):
        current_app.logger.info("Login failed (email=%s request_id=%s)", email, getattr(g, "request_id", None))
        return {"msg": "Invalid credentials"}, 401
    if organization_id is not None and user.organization_id != organization_id:
        return {"msg": "User does not belong to this organization"}, 401

    _login_attempts[ip].clear()
    current_app.logger.info("Login ok (user_id=%s)", user.id)
    return {
        "token": issue_token(user),
        "role": user.role,
        "userId": user.id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "organizationId": user.organization_id,
        "departmentId": user.department_id,
    }


@bp.post("/logout")
@require_auth
def logout():
    s = db_session()
    user = current_user()
    user.token_version += 1
    s.commit()
    return {"msg": "Logged out successfully"}


@bp.post("/signup")
def signup():
    data = _body()
    s = db_session()
    organization = s.get(Organization, parse_int(data.get("organizationId"), 0))
    if not organization:
        return {"msg": "Organization not found"}, 404
    user = create_user(s, organization_id=organization.id, payload=data, role=ROLE_USER)
    s.commit()
    return {"msg": "User registered successfully", "userId": user.id}, 201


@bp.post("/register-superadmin")
def register_superadmin():
    data = _body()
    s = db_session()
    organization = s.get(Organization, parse_int(data.get("organizationId"), 0))
    if not organization:
        return {"msg": "Organization not found"}, 404
    existing = (
        s.query(User)
        .filter(User.organization_id == organization.id, User.role == ROLE_SUPERADMIN)
        .first()
    )
    if existing:
        return {"msg": "This organization already has a SuperAdmin"}, 400
    user = create_user(s, organization_id=organization.id, payload=data, role=ROLE_SUPERADMIN)
    s.commit()
    return {"msg": "SuperAdmin registered successfully", "userId": user.id}, 201


@bp.post("/forgot-password")
def forgot_password():
    email = (clean_str(_body().get("email")) or "").lower()
    s = db_session()
    user = s.query(User).filter(User.email == email).one_or_none()
    if not user:
        return {"msg": "User not found"}, 404
    otp = generate_otp()
    user.otp_hash = generate_password_hash(otp)
    user.otp_expires_at = datetime.utcnow() + timedelta(minutes=OTP_TTL_MINUTES)
    user.otp_verified = False
    s.commit()
    # Delivery is handled outside this service.
    if current_app.config.get("ENV") not in ("prod", "production"):
        current_app.logger.info("Password reset OTP for %s: %s", email, otp)
    return {"msg": "OTP sent to your email"}


@bp.post("/verify-otp")
def verify_otp():
    data = _body()
    email = (clean_str(data.get("email")) or "").lower()
    otp = clean_str(data.get("otp")) or ""
    s = db_session()
    user = s.query(User).filter(User.email == email).one_or_none()
    if not user or not user.otp_hash or not user.otp_expires_at:
        return {"msg": "Invalid or expired OTP"}, 400
    if user.otp_expires_at < datetime.utcnow() or not check_password_hash(user.otp_hash, otp):
        return {"msg": "Invalid or expired OTP"}, 400
    user.otp_verified = True
    s.commit()
    return {"msg": "OTP verified"}


@bp.post("/reset-password")
def reset_password():
    data = _body()
    email = (clean_str(data.get("email")) or "").lower()
    password = data.get("password") or ""
    s = db_session()
    user = s.query(User).filter(User.email == email).one_or_none()
    if not user or not user.otp_verified or not user.otp_expires_at or user.otp_expires_at < datetime.utcnow():
        return {"msg": "OTP verification required"}, 400
    if not password:
        return {"msg": "Password is required"}, 400
    user.password_hash = generate_password_hash(password)
    user.otp_hash = None
    user.otp_expires_at = None
    user.otp_verified = False
    user.token_version += 1
    s.commit()
    return {"msg": "Password reset successfully"}
