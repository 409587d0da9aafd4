from __future__ import annotations

import secrets
from datetime import datetime, timedelta

import jwt
from flask import current_app

from app.cms.constants import OTP_LENGTH
from app.cms.models import User

ALGORITHM = "HS256"
BEARER_PREFIX = "Bearer "


class TokenError(Exception):
    pass


def issue_token(user: User) -> str:
    """Sign an access token for the user. The raw token carries no scheme prefix."""
    ttl_hours = int(current_app.config.get("TOKEN_TTL_HOURS") or 24)
    payload = {
        "sub": str(user.id),
        "org": user.organization_id,
        "role": user.role,
        "ver": user.token_version,
        "exp": datetime.utcnow() + timedelta(hours=ttl_hours),
    }
    return jwt.encode(payload, current_app.config["SECRET_KEY"], algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, current_app.config["SECRET_KEY"], algorithms=[ALGORITHM])
    except jwt.PyJWTError as e:
        raise TokenError(str(e)) from e


def token_from_header(value: str | None) -> str | None:
    """Extract the raw token from an Authorization header, with or without the scheme."""
    if not value:
        return None
    value = value.strip()
    if value.startswith(BEARER_PREFIX):
        value = value[len(BEARER_PREFIX):].strip()
    return value or None


def generate_otp() -> str:
    return "".join(secrets.choice("0123456789") for _ in range(OTP_LENGTH))
