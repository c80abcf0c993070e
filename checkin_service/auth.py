"""
Check-in Service: Admin authorization

Admin routes take `Authorization: Bearer <token>` where the token is either
the shared admin secret from app config or an access token issued by
POST /admin/login (a JWT carrying the admin role claim).
"""

import hmac
from datetime import timedelta
from functools import wraps

from flask import current_app, request
from flask_jwt_extended import create_access_token, get_jwt, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from checkin_service.exceptions import InvalidInput, Unauthorized
from checkin_service.extensions import BLOCKLIST

ADMIN_ROLE = "admin"


def _bearer_token():
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def check_admin_secret(candidate):
    secret = current_app.config.get("ADMIN_TOKEN") or ""
    if not secret or not isinstance(candidate, str):
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), secret.encode("utf-8"))


def issue_admin_token():
    minutes = current_app.config["ADMIN_TOKEN_EXPIRES_MINUTES"]
    return create_access_token(
        identity=ADMIN_ROLE,
        additional_claims={"role": ADMIN_ROLE},
        expires_delta=timedelta(minutes=minutes),
    )


def admin_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            raise Unauthorized()
        if check_admin_secret(token):
            return fn(*args, **kwargs)

        try:
            verify_jwt_in_request()
        except (JWTExtendedException, PyJWTError):
            raise Unauthorized()
        if get_jwt().get("role") != ADMIN_ROLE:
            raise Unauthorized()
        return fn(*args, **kwargs)

    return wrapper


def revoke_current_token():
    """Blocklist the JWT on the current request. The shared secret cannot be revoked."""
    try:
        verify_jwt_in_request()
    except (JWTExtendedException, PyJWTError):
        raise InvalidInput("Only tokens issued by /admin/login can be revoked")
    jti = get_jwt()["jti"]
    BLOCKLIST.add(jti)
    return jti
