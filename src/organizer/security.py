"""
Password hashing and identity tokens.

Passwords are hashed with bcrypt at a fixed work factor. Identity tokens are
HS256 JWTs carrying the user id and username, valid for one hour by default.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from .errors import AuthenticationFailed, InternalError
from .settings import get_settings

logger = logging.getLogger(__name__)

_ALGORITHM = "HS256"


def _secret(password: str) -> bytes:
    # bcrypt only reads the first 72 bytes; newer releases reject longer input
    return password.encode("utf-8")[:72]


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Identity:
    """Caller identity decoded from a verified token."""

    user_id: str
    username: str


# PUBLIC_INTERFACE
def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """
    Return a salted bcrypt hash of password.

    Raises:
        InternalError if hashing fails.
    """
    cost = rounds if rounds is not None else get_settings().bcrypt_rounds
    try:
        hashed = bcrypt.hashpw(_secret(password), bcrypt.gensalt(rounds=cost))
    except (ValueError, TypeError) as exc:
        logger.error("Password hashing failed: %s", exc)
        raise InternalError("Could not create user, please try again") from exc
    return hashed.decode("utf-8")


# PUBLIC_INTERFACE
def verify_password(password: str, hashed: str) -> bool:
    """
    Check password against a stored bcrypt hash.

    Returns False on a mismatch. Raises InternalError when the comparison
    cannot run at all (e.g. the stored hash is malformed).
    """
    try:
        return bcrypt.checkpw(_secret(password), hashed.encode("utf-8"))
    except (ValueError, TypeError) as exc:
        logger.error("Password comparison failed: %s", exc)
        raise InternalError("Could not log you in, please check your credentials and try again") from exc


# PUBLIC_INTERFACE
def issue_token(user_id: str, username: str) -> str:
    """
    Sign a token embedding userId, username and an expiry.

    Raises:
        InternalError if no signing key is configured or signing fails.
    """
    settings = get_settings()
    if not settings.jwt_key:
        logger.error("JWT_KEY is not configured; cannot issue tokens")
        raise InternalError("Could not issue token")
    payload = {
        "userId": user_id,
        "username": username,
        "exp": datetime.now(tz=timezone.utc) + timedelta(seconds=settings.token_ttl_seconds),
    }
    try:
        return jwt.encode(payload, settings.jwt_key, algorithm=_ALGORITHM)
    except (jwt.PyJWTError, TypeError, ValueError) as exc:
        logger.error("Token signing failed: %s", exc)
        raise InternalError("Could not issue token") from exc


# PUBLIC_INTERFACE
def verify_token(token: str) -> Identity:
    """
    Verify signature and expiry of token and return the identity it asserts.

    Raises:
        AuthenticationFailed on expiry, bad signature, malformed token or missing claims.
    """
    settings = get_settings()
    if not settings.jwt_key:
        raise AuthenticationFailed("Authentication failed")
    try:
        payload = jwt.decode(
            token,
            settings.jwt_key,
            algorithms=[_ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationFailed("Authentication failed, token expired") from exc
    except jwt.PyJWTError as exc:
        raise AuthenticationFailed("Authentication failed") from exc

    user_id = payload.get("userId")
    username = payload.get("username")
    if not isinstance(user_id, str) or not isinstance(username, str) or not user_id:
        raise AuthenticationFailed("Authentication failed")
    return Identity(user_id=user_id, username=username)
