from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import AuthenticationFailed, AuthorizationFailed
from .security import Identity, verify_token

logger = logging.getLogger(__name__)

_security = HTTPBearer(auto_error=False)


# PUBLIC_INTERFACE
def require_identity(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_security),
) -> Identity:
    """
    Verify the 'Authorization: Bearer <token>' header and return the caller's identity.

    CORS pre-flight requests never reach this dependency: CORSMiddleware answers
    them before routing.

    Behavior:
    - Missing header, non-Bearer scheme or empty token: raises AuthenticationFailed (401).
    - Token failing verification: raises AuthenticationFailed (401).

    Usage:
        router = APIRouter()
        @router.post("/", ...)
        def handler(identity: Identity = Depends(require_identity)) ...
    """
    if creds is None or not creds.credentials:
        logger.debug("Rejected %s %s: no bearer token", request.method, request.url.path)
        raise AuthenticationFailed("Authentication failed")

    return verify_token(creds.credentials)


# PUBLIC_INTERFACE
def resolve_creator(identity: Optional[Identity], requested: Optional[str]) -> str:
    """
    Return the owner id for a new document: the caller, unless the body names
    someone else, which is refused.
    """
    if identity is None:
        raise AuthenticationFailed("Authentication failed")
    if requested is not None and requested != identity.user_id:
        raise AuthorizationFailed("You're unable to create items for another user")
    return identity.user_id
