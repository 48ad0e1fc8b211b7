from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from ..dependencies import get_store
from ..errors import AuthenticationFailed, DuplicateKey, StoreError, ValidationFailed
from ..models import Collection, UserDocument
from ..schemas import AuthOut, LoginRequest, SignupRequest
from ..security import hash_password, issue_token, verify_password
from ..store import DocumentStore, new_id

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/users",
    tags=["users"],
)

_INVALID_CREDENTIALS = "Could not log in, invalid credentials"


# PUBLIC_INTERFACE
@router.post(
    "/signup",
    response_model=AuthOut,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up",
    description="Create an account and return a token for it.",
    responses={
        201: {"description": "Account created"},
        422: {"description": "Missing fields, invalid email or username already taken"},
    },
)
def signup(payload: SignupRequest, store: DocumentStore = Depends(get_store)) -> AuthOut:
    """
    Register a new user with an empty set of posts, calendar items and to-do items.
    """
    try:
        existing = store.find_one(Collection.USERS, {"username": payload.username})
    except StoreError as exc:
        raise StoreError("Signing up failed, please try again later") from exc
    if existing is not None:
        raise ValidationFailed("Signing up failed, username already exists")

    user: UserDocument = {
        "id": new_id(),
        "username": payload.username,
        "email": str(payload.email),
        "password": hash_password(payload.password),
        "posts": [],
        "calendar": [],
        "todolist": [],
        "version": 0,
    }
    try:
        created = store.save(Collection.USERS, user)
    except DuplicateKey as exc:
        raise ValidationFailed("Signing up failed, username already exists") from exc
    except StoreError as exc:
        raise StoreError("Signing up failed, please try again later") from exc

    logger.info("Signed up user %s (%s)", created["username"], created["id"])
    token = issue_token(created["id"], created["username"])
    return AuthOut(userId=created["id"], username=created["username"], token=token)


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=AuthOut,
    summary="Log in",
    description="Exchange username and password for a token.",
    responses={
        200: {"description": "Logged in"},
        401: {"description": "Invalid credentials"},
    },
)
def login(payload: LoginRequest, store: DocumentStore = Depends(get_store)) -> AuthOut:
    try:
        existing = store.find_one(Collection.USERS, {"username": payload.username})
    except StoreError as exc:
        raise StoreError("Logging in failed, please try again later") from exc

    if existing is None or not verify_password(payload.password, existing["password"]):
        raise AuthenticationFailed(_INVALID_CREDENTIALS)

    token = issue_token(existing["id"], existing["username"])
    return AuthOut(userId=existing["id"], username=existing["username"], token=token)
