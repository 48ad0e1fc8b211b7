from __future__ import annotations

from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _require_text(value: Optional[str]) -> str:
    """
    Strip whitespace and reject empty values.
    """
    if value is None:
        raise ValueError("value is required")
    s = value.strip()
    if not s:
        raise ValueError("value must not be empty")
    return s


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return _require_text(value)


# PUBLIC_INTERFACE
class SignupRequest(BaseModel):
    """
    Schema for creating a new account.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"username": "amy", "email": "amy@example.com", "password": "secret"}
        }
    )

    username: str = Field(..., description="Unique login name")
    email: EmailStr = Field(..., description="Contact email address")
    password: str = Field(..., description="Plain text password, hashed before storage")

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return _require_text(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        # Stored as typed; only an all-blank password is refused
        _require_text(v)
        return v

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> Any:
        """
        Lowercase and trim the address before format validation.
        """
        if isinstance(v, str):
            return v.strip().lower()
        return v


# PUBLIC_INTERFACE
class LoginRequest(BaseModel):
    """
    Login credentials. Presence is not validated here: missing or wrong
    credentials are reported uniformly as 401 by the handler.
    """

    username: str = Field(default="", description="Login name")
    password: str = Field(default="", description="Plain text password")

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, v: Any) -> Any:
        """
        Trim the login name the same way signup does.
        """
        if isinstance(v, str):
            return v.strip()
        return v


# PUBLIC_INTERFACE
class AuthOut(BaseModel):
    """Returned by signup and login."""

    userId: str = Field(..., description="Identifier of the authenticated user")
    username: str = Field(..., description="Login name")
    token: str = Field(..., description="Signed bearer token, valid for one hour")


class MessageOut(BaseModel):
    message: str


# PUBLIC_INTERFACE
class PostUpdate(BaseModel):
    """
    Schema for editing a post. Both fields are required and must be non-empty.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"title": "Beach day", "description": "Sunset at the pier"}}
    )

    title: str = Field(..., description="Post title")
    description: str = Field(..., description="Post body")

    @field_validator("title", "description")
    @classmethod
    def validate_present(cls, v: str) -> str:
        return _require_text(v)


# PUBLIC_INTERFACE
class CalendarItemCreate(BaseModel):
    """
    Schema for creating a calendar entry. Date and time are stored as given.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Dentist",
                "description": "Check-up",
                "date": "2025-02-01",
                "time": "09:30",
            }
        }
    )

    title: str = Field(..., description="Entry title")
    description: str = Field(..., description="Entry details")
    date: str = Field(..., description="Date of the entry, free form")
    time: str = Field(..., description="Time of the entry, free form")
    creator: Optional[str] = Field(default=None, description="Owner id; defaults to the caller")

    @field_validator("title", "description", "date", "time")
    @classmethod
    def validate_present(cls, v: str) -> str:
        return _require_text(v)

    @field_validator("creator")
    @classmethod
    def validate_creator(cls, v: Optional[str]) -> Optional[str]:
        return _optional_text(v)


# PUBLIC_INTERFACE
class TodoItemCreate(BaseModel):
    """
    Schema for creating a to-do item.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"description": "buy milk"}})

    description: str = Field(..., description="What needs doing")
    creator: Optional[str] = Field(default=None, description="Owner id; defaults to the caller")

    @field_validator("description")
    @classmethod
    def validate_present(cls, v: str) -> str:
        return _require_text(v)

    @field_validator("creator")
    @classmethod
    def validate_creator(cls, v: Optional[str]) -> Optional[str]:
        return _optional_text(v)


# PUBLIC_INTERFACE
class PostOut(BaseModel):
    """
    Schema returned by the API for a post.
    """

    id: str = Field(..., description="Unique identifier of the post")
    title: str
    description: str
    image: str = Field(..., description="Relative path of the uploaded image, served under /uploads/images")
    creator: str = Field(..., description="Owner id")


class CalendarItemOut(BaseModel):
    id: str
    title: str
    description: str
    date: str
    time: str
    creator: str


class TodoItemOut(BaseModel):
    id: str
    description: str
    creator: str


class PostEnvelope(BaseModel):
    post: PostOut


class UserPostsEnvelope(BaseModel):
    userPosts: List[PostOut]


class CalendarItemEnvelope(BaseModel):
    CalendarItem: CalendarItemOut


class UserCalendarItemsEnvelope(BaseModel):
    userCalendarItems: List[CalendarItemOut]


class TodoItemEnvelope(BaseModel):
    TDItem: TodoItemOut


class UserTodoItemsEnvelope(BaseModel):
    usertdItems: List[TodoItemOut]


# PUBLIC_INTERFACE
def public_view(document: Mapping[str, Any]) -> dict:
    """
    Strip store bookkeeping from a document before it leaves the server.
    """
    return {k: v for k, v in document.items() if k not in {"version", "password"}}
