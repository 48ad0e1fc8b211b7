from __future__ import annotations

from enum import Enum
from typing import List, TypedDict


# PUBLIC_INTERFACE
class Collection(str, Enum):
    """Document collections. Child collections share their name with the owner's reference list."""

    USERS = "users"
    POSTS = "posts"
    CALENDAR = "calendar"
    TODOLIST = "todolist"

    @property
    def is_child(self) -> bool:
        return self is not Collection.USERS

    @property
    def owner_field(self) -> str:
        """Name of the User field holding references to documents of this collection."""
        if not self.is_child:
            raise ValueError("users is not an owned collection")
        return self.value

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    Collection.USERS: "user",
    Collection.POSTS: "post",
    Collection.CALENDAR: "calendar item",
    Collection.TODOLIST: "todolist item",
}


# PUBLIC_INTERFACE
class UserDocument(TypedDict):
    """
    A registered account.

    Fields:
    - id: uuid4 hex identifier
    - username: unique login name
    - email: normalized email address
    - password: bcrypt hash, never returned by the API
    - posts / calendar / todolist: ordered ids of the documents this user owns
    - version: bumped by the store on every save
    """

    id: str
    username: str
    email: str
    password: str
    posts: List[str]
    calendar: List[str]
    todolist: List[str]
    version: int
