from __future__ import annotations


# PUBLIC_INTERFACE
class ApiError(Exception):
    """
    Base failure carried through every operation.

    Attributes:
    - message: human readable message returned to the client as {"message": ...}
    - status_code: HTTP status the terminal handler responds with
    """

    status_code: int = 500
    default_message: str = "An unknown error occurred"

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, {self.status_code})"


class ValidationFailed(ApiError):
    """Bad or missing input fields, or a duplicate unique field."""

    status_code = 422
    default_message = "Invalid inputs provided"


class AuthenticationFailed(ApiError):
    """Missing, invalid or expired token, or bad login credentials."""

    status_code = 401
    default_message = "Authentication failed"


class AuthorizationFailed(ApiError):
    """Caller is not the owner of the resource."""

    status_code = 401
    default_message = "You're unable to modify this item"


class NotFound(ApiError):
    status_code = 404
    default_message = "Could not find resource"


class RouteNotFound(ApiError):
    status_code = 404
    default_message = "Route not found"


class StoreError(ApiError):
    """Underlying database or transport failure."""

    status_code = 500
    default_message = "Database operation failed"


class WriteConflict(StoreError):
    """A document changed underneath a pending write."""

    default_message = "Document was modified concurrently"


class DuplicateKey(StoreError):
    """A unique field already holds the written value."""

    default_message = "Duplicate key"


class InternalError(ApiError):
    """Hashing or token signing failure."""

    status_code = 500
    default_message = "Internal error"
