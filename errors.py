from typing import Dict, List, Optional
from fastapi import status
from config import settings


class InventoryError(Exception):
    """Base class for failures reported to the client as a {message} envelope."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Server Error"
    headers: Optional[Dict[str, str]] = None

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def payload(self) -> dict:
        return {"message": self.message}


class Unauthenticated(InventoryError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthenticated."
    headers = {"WWW-Authenticate": "Bearer"}


class InvalidCredentials(InventoryError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "The provided credentials are not valid."


class Forbidden(InventoryError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Administrator role required."


class NotFound(InventoryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found."


class ReferenceNotFound(NotFound):
    """A foreign key in the payload points at a row that does not exist."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} does not exist.")


class Conflict(InventoryError):
    default_message = "The resource already exists."

    @property
    def status_code(self) -> int:
        if settings.LEGACY_STATUS_CODES:
            return status.HTTP_404_NOT_FOUND
        return status.HTTP_409_CONFLICT


class ValidationFailed(InventoryError):
    status_code = 422
    default_message = "The given data was invalid."

    def __init__(self, errors: Dict[str, List[str]], message: Optional[str] = None):
        self.errors = errors
        if message is None:
            first = next(iter(errors.values()), [])
            message = first[0] if first else self.default_message
            extra = sum(len(msgs) for msgs in errors.values()) - 1
            if extra > 0:
                message = f"{message} (and {extra} more error{'s' if extra > 1 else ''})"
        super().__init__(message)

    def payload(self) -> dict:
        return {"message": self.message, "errors": self.errors}
