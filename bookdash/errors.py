from typing import Any, Optional

from fastapi import HTTPException


class DuplicateEntryError(ValueError):
    """Raised when an insert or update would violate a unique constraint."""


class EntityInUseError(ValueError):
    """Raised when a row cannot be deleted because other rows still reference it."""


class ApiError(HTTPException):
    """HTTP error rendered into the standard response envelope.

    ``message`` becomes the envelope ``message``, ``error_code`` the
    ``errorCode`` field and ``data`` is passed through unchanged.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: Optional[str] = None,
        data: Any = None,
        headers: Optional[dict] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message = message
        self.error_code = error_code
        self.data = data


def bad_request(message: str, error_code: Optional[str] = None, data: Any = None) -> ApiError:
    return ApiError(400, message, error_code, data)


def not_found(message: str, error_code: Optional[str] = None) -> ApiError:
    return ApiError(404, message, error_code)


def conflict(message: str, error_code: Optional[str] = None) -> ApiError:
    return ApiError(409, message, error_code)


def forbidden(message: str = "You do not have permission to perform this action.") -> ApiError:
    return ApiError(403, message, "forbidden")


def unauthorized(message: str = "Authentication required.") -> ApiError:
    return ApiError(401, message, "unauthorized", headers={"WWW-Authenticate": "Bearer"})
