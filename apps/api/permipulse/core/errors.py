"""
Application error taxonomy.

Services and guards raise these; a single exception handler in
``permipulse.main`` renders them as ``{"error": code, "detail": message}``.
Infrastructure faults are not wrapped and fall through to the generic
500 handler.
"""

from typing import Any

from fastapi import status


class AppError(Exception):
    """Base class for expected, user-visible failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "error"

    def __init__(
        self,
        detail: str,
        *,
        code: str | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(detail)
        self.detail = detail
        if code is not None:
            self.code = code
        self.headers = headers

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "detail": self.detail}


class Unauthenticated(AppError):
    """Missing, malformed, expired or forged credential."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"

    def __init__(self, detail: str = "Not authenticated", **kwargs: Any):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(detail, **kwargs)


class Forbidden(AppError):
    """Authenticated, but lacking role, grant or ownership."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class ValidationError(AppError):
    """Malformed input that passed schema validation."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_error"
