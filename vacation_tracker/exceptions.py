"""
Custom exception hierarchy for consistent error responses.

Usage:
    from vacation_tracker.exceptions import NotFoundError, ForbiddenError

    raise NotFoundError("Vacation", issue_number)
    raise ForbiddenError("You can only edit your own vacations")
    raise ValidationError.from_messages(["end_date: must not be before start_date"])
    raise RateLimitedError(retry_after=30)

These exceptions are caught by the handlers registered in main.py and
converted to consistent JSON error responses with the shape:
    {"error": "<message>", "detail": "<optional extra info>"}
"""

from typing import Iterable, Optional

from fastapi import HTTPException, status


class AppError(HTTPException):
    """Base application error with a default status code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(
            status_code=self.__class__.status_code,
            detail=message,
            headers=headers,
        )
        self.extra_detail = detail

    @property
    def message(self) -> str:
        return str(self.detail)


class NotFoundError(AppError):
    """Resource not found (404)."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, resource_id: int | str | None = None):
        if resource_id is not None:
            message = f"{resource} not found (id={resource_id})"
        else:
            message = f"{resource} not found"
        super().__init__(message)


class ForbiddenError(AppError):
    """Forbidden access (403)."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class UnauthorizedError(AppError):
    """Unauthorized access (401)."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class CredentialError(UnauthorizedError):
    """
    No usable GitHub client, or the tracker rejected the token (401).

    Kept distinct from other failures so the caller re-authenticates
    instead of showing a generic error.
    """

    def __init__(self, message: str = "Authentication expired. Please sign in again."):
        super().__init__(message)


class ValidationError(AppError):
    """Validation error (400)."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)

    @classmethod
    def from_messages(cls, messages: Iterable[str]) -> "ValidationError":
        """Build one error listing every violated field."""
        return cls(f"Validation failed: {', '.join(messages)}")


class RateLimitedError(AppError):
    """GitHub API quota exhausted (429). Never retried automatically."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(
        self,
        message: str = "GitHub API rate limit exceeded. Please try again later.",
        retry_after: Optional[int] = None,
    ):
        headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
        super().__init__(message, headers=headers)
        self.retry_after = retry_after


class RemoteError(AppError):
    """Any other failure talking to the issue tracker (502)."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str = "Issue tracker request failed", detail: str | None = None):
        super().__init__(message, detail=detail)


class DecodeError(RemoteError):
    """An issue that was expected to be a vacation does not decode (502)."""

    def __init__(self, issue_number: int | None = None):
        if issue_number is not None:
            message = f"Issue #{issue_number} is not a valid vacation document"
        else:
            message = "Issue is not a valid vacation document"
        super().__init__(message)
        self.issue_number = issue_number
