from __future__ import annotations

from dataclasses import dataclass

from .exceptions import (
    ApiError,
    NotFoundError,
    ResponseShapeError,
    ServerError,
    SessionExpiredError,
    TransportError,
)
from .permission_errors import PermissionDenial, classify_permission_error


@dataclass(frozen=True)
class UserFacingError:
    message: str
    category: str
    retryable: bool = False
    permission: PermissionDenial | None = None
    details: str | None = None


def describe_failure(error: Exception, *, action: str, resource_label: str = "Resource") -> UserFacingError:
    """Turn any failure from a gateway call into an operator-facing message.

    ``action`` completes "You don't have permission to ..." and "Failed to
    ...", e.g. ``"view payments"``.
    """
    if isinstance(error, SessionExpiredError):
        return UserFacingError(message="Your session has expired. Please log in again.", category="session")
    if isinstance(error, (TransportError, ServerError, ResponseShapeError)):
        return UserFacingError(
            message=f"Failed to {action}. Please try again.",
            category="transport",
            retryable=True,
            details=str(error),
        )
    if not isinstance(error, ApiError):
        return UserFacingError(
            message=f"Failed to {action}. Please try again.",
            category="internal",
            retryable=True,
            details=str(error) or None,
        )

    denial = classify_permission_error(error.status_code, error.detail)
    if denial is not None:
        return UserFacingError(
            message=denial.message(action),
            category="forbidden",
            permission=denial,
            details=denial.raw_detail or None,
        )
    if isinstance(error, NotFoundError):
        return UserFacingError(message=f"{resource_label} not found", category="not_found")
    if 400 <= error.status_code < 500 and error.details is not None:
        return UserFacingError(message=f"Error: {error.message}", category="rejected", details=error.message)
    return UserFacingError(
        message=f"Failed to {action}. Please try again.",
        category="transport",
        retryable=True,
        details=str(error),
    )
