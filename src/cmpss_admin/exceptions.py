from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        return f"[{self.status_code}] {self.code}: {self.message}"

    @property
    def detail(self) -> str | None:
        """Free-text ``detail`` from the error body, when the server sent one."""
        if isinstance(self.raw_payload, dict):
            value = self.raw_payload.get("detail")
            if isinstance(value, str):
                return value
        return None


class UnauthorizedError(ApiError):
    pass


class ForbiddenError(ApiError):
    pass


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    pass


class AuthError(ApiError):
    """Login was rejected by the authentication endpoint."""


class SessionExpiredError(UnauthorizedError):
    """Credential rejected on a non-login call; the session has been cleared."""


class ConflictError(ApiError):
    """409 or conflict-style errors."""


class RateLimitError(ApiError):
    """429 throttling error."""


class ServerError(ApiError):
    """5xx server-side failures."""


class TransportError(ApiError):
    """Network/transport failure before an HTTP response was returned."""


class ResponseShapeError(ApiError):
    """Successful response whose body does not satisfy the listing contract."""


class MissingSecretError(RuntimeError):
    """A call requiring the static verification secret ran without one configured."""
