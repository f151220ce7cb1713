from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from .auth_store import AuthStore
from .exceptions import ApiError, AuthError, ResponseShapeError, TransportError
from .models import Credential, Identity, LoginResponse
from .telemetry import EventCategory, TelemetryLogger, build_event

logger = logging.getLogger(__name__)

Authenticator = Callable[[str, str], Awaitable[LoginResponse]]


class SessionStore:
    """Single source of truth for the logged-in admin and their credential.

    Reads and writes go through the durable ``AuthStore``; ``login`` is the
    only operation that touches the network.
    """

    def __init__(
        self,
        auth_store: AuthStore | None = None,
        *,
        authenticator: Authenticator | None = None,
        telemetry: TelemetryLogger | None = None,
    ) -> None:
        self.auth_store = auth_store or AuthStore()
        self._authenticator = authenticator
        self._credential: Credential | None = None
        self.telemetry = telemetry or TelemetryLogger.disabled()

    def bind_authenticator(self, authenticator: Authenticator) -> None:
        self._authenticator = authenticator

    async def login(self, username: str, password: str) -> Identity:
        if self._authenticator is None:
            raise RuntimeError("SessionStore has no authenticator bound")
        logger.info("login_attempt", extra={"username": username})
        try:
            response = await self._authenticator(username, password)
        except (TransportError, ResponseShapeError) as exc:
            logger.exception("login_unexpected_failure", extra={"username": username, "error_code": exc.code})
            self._emit(EventCategory.AUTH, "login_failed", success=False, error_code=exc.code)
            raise
        except ApiError as exc:
            logger.warning("login_rejected", extra={"username": username, "status_code": exc.status_code})
            self._emit(EventCategory.AUTH, "login_failed", success=False, error_code=exc.code)
            raise AuthError(
                code="AUTH_FAILED",
                message=exc.message,
                details=exc.details,
                status_code=exc.status_code,
                raw_payload=exc.raw_payload,
            ) from exc

        self.auth_store.save(response.access_token, response.admin)
        self._credential = Credential(
            access_token=response.access_token,
            token_type=response.token_type,
            expires_in=response.expires_in,
        )
        logger.info("login_success", extra={"username": username, "role": response.admin.role})
        self._emit(EventCategory.AUTH, "login_succeeded", success=True)
        return response.admin

    def logout(self, reason: str = "explicit") -> None:
        was_authenticated = self.is_authenticated()
        self.auth_store.clear()
        self._credential = None
        if was_authenticated:
            logger.info("logout", extra={"reason": reason})
            self._emit(EventCategory.SESSION, "logout", success=True, attributes={"reason": reason})

    def is_authenticated(self) -> bool:
        return self.auth_store.load() is not None

    def current_identity(self) -> Identity | None:
        stored = self.auth_store.load()
        return stored.identity if stored else None

    def access_token(self) -> str | None:
        stored = self.auth_store.load()
        return stored.access_token if stored else None

    def credential(self) -> Credential | None:
        stored = self.auth_store.load()
        if stored is None:
            self._credential = None
            return None
        if self._credential is None or self._credential.access_token != stored.access_token:
            # Lifetime is only known for credentials obtained in this process.
            self._credential = Credential(access_token=stored.access_token)
        return self._credential

    def _emit(self, category: EventCategory, name: str, **kwargs) -> None:
        self.telemetry.emit(build_event(category, name, source="session", **kwargs))
