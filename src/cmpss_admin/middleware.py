"""Ordered request/response stages run by the gateway on every call.

Request stages may mutate the outgoing ``GatewayRequest``; response stages see
the raw ``httpx.Response`` before any status handling and may raise to abort
the call.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from .error_mapper import detail_text
from .exceptions import SessionExpiredError

logger = logging.getLogger(__name__)


@dataclass
class GatewayRequest:
    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] | None = None
    json_body: Any = None
    is_login: bool = False
    started: float = 0.0


class RequestStage(Protocol):
    def __call__(self, request: GatewayRequest) -> None: ...


class ResponseStage(Protocol):
    def __call__(self, request: GatewayRequest, response: httpx.Response) -> None: ...


class CredentialSource(Protocol):
    def access_token(self) -> str | None: ...

    def logout(self, reason: str = ...) -> None: ...


class CredentialAttachStage:
    def __init__(self, session: CredentialSource) -> None:
        self.session = session

    def __call__(self, request: GatewayRequest) -> None:
        token = self.session.access_token()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        else:
            request.headers.pop("Authorization", None)


class ExchangeLogStage:
    def __call__(self, request: GatewayRequest, response: httpx.Response) -> None:
        logger.debug(
            "gateway_exchange",
            extra={
                "method": request.method,
                "path": request.path,
                "status_code": response.status_code,
                "duration_ms": int((time.monotonic() - request.started) * 1000),
            },
        )


class CredentialRejectionStage:
    """Clears the session and sends the operator to login on a 401.

    The login call itself is exempt, so a bad password never turns into a
    logout-and-redirect loop.
    """

    def __init__(self, session: CredentialSource, on_login_redirect: Callable[[], None] | None = None) -> None:
        self.session = session
        self.on_login_redirect = on_login_redirect

    def __call__(self, request: GatewayRequest, response: httpx.Response) -> None:
        if response.status_code != 401 or request.is_login:
            return
        logger.warning("credential_rejected", extra={"method": request.method, "path": request.path})
        self.session.logout(reason="credential_rejected")
        if self.on_login_redirect is not None:
            self.on_login_redirect()
        payload = _safe_payload(response)
        raise SessionExpiredError(
            code="SESSION_EXPIRED",
            message=detail_text(payload.get("detail")) or "Session expired. Please log in again.",
            details=payload.get("detail"),
            status_code=401,
            raw_payload=payload,
        )


@dataclass
class GatewayPipeline:
    request_stages: list[RequestStage] = field(default_factory=list)
    response_stages: list[ResponseStage] = field(default_factory=list)

    def before_send(self, request: GatewayRequest) -> None:
        for stage in self.request_stages:
            stage(request)

    def after_receive(self, request: GatewayRequest, response: httpx.Response) -> None:
        for stage in self.response_stages:
            stage(request, response)


def default_pipeline(
    session: CredentialSource,
    on_login_redirect: Callable[[], None] | None = None,
) -> GatewayPipeline:
    return GatewayPipeline(
        request_stages=[CredentialAttachStage(session)],
        response_stages=[ExchangeLogStage(), CredentialRejectionStage(session, on_login_redirect)],
    )


def with_session_stages(
    pipeline: GatewayPipeline,
    session: CredentialSource,
    on_login_redirect: Callable[[], None] | None = None,
) -> GatewayPipeline:
    """Return ``pipeline`` with credential attach and 401 rejection guaranteed.

    Missing stages are added: attach runs first among request stages and
    rejection runs last among response stages. Stages already present are kept
    where the caller put them.
    """
    request_stages = list(pipeline.request_stages)
    response_stages = list(pipeline.response_stages)
    if not any(isinstance(stage, CredentialAttachStage) for stage in request_stages):
        request_stages.insert(0, CredentialAttachStage(session))
    if not any(isinstance(stage, CredentialRejectionStage) for stage in response_stages):
        response_stages.append(CredentialRejectionStage(session, on_login_redirect))
    return GatewayPipeline(request_stages=request_stages, response_stages=response_stages)


def _safe_payload(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {"detail": response.text} if response.text else {}
    return payload if isinstance(payload, dict) else {"detail": payload}
