from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import TransportError
from .middleware import CredentialSource, GatewayPipeline, GatewayRequest, default_pipeline, with_session_stages

logger = logging.getLogger(__name__)


class GatewayClient:
    """Single egress point for every admin API call.

    The underlying ``httpx.AsyncClient`` is private: callers only reach the
    network through ``request``, which always runs the pipeline. A custom
    pipeline is completed with the credential attach and rejection stages.
    """

    def __init__(
        self,
        config: ClientConfig,
        session: CredentialSource,
        *,
        pipeline: GatewayPipeline | None = None,
        on_login_redirect: Callable[[], None] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.session = session
        if pipeline is None:
            self.pipeline = default_pipeline(session, on_login_redirect)
        else:
            self.pipeline = with_session_stages(pipeline, session, on_login_redirect)
        self._client = httpx.AsyncClient(
            base_url=config.api_base_url.rstrip("/") + "/",
            timeout=config.timeout_seconds,
            verify=config.verify_ssl,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        is_login: bool = False,
    ) -> Any:
        normalized_path = path if path.startswith("/") else f"/{path}"
        outgoing = GatewayRequest(
            method=method.upper(),
            path=normalized_path,
            headers=dict(headers or {}),
            params=params,
            json_body=json_body,
            is_login=is_login,
        )
        self.pipeline.before_send(outgoing)

        http_request = self._client.build_request(
            outgoing.method,
            outgoing.path.lstrip("/"),
            headers=outgoing.headers,
            params=outgoing.params,
            json=outgoing.json_body,
        )
        outgoing.started = time.monotonic()
        try:
            response = await self._client.send(http_request)
        except httpx.TransportError as exc:
            logger.warning(
                "gateway_transport_error",
                extra={"method": outgoing.method, "path": outgoing.path, "error_type": type(exc).__name__},
            )
            raise TransportError(
                code="TRANSPORT_ERROR",
                message=str(exc) or "Network error while calling the admin API",
                details={"type": type(exc).__name__},
                status_code=0,
                raw_payload=None,
            ) from exc

        self.pipeline.after_receive(outgoing, response)

        if response.is_success:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError:
                return {"detail": response.text}

        try:
            payload = response.json()
        except ValueError:
            payload = {"detail": response.text} if response.text else {}
        if not isinstance(payload, dict):
            payload = {"detail": payload}
        raise map_error(response.status_code, payload)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
