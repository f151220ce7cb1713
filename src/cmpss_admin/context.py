from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

import httpx

from .auth_store import AuthStore
from .clients import AuthClient, DisbursementsClient, PaymentsClient, ProviderSettlementsClient, SettlementsClient
from .config import ClientConfig
from .http_client import GatewayClient
from .query import RESOURCES, QueryController
from .session import SessionStore
from .telemetry import TelemetryLogger


@dataclass
class AdminContext:
    """Everything one console process shares: config, session and gateway."""

    config: ClientConfig
    session: SessionStore
    gateway: GatewayClient
    telemetry: TelemetryLogger

    @property
    def payments(self) -> PaymentsClient:
        return PaymentsClient(self.gateway)

    @property
    def disbursements(self) -> DisbursementsClient:
        return DisbursementsClient(self.gateway, verification_secret=self.config.verification_secret)

    @property
    def settlements(self) -> SettlementsClient:
        return SettlementsClient(self.gateway)

    @property
    def provider_settlements(self) -> ProviderSettlementsClient:
        return ProviderSettlementsClient(self.gateway)

    def controller(
        self,
        resource: str,
        *,
        per_page: int | None = None,
        today: Callable[[], date] = date.today,
        on_change: Callable[[QueryController], None] | None = None,
        auto_refresh: bool = False,
    ) -> QueryController:
        return QueryController(
            self.gateway,
            RESOURCES[resource],
            per_page=per_page or self.config.per_page,
            today=today,
            on_change=on_change,
            telemetry=self.telemetry,
            auto_refresh=auto_refresh,
        )

    async def aclose(self) -> None:
        await self.gateway.aclose()

    async def __aenter__(self) -> "AdminContext":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def build_context(
    config: ClientConfig,
    *,
    on_login_redirect: Callable[[], None] | None = None,
    auth_store: AuthStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    telemetry: TelemetryLogger | None = None,
) -> AdminContext:
    telemetry = telemetry or TelemetryLogger.from_config(config)
    session = SessionStore(auth_store or AuthStore(directory=config.session_dir), telemetry=telemetry)
    gateway = GatewayClient(config, session, on_login_redirect=on_login_redirect, transport=transport)
    session.bind_authenticator(AuthClient(gateway).login)
    return AdminContext(config=config, session=session, gateway=gateway, telemetry=telemetry)
