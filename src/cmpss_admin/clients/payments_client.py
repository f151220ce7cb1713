from __future__ import annotations

from dataclasses import dataclass

from ..models import ActionResult
from ..models_payments import Payment
from .base import BaseClient


@dataclass
class PaymentsClient(BaseClient):
    async def get(self, payment_id: int) -> Payment:
        return await self._get_model(f"/payments/{int(payment_id)}", Payment)

    async def trigger_callback(self, cmpss_payment_id: str) -> Payment | ActionResult:
        return await self._action(
            "POST",
            "/payments/trigger-callback",
            Payment,
            json_body={"cmpss_payment_id": cmpss_payment_id},
        )

    async def mark_paid_order_refunded(self, cmpss_payment_id: str) -> Payment | ActionResult:
        return await self._action(
            "POST",
            "/payments/mark-paid-order-refunded",
            Payment,
            json_body={"cmpss_payment_id": cmpss_payment_id},
        )

    async def update_third_party_id(
        self, cmpss_payment_id: str, third_party_provider_id: str
    ) -> Payment | ActionResult:
        return await self._action(
            "POST",
            "/payments/update-third-party-id",
            Payment,
            json_body={
                "cmpss_payment_id": cmpss_payment_id,
                "third_party_provider_id": third_party_provider_id,
            },
        )
