from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..config import VERIFICATION_SECRET_HEADER
from ..exceptions import MissingSecretError
from ..models import ActionResult
from ..models_disbursements import Disbursement
from .base import BaseClient

VERIFICATION_RETRY_STATUS = "processing"


def is_eligible_for_verification_retry(item: Disbursement | Mapping[str, Any]) -> bool:
    status = item.get("order_status") if isinstance(item, Mapping) else item.order_status
    return status == VERIFICATION_RETRY_STATUS


@dataclass
class DisbursementsClient(BaseClient):
    verification_secret: str | None = None

    async def get(self, disbursement_id: int) -> Disbursement:
        return await self._get_model(f"/disbursements/{int(disbursement_id)}", Disbursement)

    async def trigger_callback(self, cmpss_disbursement_id: str) -> Disbursement | ActionResult:
        return await self._action(
            "POST",
            "/disbursements/trigger-callback",
            Disbursement,
            json_body={"cmpss_disbursement_id": cmpss_disbursement_id},
        )

    async def query_timeout_order(self, cmpss_disbursement_id: str) -> Disbursement | ActionResult:
        """Ask the backend to re-verify a disbursement stuck in ``processing``.

        The endpoint is guarded by a static collaborator secret rather than the
        admin session, so the configured value is sent verbatim.
        """
        if not self.verification_secret:
            raise MissingSecretError("CMPSS_ADMIN_VERIFICATION_SECRET is not configured")
        return await self._action(
            "POST",
            "/disbursements/query-timeout-order",
            Disbursement,
            json_body={"cmpss_disbursement_id": cmpss_disbursement_id},
            headers={VERIFICATION_SECRET_HEADER: self.verification_secret},
        )

    async def repush_disbursement_order(self, cmpss_disbursement_id: str) -> Disbursement | ActionResult:
        return await self._action(
            "POST",
            "/disbursements/repush-disbursement-order",
            Disbursement,
            json_body={"cmpss_disbursement_id": cmpss_disbursement_id},
        )
