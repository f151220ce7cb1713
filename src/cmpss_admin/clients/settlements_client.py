from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel

from ..models import ActionResult
from ..models_settlements import (
    MerchantMethod,
    MerchantSettlementCreate,
    ProviderSettlement,
    Settlement,
    SettlementApproval,
    SettlementRejection,
)
from .base import BaseClient, _validate

logger = logging.getLogger(__name__)


class SettlementAmountError(ValueError):
    """Requested settlement amount exceeds the merchant method balance."""


@dataclass
class _ReviewableClient(BaseClient):
    base_path = ""
    item_model: type[BaseModel] = Settlement

    async def get(self, settlement_id: int) -> Any:
        return await self._get_model(f"{self.base_path}/{int(settlement_id)}", self.item_model)

    async def approve(
        self,
        settlement_id: int,
        note: str | None = None,
        usdt_amount: float | str | None = None,
        tronscan_url: str | None = None,
    ) -> Any:
        body = SettlementApproval(
            note=note,
            usdt_amount=float(usdt_amount) if usdt_amount not in (None, "") else None,
            tronscan_url=tronscan_url or None,
        )
        return await self._action(
            "PATCH",
            f"{self.base_path}/{int(settlement_id)}/approve",
            self.item_model,
            json_body=body.model_dump(exclude_none=True),
        )

    async def reject(self, settlement_id: int, reason: str) -> Any:
        body = SettlementRejection(reason=reason)
        return await self._action(
            "PATCH",
            f"{self.base_path}/{int(settlement_id)}/reject",
            self.item_model,
            json_body=body.model_dump(),
        )


@dataclass
class SettlementsClient(_ReviewableClient):
    base_path = "/settlements"
    item_model: type[BaseModel] = Settlement

    async def merchant_methods(self) -> list[MerchantMethod]:
        data = await self._request("GET", "/merchant-methods")
        items = data.get("data") if isinstance(data, dict) else data
        if not isinstance(items, list):
            items = []
        return [_validate(MerchantMethod, item, "/merchant-methods") for item in items]

    async def create(
        self,
        merchant_method_id: int,
        fiat_amount: float | str,
        note: str | None = None,
        *,
        method: MerchantMethod | None = None,
    ) -> Settlement | ActionResult:
        """Create a merchant settlement, refusing amounts above the method balance.

        ``method`` skips the ``/merchant-methods`` lookup when the caller
        already holds it.
        """
        if method is None:
            methods = await self.merchant_methods()
            method = next((m for m in methods if m.id == int(merchant_method_id)), None)
            if method is None:
                raise SettlementAmountError(f"Unknown merchant method {merchant_method_id}")

        amount = _to_decimal(fiat_amount)
        balance = _to_decimal(method.balance)
        if amount <= 0:
            raise SettlementAmountError(f"Amount must be greater than zero, got {amount}")
        if amount > balance:
            sign = f"{method.currency_sign} " if method.currency_sign else ""
            raise SettlementAmountError(f"Amount cannot exceed available balance of {sign}{balance}")

        body = MerchantSettlementCreate(
            merchant_method_id=method.id,
            fiat_amount=float(amount),
            currency_name=method.currency_name,
            note=note or None,
        )
        logger.info("merchant_settlement_create", extra={"merchant_method_id": method.id})
        return await self._action(
            "POST",
            "/merchant-settlements",
            Settlement,
            json_body=body.model_dump(exclude_none=True),
        )


@dataclass
class ProviderSettlementsClient(_ReviewableClient):
    base_path = "/provider-settlements"
    item_model: type[BaseModel] = ProviderSettlement


def _to_decimal(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise SettlementAmountError(f"Invalid amount {value!r}") from exc
    if not amount.is_finite():
        raise SettlementAmountError(f"Invalid amount {value!r}")
    return amount
