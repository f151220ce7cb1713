from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AccountDetails(BaseModel):
    model_config = ConfigDict(extra="allow")

    account_number: str | None = None


class Disbursement(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    cmpss_disbursement_id: str
    merchant_disbursement_id: str | None = None
    third_party_provider_id: str | None = None
    third_party_status: str | None = None
    order_amount: str
    merchant_fee: str | None = None
    provider_commission: str | None = None
    cmpss_commission: str | None = None
    order_status: str
    retry_callback_count: int = 0
    retry_verify_count: int = 0
    order_metadata: dict[str, Any] = Field(default_factory=dict)
    account_details: AccountDetails | None = None
    payment_method_name: str | None = None
    currency_name: str | None = None
    currency_code: str | None = None
    merchant_name: str | None = None
    merchant_id: int | None = None
    provider_name: str | None = None
    provider_method_name: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
