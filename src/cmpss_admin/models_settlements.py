from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Settlement(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    merchant_id: int | None = None
    merchant_name: str | None = None
    currency_name: str | None = None
    fiat_amount: str
    usdt_amount: str | None = None
    status: str
    note: str | None = None
    tronscan_url: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class ProviderSettlement(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    type: str | None = None
    status: str
    user_id: int | None = None
    before_balance: str | None = None
    fiat_amount: str
    after_balance: str | None = None
    settlement_fee_percent: str | None = None
    settlement_fee_fixed: str | None = None
    settlement_fee: str | None = None
    usdt_address: str | None = None
    usdt_amount: str | None = None
    tronscan_url: str | None = None
    provider_method_id: int | None = None
    provider_method_name: str | None = None
    provider_name: str | None = None
    payment_method_name: str | None = None
    currency_code: str | None = None
    settlement_metadata: dict[str, Any] = Field(default_factory=dict)
    is_active: bool | None = None
    note: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class MerchantMethod(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    name: str | None = None
    currency_name: str | None = None
    currency_sign: str | None = None
    balance: str = "0"


class SettlementApproval(BaseModel):
    note: str | None = None
    usdt_amount: float | None = None
    tronscan_url: str | None = None


class SettlementRejection(BaseModel):
    reason: str


class MerchantSettlementCreate(BaseModel):
    merchant_method_id: int
    fiat_amount: float = Field(gt=0)
    currency_name: str | None = None
    note: str | None = None
