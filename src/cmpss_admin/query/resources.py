from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from pydantic import BaseModel

from ..models_disbursements import Disbursement
from ..models_payments import Payment
from ..models_settlements import ProviderSettlement, Settlement
from .filters import FilterKind, FilterSpec


@dataclass(frozen=True)
class ResourceConfig:
    """Everything that differs between one listing endpoint and another."""

    name: str
    path: str
    items_key: str
    label: str
    detail_label: str
    item_model: type[BaseModel]
    filters: tuple[FilterSpec, ...]
    aggregate_defaults: Mapping[str, Any] = field(default_factory=dict)
    # False for listings that open unfiltered by date.
    default_start_today: bool = True

    def filter_spec(self, key: str) -> FilterSpec:
        for spec in self.filters:
            if spec.key == key:
                return spec
        raise KeyError(f"Unknown filter {key!r} for {self.name}")

    @property
    def filter_keys(self) -> tuple[str, ...]:
        return tuple(spec.key for spec in self.filters)

    @property
    def view_action(self) -> str:
        return f"view {self.label}"


_DATE_RANGE = (
    FilterSpec("start_date", "start_date", FilterKind.START_DATE),
    FilterSpec("end_date", "end_date", FilterKind.END_DATE),
)

_COUNT_AND_AMOUNT = [0, "0"]

PAYMENTS = ResourceConfig(
    name="payments",
    path="/payments",
    items_key="payments",
    label="payments",
    detail_label="Payment",
    item_model=Payment,
    filters=(
        FilterSpec("status", "order_status"),
        FilterSpec("payment_method_id", "payment_method_id", FilterKind.INTEGER),
        FilterSpec("currency_id", "currency_id", FilterKind.INTEGER),
        FilterSpec("merchant_id", "merchant_id", FilterKind.INTEGER),
        FilterSpec("merchant_payment_id", "merchant_payment_id"),
        FilterSpec("cmpss_payment_id", "cmpss_payment_id"),
        *_DATE_RANGE,
    ),
    aggregate_defaults={
        "total_amount": "0",
        "total_merchant_fee": "0",
        "total_success": _COUNT_AND_AMOUNT,
        "total_failed": _COUNT_AND_AMOUNT,
        "total_pending": _COUNT_AND_AMOUNT,
    },
)

DISBURSEMENTS = ResourceConfig(
    name="disbursements",
    path="/disbursements",
    items_key="disbursements",
    label="disbursements",
    detail_label="Disbursement",
    item_model=Disbursement,
    filters=(
        FilterSpec("status", "order_status"),
        FilterSpec("payment_method_id", "payment_method_id", FilterKind.INTEGER),
        FilterSpec("currency_id", "currency_id", FilterKind.INTEGER),
        FilterSpec("merchant_id", "merchant_id", FilterKind.INTEGER),
        FilterSpec("merchant_disbursement_id", "merchant_disbursement_id"),
        FilterSpec("cmpss_disbursement_id", "cmpss_disbursement_id"),
        *_DATE_RANGE,
    ),
    aggregate_defaults={
        "total_amount": "0",
        "total_provider_fee": "0",
        "total_merchant_fee": "0",
        "total_success": _COUNT_AND_AMOUNT,
        "total_failed": _COUNT_AND_AMOUNT,
        "total_pending": _COUNT_AND_AMOUNT,
        "total_refunded": _COUNT_AND_AMOUNT,
    },
)

SETTLEMENTS = ResourceConfig(
    name="settlements",
    path="/settlements",
    items_key="settlements",
    label="settlements",
    detail_label="Settlement",
    item_model=Settlement,
    filters=(
        FilterSpec("status", "status"),
        FilterSpec("merchant_id", "merchant_id", FilterKind.INTEGER),
        FilterSpec("currency_id", "currency_id", FilterKind.INTEGER),
        *_DATE_RANGE,
    ),
    default_start_today=False,
)

PROVIDER_SETTLEMENTS = ResourceConfig(
    name="provider-settlements",
    path="/provider-settlements",
    items_key="data",
    label="provider settlements",
    detail_label="Provider settlement",
    item_model=ProviderSettlement,
    filters=(
        FilterSpec("status", "status"),
        FilterSpec("provider_id", "provider_id", FilterKind.INTEGER),
        FilterSpec("currency_code", "currency_code"),
        *_DATE_RANGE,
    ),
    default_start_today=False,
    aggregate_defaults={
        "total_amount": "0.00",
        "total_fees": "0.00",
        "success_count": 0,
        "failed_count": 0,
        "pending_count": 0,
    },
)

RESOURCES: dict[str, ResourceConfig] = {
    config.name: config for config in (PAYMENTS, DISBURSEMENTS, SETTLEMENTS, PROVIDER_SETTLEMENTS)
}
