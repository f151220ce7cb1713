from .auth import AuthClient
from .base import BaseClient
from .disbursements_client import (
    VERIFICATION_RETRY_STATUS,
    DisbursementsClient,
    is_eligible_for_verification_retry,
)
from .payments_client import PaymentsClient
from .settlements_client import ProviderSettlementsClient, SettlementAmountError, SettlementsClient

__all__ = [
    "AuthClient",
    "BaseClient",
    "DisbursementsClient",
    "PaymentsClient",
    "ProviderSettlementsClient",
    "SettlementAmountError",
    "SettlementsClient",
    "VERIFICATION_RETRY_STATUS",
    "is_eligible_for_verification_retry",
]
