import asyncio

import httpx
import pytest

from cmpss_admin.clients import SettlementAmountError, is_eligible_for_verification_retry
from cmpss_admin.config import ClientConfig
from cmpss_admin.exceptions import ForbiddenError, MissingSecretError, NotFoundError, ResponseShapeError
from cmpss_admin.models import ActionResult
from cmpss_admin.models_disbursements import Disbursement
from cmpss_admin.models_payments import Payment
from cmpss_admin.models_settlements import ProviderSettlement, Settlement
from cmpss_admin.ui_errors import describe_failure
from fakes import BASE_URL, payment

MERCHANT_METHODS = {
    "data": [
        {"id": 1, "name": "GCash", "currency_name": "PHP", "currency_sign": "₱", "balance": "500.00"},
        {"id": 2, "name": "Maya", "currency_name": "PHP", "currency_sign": "₱", "balance": "0"},
    ]
}


@pytest.fixture()
def ctx(make_context, auth_store, identity):
    auth_store.save("tok-1", identity)
    return make_context()


def test_payment_detail(ctx, backend) -> None:
    backend.json("GET", "/payments/5", payment(5, order_status="pending"))

    item = asyncio.run(ctx.payments.get(5))

    assert isinstance(item, Payment)
    assert item.order_status == "pending"
    assert backend.last().headers["Authorization"] == "Bearer tok-1"


def test_payment_actions_send_identifying_fields(ctx, backend) -> None:
    backend.add("POST", "/payments/trigger-callback", httpx.Response(200))
    backend.json("POST", "/payments/mark-paid-order-refunded", {"success": True, "message": "Refunded"})
    backend.json("POST", "/payments/update-third-party-id", payment(5, third_party_provider_id="TP-9"))

    callback = asyncio.run(ctx.payments.trigger_callback("CP-5"))
    refunded = asyncio.run(ctx.payments.mark_paid_order_refunded("CP-5"))
    updated = asyncio.run(ctx.payments.update_third_party_id("CP-5", "TP-9"))

    assert callback == ActionResult(success=True)
    assert refunded.message == "Refunded"
    assert isinstance(updated, Payment) and updated.third_party_provider_id == "TP-9"
    assert backend.body(0) == {"cmpss_payment_id": "CP-5"}
    assert backend.body(1) == {"cmpss_payment_id": "CP-5"}
    assert backend.body(2) == {"cmpss_payment_id": "CP-5", "third_party_provider_id": "TP-9"}


def test_verification_secret_only_on_query_timeout_order(ctx, backend) -> None:
    backend.json("POST", "/disbursements/trigger-callback", {"success": True})
    backend.json("POST", "/disbursements/query-timeout-order", {"success": True})
    backend.json("POST", "/disbursements/repush-disbursement-order", {"success": True})

    asyncio.run(ctx.disbursements.trigger_callback("CD-1"))
    asyncio.run(ctx.disbursements.query_timeout_order("CD-1"))
    asyncio.run(ctx.disbursements.repush_disbursement_order("CD-1"))

    trigger, verify, repush = backend.requests
    assert "x-do-secret" not in trigger.headers
    assert verify.headers["x-do-secret"] == "do-secret"
    assert verify.headers["Authorization"] == "Bearer tok-1"
    assert "x-do-secret" not in repush.headers
    assert backend.body(1) == {"cmpss_disbursement_id": "CD-1"}


def test_query_timeout_order_refuses_without_secret(make_context, backend, auth_store, identity, tmp_path) -> None:
    auth_store.save("tok-1", identity)
    ctx = make_context(config=ClientConfig(api_base_url=BASE_URL, session_dir=tmp_path / "session"))

    with pytest.raises(MissingSecretError):
        asyncio.run(ctx.disbursements.query_timeout_order("CD-1"))

    assert backend.requests == []


def test_verification_retry_eligibility() -> None:
    processing = Disbursement(id=1, cmpss_disbursement_id="CD-1", order_amount="10", order_status="processing")

    assert is_eligible_for_verification_retry(processing) is True
    assert is_eligible_for_verification_retry({"order_status": "success"}) is False


def test_settlement_approve_omits_absent_optionals(ctx, backend) -> None:
    backend.json("PATCH", "/settlements/3/approve", {"id": 3, "fiat_amount": "100", "status": "paid"})

    result = asyncio.run(ctx.settlements.approve(3, note="paid out", usdt_amount="12.5", tronscan_url=""))

    assert isinstance(result, Settlement) and result.status == "paid"
    assert backend.last().method == "PATCH"
    assert backend.body() == {"note": "paid out", "usdt_amount": 12.5}


def test_provider_settlement_review_paths(ctx, backend) -> None:
    backend.json("PATCH", "/provider-settlements/8/approve", {"success": True})
    backend.json("PATCH", "/provider-settlements/8/reject", {"id": 8, "fiat_amount": "5", "status": "failed"})

    asyncio.run(ctx.provider_settlements.approve(8, tronscan_url="https://tronscan.org/#/transaction/abc"))
    rejected = asyncio.run(ctx.provider_settlements.reject(8, "duplicate"))

    assert backend.body(0) == {"tronscan_url": "https://tronscan.org/#/transaction/abc"}
    assert backend.body(1) == {"reason": "duplicate"}
    assert isinstance(rejected, ProviderSettlement) and rejected.status == "failed"


def test_settlement_detail_not_found(ctx, backend) -> None:
    backend.json("GET", "/settlements/404", {"detail": "Settlement not found"}, status_code=404)

    with pytest.raises(NotFoundError) as excinfo:
        asyncio.run(ctx.settlements.get(404))

    failure = describe_failure(excinfo.value, action="load settlement", resource_label="Settlement")
    assert failure.message == "Settlement not found"


def test_malformed_detail_is_shape_error(ctx, backend) -> None:
    backend.json("GET", "/disbursements/2", {"id": 2})

    with pytest.raises(ResponseShapeError):
        asyncio.run(ctx.disbursements.get(2))


def test_forbidden_mutation_is_classified(ctx, backend) -> None:
    backend.json(
        "PATCH",
        "/settlements/3/reject",
        {"detail": "Missing admin permission: settlements.reject"},
        status_code=403,
    )

    with pytest.raises(ForbiddenError) as excinfo:
        asyncio.run(ctx.settlements.reject(3, "wrong amount"))

    failure = describe_failure(excinfo.value, action="reject settlements")
    assert failure.message == "You don't have permission to reject settlements (settlements.reject)"


def test_merchant_methods(ctx, backend) -> None:
    backend.json("GET", "/merchant-methods", MERCHANT_METHODS)

    methods = asyncio.run(ctx.settlements.merchant_methods())

    assert [method.name for method in methods] == ["GCash", "Maya"]
    assert methods[0].balance == "500.00"


def test_create_settlement_within_balance(ctx, backend) -> None:
    backend.json("GET", "/merchant-methods", MERCHANT_METHODS)
    backend.json("POST", "/merchant-settlements", {"id": 11, "fiat_amount": "250.50", "status": "pending"})

    created = asyncio.run(ctx.settlements.create(1, "250.50", note="weekly"))

    assert isinstance(created, Settlement) and created.id == 11
    assert backend.body() == {
        "merchant_method_id": 1,
        "fiat_amount": 250.5,
        "currency_name": "PHP",
        "note": "weekly",
    }


@pytest.mark.parametrize(("method_id", "amount"), [(1, "600"), (2, "1"), (1, "0"), (1, "abc"), (9, "1")])
def test_create_settlement_rejected_before_sending(ctx, backend, method_id, amount) -> None:
    backend.json("GET", "/merchant-methods", MERCHANT_METHODS)

    with pytest.raises(SettlementAmountError):
        asyncio.run(ctx.settlements.create(method_id, amount))

    assert [request.method for request in backend.requests] == ["GET"]


def test_balance_error_names_the_limit(ctx, backend) -> None:
    backend.json("GET", "/merchant-methods", MERCHANT_METHODS)

    with pytest.raises(SettlementAmountError, match="₱ 500.00"):
        asyncio.run(ctx.settlements.create(1, "600"))
