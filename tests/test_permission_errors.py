import pytest

from cmpss_admin.permission_errors import (
    MISSING_PERMISSION_MARKER,
    PermissionDenial,
    classify_permission_error,
    extract_missing_permission,
)


def test_marker_is_the_backend_contract() -> None:
    assert MISSING_PERMISSION_MARKER == "Missing admin permission: "


def test_403_with_marker_extracts_permission() -> None:
    denial = classify_permission_error(403, "Missing admin permission: disbursements.view")

    assert denial == PermissionDenial(
        raw_detail="Missing admin permission: disbursements.view",
        missing_permission="disbursements.view",
    )
    assert denial.message("view disbursements") == (
        "You don't have permission to view disbursements (disbursements.view)"
    )


def test_permission_stops_at_end_of_line() -> None:
    detail = "Forbidden. Missing admin permission: payments.refund\nContact an owner"

    assert extract_missing_permission(detail) == "payments.refund"


def test_403_without_marker_is_generic_denial() -> None:
    denial = classify_permission_error(403, "Forbidden")

    assert denial is not None
    assert denial.missing_permission is None
    assert denial.message("approve settlements") == "Insufficient permissions to approve settlements"


def test_403_without_detail() -> None:
    denial = classify_permission_error(403, None)

    assert denial == PermissionDenial(raw_detail="", missing_permission=None)


@pytest.mark.parametrize("status_code", [None, 200, 400, 401, 404, 500])
def test_other_statuses_are_not_permission_errors(status_code) -> None:
    assert classify_permission_error(status_code, "Missing admin permission: payments.view") is None


def test_marker_match_is_exact() -> None:
    assert extract_missing_permission("missing admin permission: payments.view") is None
    assert extract_missing_permission("Missing admin permission: ") is None
