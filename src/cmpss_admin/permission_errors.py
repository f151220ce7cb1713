"""Classification of 403 responses from the admin backend.

The backend embeds the missing permission in the free-text ``detail`` field,
e.g. ``"Missing admin permission: disbursements.view"``. That marker string is
part of the server's error contract and must match exactly.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

MISSING_PERMISSION_MARKER = "Missing admin permission: "
_MISSING_PERMISSION_PATTERN = re.compile(re.escape(MISSING_PERMISSION_MARKER) + r"(.+)")


@dataclass(frozen=True)
class PermissionDenial:
    raw_detail: str
    missing_permission: str | None = None

    def message(self, action: str) -> str:
        if self.missing_permission:
            return f"You don't have permission to {action} ({self.missing_permission})"
        return f"Insufficient permissions to {action}"


def extract_missing_permission(detail: str | None) -> str | None:
    if not detail:
        return None
    match = _MISSING_PERMISSION_PATTERN.search(detail)
    if match is None:
        return None
    permission = match.group(1).strip()
    return permission or None


def classify_permission_error(status_code: int | None, detail: str | None) -> PermissionDenial | None:
    """Return a denial for 403 responses, or None when the status is anything else."""
    if status_code != 403:
        return None
    return PermissionDenial(raw_detail=detail or "", missing_permission=extract_missing_permission(detail))
