from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping


class EventCategory(str, Enum):
    AUTH = "auth"
    SESSION = "session"
    FETCH = "api_call_result"
    ERROR = "error"
    PERMISSION_DENIED = "permission_denied"


# Substrings, matched case-insensitively against attribute names.
SENSITIVE_FRAGMENTS = ("password", "token", "secret", "authorization", "username", "account_number", "usdt_address")


@dataclass(frozen=True)
class TelemetryEvent:
    category: EventCategory
    name: str
    source: str
    occurred_at: datetime
    success: bool | None = None
    error_code: str | None = None
    duration_ms: int | None = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def as_record(self, app_name: str) -> dict[str, Any]:
        record: dict[str, Any] = {
            "app_name": app_name,
            "category": self.category.value,
            "name": self.name,
            "source": self.source,
            "occurred_at": self.occurred_at.isoformat(),
        }
        for key in ("success", "error_code", "duration_ms"):
            value = getattr(self, key)
            if value is not None:
                record[key] = value
        if self.attributes:
            record["attributes"] = dict(self.attributes)
        return record


def sensitive_keys(attributes: Mapping[str, Any]) -> list[str]:
    return sorted(
        key for key in attributes if any(fragment in key.lower() for fragment in SENSITIVE_FRAGMENTS)
    )


def build_event(
    category: EventCategory | str,
    name: str,
    *,
    source: str,
    success: bool | None = None,
    error_code: str | None = None,
    duration_ms: int | None = None,
    attributes: Mapping[str, Any] | None = None,
    now: datetime | None = None,
) -> TelemetryEvent:
    """Build an event, refusing categories outside ``EventCategory`` and
    attributes whose names look like credentials or personal data."""
    category = EventCategory(category)
    attributes = dict(attributes or {})
    leaked = sensitive_keys(attributes)
    if leaked:
        raise ValueError(f"Telemetry attributes may not carry credentials or PII: {leaked}")
    return TelemetryEvent(
        category=category,
        name=name,
        source=source,
        occurred_at=now or datetime.now(timezone.utc),
        success=success,
        error_code=error_code,
        duration_ms=duration_ms,
        attributes=attributes,
    )
