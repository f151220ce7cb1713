from __future__ import annotations

import json
from typing import Mapping

from .exceptions import (
    ApiError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    ServerError,
    UnauthorizedError,
    ValidationError,
)

_STATUS_ERRORS: dict[int, type[ApiError]] = {
    400: ValidationError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    429: RateLimitError,
}


def detail_text(detail: object) -> str | None:
    """Render a backend ``detail`` as one line of text.

    Field-validation details (a list of ``{"loc": [...], "msg": ...}``) become
    ``"field: message"`` pairs; anything else that is not a string is dumped
    as JSON.
    """
    if detail is None:
        return None
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list) and detail and all(isinstance(item, Mapping) and "msg" in item for item in detail):
        parts = []
        for item in detail:
            loc = [str(part) for part in item.get("loc") or () if part != "body"]
            parts.append(f"{'.'.join(loc)}: {item['msg']}" if loc else str(item["msg"]))
        return "; ".join(parts)
    return json.dumps(detail, ensure_ascii=False)


def error_class_for(status_code: int) -> type[ApiError]:
    if status_code >= 500:
        return ServerError
    return _STATUS_ERRORS.get(status_code, ApiError)


def map_error(status_code: int, payload: Mapping[str, object] | None) -> ApiError:
    payload = payload or {}
    detail = payload.get("detail")
    return error_class_for(status_code)(
        code=str(payload.get("code") or "HTTP_ERROR"),
        message=detail_text(detail) or str(payload.get("message") or "Request failed"),
        details=detail,
        status_code=status_code,
        raw_payload=dict(payload),
    )
