from __future__ import annotations

import csv
import json
from collections.abc import Iterable, Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel

EMPTY_VALUE = "—"
SENSITIVE_KEYS = {"token", "secret", "password", "account_number"}


def normalize_value(value: Any) -> str:
    if value is None:
        return EMPTY_VALUE
    if isinstance(value, str):
        clean = value.strip()
        return clean or EMPTY_VALUE
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.astimezone().strftime("%Y-%m-%d %H:%M:%S %z")
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, sort_keys=True, default=str)
    return str(value)


def sanitize_row(row: Mapping[str, Any], headers: list[str]) -> dict[str, str]:
    sanitized: dict[str, str] = {}
    for header in headers:
        if any(token in header.lower() for token in SENSITIVE_KEYS):
            sanitized[header] = EMPTY_VALUE
            continue
        sanitized[header] = normalize_value(row.get(header))
    return sanitized


def _as_mapping(row: BaseModel | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(row, BaseModel):
        return row.model_dump(mode="json")
    return row


def export_current_view(
    *,
    resource: str,
    rows: Iterable[BaseModel | Mapping[str, Any]],
    headers: list[str],
    output_dir: str | Path = "exports",
    filters: Mapping[str, Any] | None = None,
) -> Path:
    """Write the rows currently on screen to ``<resource>_<timestamp>.csv``."""
    destination = Path(output_dir)
    destination.mkdir(parents=True, exist_ok=True)

    now = datetime.now().astimezone()
    timestamp = now.strftime("%Y%m%d_%H%M%S")
    path = destination / f"{resource}_{timestamp}.csv"

    with path.open("w", newline="", encoding="utf-8-sig") as handle:
        handle.write(f"# timestamp_local: {now.isoformat()}\n")
        handle.write(f"# resource: {resource}\n")
        handle.write(f"# filters: {json.dumps(dict(filters or {}), sort_keys=True, default=str)}\n")
        writer = csv.DictWriter(handle, fieldnames=headers, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow(sanitize_row(_as_mapping(row), headers=headers))

    return path
