"""Filter values and their request-parameter form.

Values are validated and normalized when they are set, so serialization is a
pure formatting step: only present values are emitted, dates become local
``YYYY-MM-DDTHH:MM`` wall-clock strings and id filters become integers.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Iterable, Mapping

ALL_SENTINEL = "all"
DATE_PARAM_FORMAT = "%Y-%m-%dT%H:%M"
END_OF_DAY = time(23, 59, 59, 999000)


class FilterKind(str, Enum):
    TEXT = "text"
    INTEGER = "integer"
    START_DATE = "start_date"
    END_DATE = "end_date"


@dataclass(frozen=True)
class FilterSpec:
    key: str
    param: str
    kind: FilterKind = FilterKind.TEXT

    @property
    def is_date(self) -> bool:
        return self.kind in {FilterKind.START_DATE, FilterKind.END_DATE}


def start_of_day(value: date | datetime) -> datetime:
    return datetime.combine(_calendar_day(value), time.min)


def end_of_day(value: date | datetime) -> datetime:
    return datetime.combine(_calendar_day(value), END_OF_DAY)


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        clean = value.strip()
        return not clean or clean.lower() == ALL_SENTINEL
    return False


def normalize_value(spec: FilterSpec, value: Any) -> Any:
    """Validate ``value`` for ``spec``; returns None when the filter is unset."""
    if is_empty(value):
        return None
    if spec.kind is FilterKind.INTEGER:
        return _to_int(spec, value)
    if spec.kind is FilterKind.START_DATE:
        return start_of_day(_to_datetime(spec, value))
    if spec.kind is FilterKind.END_DATE:
        return end_of_day(_to_datetime(spec, value))
    return str(value).strip()


def serialize_value(spec: FilterSpec, value: Any) -> Any:
    if spec.is_date:
        return value.strftime(DATE_PARAM_FORMAT)
    if spec.kind is FilterKind.INTEGER:
        return int(value)
    return str(value)


def serialize_filters(specs: Iterable[FilterSpec], values: Mapping[str, Any]) -> dict[str, Any]:
    params: dict[str, Any] = {}
    for spec in specs:
        value = values.get(spec.key)
        if is_empty(value):
            continue
        params[spec.param] = serialize_value(spec, value)
    return params


def parse_filter_params(specs: Iterable[FilterSpec], params: Mapping[str, Any]) -> dict[str, Any]:
    """Inverse of ``serialize_filters``: rebuild filter values from parameters."""
    values: dict[str, Any] = {}
    for spec in specs:
        raw = params.get(spec.param)
        normalized = normalize_value(spec, raw)
        if normalized is not None:
            values[spec.key] = normalized
    return values


def _calendar_day(value: date | datetime) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    return value


def _to_int(spec: FilterSpec, value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Filter {spec.key!r} expects an integer id, got {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"Filter {spec.key!r} expects an integer id, got {value!r}") from exc


def _to_datetime(spec: FilterSpec, value: Any) -> date | datetime:
    if isinstance(value, (date, datetime)):
        return value
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"Filter {spec.key!r} expects a date, got {value!r}") from exc
