from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from dotenv import load_dotenv

VERIFICATION_SECRET_HEADER = "x-do-secret"

_TRUTHY = frozenset({"1", "true", "yes", "on"})

Number = TypeVar("Number", int, float)


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    api_base_url: str
    timeout_seconds: float = 15.0
    verify_ssl: bool = True
    per_page: int = 20
    verification_secret: str | None = None
    session_dir: Path | None = None
    telemetry_enabled: bool = False


def _env_text(name: str) -> str:
    return (os.getenv(name) or "").strip()


def _env_flag(name: str, default: bool) -> bool:
    raw = _env_text(name)
    return raw.lower() in _TRUTHY if raw else default


def _env_number(
    name: str,
    default: Number,
    cast: Callable[[str], Number],
    *,
    minimum: Number,
    inclusive: bool,
) -> Number:
    raw = _env_text(name)
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid {name}: expected a {cast.__name__}, got {raw!r}") from exc
    if value < minimum or (value == minimum and not inclusive):
        bound = ">=" if inclusive else ">"
        raise ConfigError(f"Invalid {name}: expected {bound} {minimum}, got {value}")
    return value


def load_config(env_file: str | None = None) -> ClientConfig:
    """Load config from environment with optional .env override.

    The API base URL is a deploy-time setting; there is no hardcoded fallback.
    The verification secret is a collaborator credential and is kept exactly
    as configured; only an empty value counts as unset.
    """
    load_dotenv(env_file)

    api_base_url = _env_text("CMPSS_ADMIN_API_BASE_URL")
    if not api_base_url:
        raise ConfigError("Missing required config value: CMPSS_ADMIN_API_BASE_URL")

    session_dir = _env_text("CMPSS_ADMIN_SESSION_DIR")
    return ClientConfig(
        api_base_url=api_base_url.rstrip("/"),
        timeout_seconds=_env_number("CMPSS_ADMIN_TIMEOUT_SECONDS", 15.0, float, minimum=0.0, inclusive=False),
        verify_ssl=_env_flag("CMPSS_ADMIN_VERIFY_SSL", True),
        per_page=_env_number("CMPSS_ADMIN_PER_PAGE", 20, int, minimum=1, inclusive=True),
        verification_secret=os.getenv("CMPSS_ADMIN_VERIFICATION_SECRET") or None,
        session_dir=Path(session_dir) if session_dir else None,
        telemetry_enabled=_env_flag("CMPSS_ADMIN_TELEMETRY_ENABLED", False),
    )
