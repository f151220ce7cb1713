from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from cmpss_admin.auth_store import AuthStore
from cmpss_admin.config import ClientConfig
from cmpss_admin.context import AdminContext, build_context
from cmpss_admin.models import Identity
from fakes import BASE_URL, FakeBackend


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def config(tmp_path) -> ClientConfig:
    return ClientConfig(api_base_url=BASE_URL, session_dir=tmp_path / "session", verification_secret="do-secret")


@pytest.fixture()
def auth_store(tmp_path) -> AuthStore:
    return AuthStore(directory=tmp_path / "session")


@pytest.fixture()
def identity() -> Identity:
    return Identity(id=7, username="ops", role="admin", is_active=True, require_2fa=False)


@pytest.fixture()
def redirects() -> list[str]:
    return []


@pytest.fixture()
def make_context(config, auth_store, backend, redirects) -> Callable[..., AdminContext]:
    def _make(**overrides: Any) -> AdminContext:
        return build_context(
            overrides.pop("config", config),
            on_login_redirect=lambda: redirects.append("login"),
            auth_store=auth_store,
            transport=backend.transport,
            **overrides,
        )

    return _make
