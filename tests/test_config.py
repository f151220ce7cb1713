from pathlib import Path

import pytest

from cmpss_admin.config import ConfigError, load_config

CONFIG_KEYS = [
    "CMPSS_ADMIN_API_BASE_URL",
    "CMPSS_ADMIN_TIMEOUT_SECONDS",
    "CMPSS_ADMIN_VERIFY_SSL",
    "CMPSS_ADMIN_PER_PAGE",
    "CMPSS_ADMIN_VERIFICATION_SECRET",
    "CMPSS_ADMIN_SESSION_DIR",
    "CMPSS_ADMIN_TELEMETRY_ENABLED",
]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch) -> None:
    # setenv then delenv so anything load_dotenv writes is undone afterwards
    for key in CONFIG_KEYS:
        monkeypatch.setenv(key, "placeholder")
        monkeypatch.delenv(key)


def test_config_defaults(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("CMPSS_ADMIN_API_BASE_URL", "https://admin.example.com/api/")

    config = load_config(str(tmp_path / ".missing-env"))

    assert config.api_base_url == "https://admin.example.com/api"
    assert config.timeout_seconds == 15.0
    assert config.verify_ssl is True
    assert config.per_page == 20
    assert config.verification_secret is None
    assert config.session_dir is None
    assert config.telemetry_enabled is False


def test_config_reads_env_file(tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "\n".join(
            [
                "CMPSS_ADMIN_API_BASE_URL=https://staging.example.com",
                "CMPSS_ADMIN_TIMEOUT_SECONDS=5.5",
                "CMPSS_ADMIN_VERIFY_SSL=false",
                "CMPSS_ADMIN_PER_PAGE=50",
                "CMPSS_ADMIN_VERIFICATION_SECRET=shared-secret",
                f"CMPSS_ADMIN_SESSION_DIR={tmp_path / 'sessions'}",
                "CMPSS_ADMIN_TELEMETRY_ENABLED=yes",
            ]
        ),
        encoding="utf-8",
    )

    config = load_config(str(env_file))

    assert config.api_base_url == "https://staging.example.com"
    assert config.timeout_seconds == 5.5
    assert config.verify_ssl is False
    assert config.per_page == 50
    assert config.verification_secret == "shared-secret"
    assert config.session_dir == Path(tmp_path / "sessions")
    assert config.telemetry_enabled is True


def test_missing_base_url_is_rejected(tmp_path) -> None:
    with pytest.raises(ConfigError, match="CMPSS_ADMIN_API_BASE_URL"):
        load_config(str(tmp_path / ".missing-env"))


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("CMPSS_ADMIN_TIMEOUT_SECONDS", "abc"),
        ("CMPSS_ADMIN_TIMEOUT_SECONDS", "0"),
        ("CMPSS_ADMIN_PER_PAGE", "ten"),
        ("CMPSS_ADMIN_PER_PAGE", "0"),
    ],
)
def test_invalid_numbers_name_the_variable(monkeypatch, tmp_path, key, value) -> None:
    monkeypatch.setenv("CMPSS_ADMIN_API_BASE_URL", "https://admin.example.com")
    monkeypatch.setenv(key, value)

    with pytest.raises(ConfigError, match=key):
        load_config(str(tmp_path / ".missing-env"))


def test_empty_secret_is_treated_as_unset(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("CMPSS_ADMIN_API_BASE_URL", "https://admin.example.com")
    monkeypatch.setenv("CMPSS_ADMIN_VERIFICATION_SECRET", "")

    assert load_config(str(tmp_path / ".missing-env")).verification_secret is None


def test_secret_is_kept_exactly_as_configured(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("CMPSS_ADMIN_API_BASE_URL", "https://admin.example.com")
    monkeypatch.setenv("CMPSS_ADMIN_VERIFICATION_SECRET", " do-secret ")

    assert load_config(str(tmp_path / ".missing-env")).verification_secret == " do-secret "
