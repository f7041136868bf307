from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from vibesync.config import (
    ConflictPolicy,
    InvalidConfigurationValueError,
    MissingConfigurationError,
    env_float,
    get_cache_database_config,
    get_remote_config,
    get_storage_config,
    get_sync_config,
    require_env_vars,
)

if TYPE_CHECKING:
    from pathlib import Path


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_raises_on_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["EXAMPLE_VAR", "OTHER_MISSING_VAR"])

    assert "EXAMPLE_VAR, OTHER_MISSING_VAR" in str(exc.value)


def test_env_float_rejects_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_FLOAT", "soon")

    with pytest.raises(InvalidConfigurationValueError) as exc:
        env_float("EXAMPLE_FLOAT", 1.0)

    assert exc.value.name == "EXAMPLE_FLOAT"


def test_env_float_rejects_negative(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_FLOAT", "-1")

    with pytest.raises(InvalidConfigurationValueError):
        env_float("EXAMPLE_FLOAT", 1.0)


def test_remote_config_requires_base_url() -> None:
    with pytest.raises(MissingConfigurationError):
        get_remote_config()


def test_remote_config_builds_no_cache_headers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VIBESYNC_API_BASE_URL", "https://api.example.test/")
    monkeypatch.setenv("VIBESYNC_API_TOKEN", "secret")

    config = get_remote_config()

    headers = dict(config.resilience.default_headers or {})
    assert config.resilience.base_url == "https://api.example.test"
    assert headers["Authorization"] == "Bearer secret"
    assert "no-store" in headers["Cache-Control"]
    assert config.resilience.retry.allowed_methods == frozenset({"GET"})


def test_sync_config_defaults_and_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    defaults = get_sync_config()
    assert defaults.refresh_interval_seconds == 30.0
    assert defaults.debounce_seconds == pytest.approx(0.3)
    assert defaults.mutation_timeout_seconds == 15.0
    assert defaults.conflict_policy is ConflictPolicy.DROP

    monkeypatch.setenv("VIBESYNC_REFRESH_INTERVAL", "5")
    monkeypatch.setenv("VIBESYNC_DEBOUNCE_MS", "50")
    overridden = get_sync_config()

    assert overridden.refresh_interval_seconds == 5.0
    assert overridden.debounce_seconds == pytest.approx(0.05)


def test_cache_uri_defaults_to_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("VIBESYNC_DATA_DIR", str(tmp_path / "data"))

    storage = get_storage_config()
    database = get_cache_database_config(storage=storage)

    assert storage.like_cache_path() == (tmp_path / "data" / "like_cache.db").resolve()
    assert database.uri.startswith("sqlite+pysqlite:///")
    assert database.uri.endswith("like_cache.db")


def test_cache_uri_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VIBESYNC_CACHE_URI", "sqlite+pysqlite:///:memory:")

    assert get_cache_database_config().uri == "sqlite+pysqlite:///:memory:"
