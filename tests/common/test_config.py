from __future__ import annotations

import os
from datetime import timedelta

import pytest

from claimsync.config import (
    ConfigurationError,
    MissingConfigurationError,
    float_env_var,
    get_marketplace_config,
    get_security_config,
    get_sync_config,
    optional_env_var,
    require_env_vars,
)


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_raises_when_any_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_VAR", raising=False)
    monkeypatch.setenv("BLANK_VAR", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_VAR", "BLANK_VAR"])

    assert "BLANK_VAR, MISSING_VAR" in str(exc.value)


def test_optional_env_var_treats_blank_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "  ")
    assert optional_env_var("EXAMPLE_VAR") is None

    monkeypatch.setenv("EXAMPLE_VAR", " value ")
    assert optional_env_var("EXAMPLE_VAR") == "value"
    assert os.getenv("EXAMPLE_VAR") == " value "


@pytest.mark.parametrize("raw", ["fast", "0", "-3"])
def test_float_env_var_rejects_invalid_values(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("EXAMPLE_RATE", raw)

    with pytest.raises(ConfigurationError):
        float_env_var("EXAMPLE_RATE", 1.0)


def test_float_env_var_falls_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_RATE", raising=False)

    assert float_env_var("EXAMPLE_RATE", 2.5) == 2.5


def test_marketplace_config_reads_rate_and_base_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MARKETPLACE_BASE_URL", "https://marketplace.test")
    monkeypatch.setenv("MARKETPLACE_MAX_CALLS_PER_SECOND", "20")
    monkeypatch.setenv("CLAIMSYNC_HTTP_CACHE", "memory")

    config = get_marketplace_config()

    assert config.base_url == "https://marketplace.test"
    assert config.api.base_url == "https://marketplace.test"
    assert config.api.ratelimit is not None
    assert config.api.ratelimit.max_calls == 20
    assert config.api.cache is None
    assert config.reference.cache is not None
    assert config.reference.cache.backend == "memory"
    assert config.api.retry.max_attempts == 3
    assert config.api.timeout_seconds == 30.0
    assert config.reference.timeout_seconds == 5.0


def test_sync_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CLAIMSYNC_SYNC_TIMEOUT_SECONDS", raising=False)

    config = get_sync_config()

    assert config.cache_ttl == timedelta(minutes=5)
    assert config.default_lookback == timedelta(days=60)
    assert config.timeout_seconds == 120.0


def test_sync_config_reads_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLAIMSYNC_SYNC_TIMEOUT_SECONDS", "45")

    assert get_sync_config().timeout_seconds == 45.0


def test_security_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "CLAIMSYNC_SECRET_SERVICE_URL",
        "CLAIMSYNC_INTERNAL_TOKEN",
        "CLAIMSYNC_JWT_SECRET",
        "CLAIMSYNC_JWT_ALGORITHM",
    ):
        monkeypatch.delenv(name, raising=False)

    config = get_security_config()

    assert config.jwt_secret is None
    assert config.jwt_algorithm == "HS256"
    assert config.internal_token is None
    assert config.secret_service_url is None


def test_security_config_requires_internal_token_for_secret_service(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("CLAIMSYNC_SECRET_SERVICE_URL", "https://secrets.test/get")
    monkeypatch.delenv("CLAIMSYNC_INTERNAL_TOKEN", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        get_security_config()

    assert "CLAIMSYNC_INTERNAL_TOKEN" in str(exc.value)

    monkeypatch.setenv("CLAIMSYNC_INTERNAL_TOKEN", "internal-secret")
    config = get_security_config()
    assert config.secret_service_url == "https://secrets.test/get"
    assert config.internal_token == "internal-secret"
