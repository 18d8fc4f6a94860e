"""Caller authentication and secret-store settings."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, require_env_vars

JWT_ALGORITHM = "HS256"


@dataclass(frozen=True, slots=True)
class SecurityConfig:
    jwt_secret: str | None = None
    jwt_algorithm: str = JWT_ALGORITHM
    internal_token: str | None = None
    secret_service_url: str | None = None


def get_security_config() -> SecurityConfig:
    """Read caller-auth settings; the secret service needs the internal token to be set."""

    secret_service_url = optional_env_var("CLAIMSYNC_SECRET_SERVICE_URL")
    internal_token = optional_env_var("CLAIMSYNC_INTERNAL_TOKEN")
    if secret_service_url is not None:
        internal_token = require_env_vars(["CLAIMSYNC_INTERNAL_TOKEN"])[
            "CLAIMSYNC_INTERNAL_TOKEN"
        ].strip()
    return SecurityConfig(
        jwt_secret=optional_env_var("CLAIMSYNC_JWT_SECRET"),
        jwt_algorithm=optional_env_var("CLAIMSYNC_JWT_ALGORITHM") or JWT_ALGORITHM,
        internal_token=internal_token,
        secret_service_url=secret_service_url,
    )
