"""Error taxonomy of the claims pipeline."""

from __future__ import annotations


class ClaimSyncError(RuntimeError):
    """Base class for pipeline errors."""


class ValidationError(ClaimSyncError):
    """Malformed sync request; rejected before any outbound call."""


class AuthError(ClaimSyncError):
    """Caller identity missing, invalid, or not bound to an organisation."""


class CredentialError(ClaimSyncError):
    """Account unknown or inactive, or its stored secret is missing/undecodable."""

    def __init__(self, message: str, *, account_id: str) -> None:
        super().__init__(message)
        self.account_id = account_id


class TransientFetchError(ClaimSyncError):
    """Outbound call failed after exhausting retries, or failed in a non-retryable way."""

    def __init__(self, message: str, *, url: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class PersistenceError(ClaimSyncError):
    """Cache or durable-store write failed."""


class SyncTimeoutError(ClaimSyncError):
    """The overall sync exceeded its deadline."""

    hint = "Reduce the date range or the number of accounts and try again."

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Claims sync did not finish within {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds
