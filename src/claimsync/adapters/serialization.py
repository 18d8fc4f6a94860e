"""JSON-safe (de)serialisation of canonical claims and sync results."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter

from claimsync.domain.model import Claim

if TYPE_CHECKING:
    from claimsync.domain.sync import SyncResult

_CLAIM_ADAPTER: TypeAdapter[Claim] = TypeAdapter(Claim)


def claim_to_payload(claim: Claim) -> dict[str, Any]:
    return _CLAIM_ADAPTER.dump_python(claim, mode="json")


def claim_from_payload(payload: Any) -> Claim:
    """Rebuild a claim from ``claim_to_payload`` output; raises ``pydantic.ValidationError``."""

    return _CLAIM_ADAPTER.validate_python(payload)


def sync_result_to_payload(result: SyncResult) -> dict[str, Any]:
    """Render the success response body shared by the HTTP endpoint and the CLI."""

    payload: dict[str, Any] = {
        "success": True,
        "claims": [claim_to_payload(claim) for claim in result.claims],
        "total": result.total,
        "source": result.source.value,
        "cachedAt": result.cached_at.isoformat(),
        "expiresAt": result.expires_at.isoformat(),
    }
    if result.warnings:
        payload["warnings"] = [
            {"accountId": warning.account_id, "error": warning.error}
            for warning in result.warnings
        ]
    if result.stats:
        payload["stats"] = {
            account_id: {
                "listed": stats.listed,
                "retained": stats.retained,
                "filtered": stats.filtered,
            }
            for account_id, stats in result.stats.items()
        }
    return payload


__all__ = ["claim_from_payload", "claim_to_payload", "sync_result_to_payload"]
