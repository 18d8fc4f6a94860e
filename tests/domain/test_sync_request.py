from __future__ import annotations

from datetime import UTC, datetime

import pytest

from claimsync.domain.errors import ValidationError
from claimsync.domain.sync import SyncRequest
from tests.helpers.claims import ACCOUNT_A, ACCOUNT_B


def test_request_normalises_and_deduplicates_account_ids() -> None:
    request = SyncRequest.from_input([ACCOUNT_A.upper(), f" {ACCOUNT_A} ", ACCOUNT_B])

    assert request.account_ids == (ACCOUNT_A, ACCOUNT_B)
    assert request.date_from is None
    assert request.date_to is None
    assert request.force_refresh is False


def test_request_parses_dates() -> None:
    request = SyncRequest.from_input(
        [ACCOUNT_A],
        date_from="2025-01-01T00:00:00Z",
        date_to="2025-01-31T23:59:59-03:00",
        force_refresh=True,
    )

    assert request.date_from == datetime(2025, 1, 1, tzinfo=UTC)
    assert request.date_to == datetime(2025, 2, 1, 2, 59, 59, tzinfo=UTC)
    assert request.force_refresh is True


@pytest.mark.parametrize("account_ids", [None, [], ()])
def test_request_requires_accounts(account_ids: list[object] | None) -> None:
    with pytest.raises(ValidationError, match="At least one"):
        SyncRequest.from_input(account_ids)


@pytest.mark.parametrize("bad_id", ["not-a-uuid", "12345", 42, "", ACCOUNT_A + "0"])
def test_request_rejects_malformed_account_ids(bad_id: object) -> None:
    with pytest.raises(ValidationError, match="Malformed account id"):
        SyncRequest.from_input([ACCOUNT_A, bad_id])


def test_request_rejects_unparseable_dates() -> None:
    with pytest.raises(ValidationError, match="Invalid ISO timestamp"):
        SyncRequest.from_input([ACCOUNT_A], date_from="last week")


def test_request_rejects_inverted_range() -> None:
    with pytest.raises(ValidationError, match="dateFrom"):
        SyncRequest.from_input(
            [ACCOUNT_A], date_from="2025-02-01T00:00:00Z", date_to="2025-01-01T00:00:00Z"
        )
