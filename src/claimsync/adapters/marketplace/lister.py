"""Paginated claim listing for one seller account."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from claimsync.config.marketplace import DEFAULT_PAGE_SIZE

if TYPE_CHECKING:
    from datetime import datetime

    from claimsync.domain.model import Payload

    from .client import MarketplaceClient

log = getLogger(__name__)

DEFAULT_MAX_PAGES = 200


@dataclass(slots=True)
class MarketplaceClaimsLister:
    """Walk the claim-search endpoint with offset pagination.

    Date bounds go to the API as filters and are not re-checked locally. Listing stops
    on a short or empty page, once ``paging.total`` is reached, when a page adds no new
    claim ids, or after ``max_pages`` pages. Any page failure propagates as
    ``TransientFetchError`` and aborts the account.
    """

    client: MarketplaceClient
    page_size: int = DEFAULT_PAGE_SIZE
    max_pages: int = DEFAULT_MAX_PAGES

    async def list_claims(
        self,
        seller_id: str,
        token: str,
        date_from: datetime,
        date_to: datetime,
    ) -> list[Payload]:
        claims: list[Payload] = []
        seen: set[str] = set()
        offset = 0

        for page_number in range(1, self.max_pages + 1):
            page = await self.client.search_claims(
                seller_id=seller_id,
                token=token,
                offset=offset,
                limit=self.page_size,
                date_from=date_from,
                date_to=date_to,
            )
            rows = page.data
            added = 0
            for row in rows:
                claim_id = row.get("id")
                if claim_id is None or str(claim_id) in seen:
                    continue
                seen.add(str(claim_id))
                claims.append(row)
                added += 1

            log.debug(
                f"Seller {seller_id}: page {page_number} offset={offset} "
                f"rows={len(rows)} new={added} total={page.paging.total}"
            )

            if len(rows) < self.page_size or added == 0:
                break
            offset += self.page_size
            if page.paging.total is not None and offset >= page.paging.total:
                break
        else:
            log.warning(
                f"Seller {seller_id}: stopped listing after {self.max_pages} pages; "
                "narrow the date range to see older claims"
            )

        log.info(f"Seller {seller_id}: listed {len(claims)} claims")
        return claims


__all__ = ["DEFAULT_MAX_PAGES", "MarketplaceClaimsLister"]
