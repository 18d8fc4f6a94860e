"""Amounts, fees and refund figures."""

from __future__ import annotations

from typing import TYPE_CHECKING

from claimsync.domain.model import FinancialFields

from . import signals
from .extract import as_datetime, as_float, as_str, pick

if TYPE_CHECKING:
    from claimsync.domain.model import EnrichedClaim

    from .signals import MappingContext


def refund_percentage(refunded: float | None, claimed: float | None) -> float | None:
    if refunded is None or claimed is None or claimed <= 0:
        return None
    return round(refunded / claimed * 100, 2)


def map_financial(bundle: EnrichedClaim, context: MappingContext) -> FinancialFields:
    _ = context
    order = bundle.order
    returns = bundle.return_details
    payment = signals.first_payment(bundle)
    item = signals.first_order_item(bundle)
    return_shipment = signals.first_return_shipment(bundle)

    claimed = signals.claimed_amount(bundle)
    refunded = pick(
        as_float,
        (returns, ("refund_amount",)),
        (returns, ("refund", "amount")),
        (payment, ("transaction_amount_refunded",)),
    )
    shipping_cost = pick(
        as_float, (payment, ("shipping_cost",)), (order, ("shipping_cost",))
    )
    marketplace_fee = pick(
        as_float, (payment, ("marketplace_fee",)), (item, ("sale_fee",))
    )
    return_shipping_cost = pick(
        as_float, (returns, ("shipping_cost",)), (return_shipment, ("cost",))
    )
    costs = [
        value
        for value in (refunded, shipping_cost, marketplace_fee, return_shipping_cost)
        if value is not None
    ]

    return FinancialFields(
        currency_id=pick(
            as_str,
            (order, ("currency_id",)),
            (payment, ("currency_id",)),
            (bundle.claim, ("currency_id",)),
        ),
        claimed_amount=claimed,
        refunded_amount=refunded,
        unit_price=pick(as_float, (item, ("unit_price",)), (bundle.product, ("price",))),
        shipping_cost=shipping_cost,
        marketplace_fee=marketplace_fee,
        return_shipping_cost=return_shipping_cost,
        total_cost=round(sum(costs), 2) if costs else None,
        refund_percentage=refund_percentage(refunded, claimed),
        payment_method=pick(as_str, (payment, ("payment_method_id",))),
        refund_at=pick(
            as_datetime,
            (returns, ("refund_at",)),
            (bundle.claim, ("resolution", "refund_date")),
        ),
    )
