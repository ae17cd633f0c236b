"""Pricing Calculator.

Pure functions over a product's price fields.  Nothing here touches the
database, so the same numbers come out of a dry-run check and a commit.

- effective price = ``net - net * discount / 100`` when a non-zero discount
  is set, otherwise ``net``;
- line subtotal   = ``quantity * effective price``;
- line profit     = ``quantity * (effective price - org)``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Protocol

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


class Priced(Protocol):
    price_org: Decimal
    price_net: Decimal
    discount_percent: Optional[Decimal]


def round2(value: Decimal) -> Decimal:
    """Round a money amount half-up to two decimal places."""
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def effective_price(product: Priced) -> Decimal:
    net = Decimal(product.price_net)
    discount = product.discount_percent
    if discount:
        return round2(net - net * Decimal(discount) / 100)
    return round2(net)


def line_subtotal(product: Priced, quantity: int) -> Decimal:
    return round2(effective_price(product) * quantity)


def line_profit(product: Priced, quantity: int) -> Decimal:
    return round2((effective_price(product) - Decimal(product.price_org)) * quantity)
