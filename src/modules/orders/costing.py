"""Delivery Cost Estimator and Wallet Allocator.

Pure money arithmetic; nothing here reads or writes the database.
"""

from __future__ import annotations

from decimal import Decimal

from modules.products.pricing import ZERO, round2


def delivery_fee(distance_km: Decimal, rate_per_km: Decimal) -> Decimal:
    """Fee for delivering ``distance_km`` away at ``rate_per_km``."""
    return round2(Decimal(distance_km) * Decimal(rate_per_km))


def wallet_allocation(
    use_wallet: bool, balance: Decimal, total: Decimal, coupon_amount: Decimal
) -> Decimal:
    """How much of the wallet balance offsets the order.

    The wallet covers at most what is left after the coupon and never the
    delivery fee.
    """
    if not use_wallet:
        return ZERO
    payable = Decimal(total) - Decimal(coupon_amount)
    return round2(max(ZERO, min(Decimal(balance), payable)))


def final_cost(
    total: Decimal,
    delivery: Decimal,
    wallet_amount: Decimal,
    coupon_amount: Decimal,
) -> Decimal:
    return round2(
        Decimal(total) + Decimal(delivery) - Decimal(wallet_amount) - Decimal(coupon_amount)
    )
