"""Cart Reconciler.

Walks the cart lines against live product records:

- product missing (or soft-deleted) or out of stock -> line dropped;
- stock below the requested quantity               -> quantity clamped;
- otherwise                                         -> line kept as is.

Any drop or clamp marks the result ``altered``.  Totals are accumulated
over the surviving, post-clamp lines.  The walk is deterministic: the same
cart and the same product state always give the same result, whether the
caller is a dry-run check or a commit holding row locks.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, List, Tuple
from uuid import UUID

import structlog

from modules.products import pricing

if TYPE_CHECKING:
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CartLine:
    product_id: UUID
    quantity: int


@dataclass(frozen=True)
class ReconciledLine:
    product_id: UUID
    product_name: str
    requested_quantity: int
    quantity: int
    unit_price: Decimal
    unit_cost: Decimal
    subtotal: Decimal
    profit: Decimal

    @property
    def clamped(self) -> bool:
        return self.quantity < self.requested_quantity


@dataclass(frozen=True)
class ReconciliationResult:
    altered: bool
    total: Decimal
    profit: Decimal
    lines: Tuple[ReconciledLine, ...]
    dropped_product_ids: Tuple[UUID, ...]

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def as_cart_lines(self) -> List[CartLine]:
        return [CartLine(line.product_id, line.quantity) for line in self.lines]


class CartReconciler:
    def __init__(self, product_repository: IProductRepository) -> None:
        self._product_repo = product_repository

    def reconcile(
        self, lines: Iterable[CartLine], lock: bool = False
    ) -> ReconciliationResult:
        """Reconcile *lines* (in cart order) against current stock.

        With ``lock=True`` the product rows stay locked until the caller's
        transaction ends, so the stock read here is the stock a commit
        will consume.
        """
        lines = list(lines)
        products = self._product_repo.get_many(
            [line.product_id for line in lines], lock=lock
        )

        altered = False
        total = pricing.ZERO
        profit = pricing.ZERO
        kept: List[ReconciledLine] = []
        dropped: List[UUID] = []

        for line in lines:
            product = products.get(line.product_id)
            if product is None or product.amount < 1:
                dropped.append(line.product_id)
                altered = True
                continue

            quantity = line.quantity
            if product.amount < quantity:
                quantity = product.amount
                altered = True

            subtotal = pricing.line_subtotal(product, quantity)
            line_profit = pricing.line_profit(product, quantity)
            total += subtotal
            profit += line_profit
            kept.append(
                ReconciledLine(
                    product_id=product.id,
                    product_name=product.name,
                    requested_quantity=line.quantity,
                    quantity=quantity,
                    unit_price=pricing.effective_price(product),
                    unit_cost=pricing.round2(product.price_org),
                    subtotal=subtotal,
                    profit=line_profit,
                )
            )

        result = ReconciliationResult(
            altered=altered,
            total=pricing.round2(total),
            profit=pricing.round2(profit),
            lines=tuple(kept),
            dropped_product_ids=tuple(dropped),
        )
        logger.info(
            "cart.reconciled",
            altered=altered,
            line_count=len(kept),
            dropped=len(dropped),
            clamped=sum(1 for line in kept if line.clamped),
            total=str(result.total),
        )
        return result
