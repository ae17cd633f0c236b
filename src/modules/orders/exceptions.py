"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from modules.orders.dtos import OrderDraftDTO


class OrderNotFound(Exception):
    """The requested order does not exist."""


class EmptyCart(Exception):
    """Checkout was attempted on a cart without items."""


class CartDrifted(Exception):
    """The cart no longer matches live stock or coupon state.

    Carries the corrected draft so the client can show what changed.
    Nothing was written when this is raised.
    """

    def __init__(self, draft: OrderDraftDTO) -> None:
        self.draft = draft
        super().__init__("Cart changed since it was last checked.")


class InvalidOrderStatus(Exception):
    """The requested transition is not part of the order graph."""


class ForbiddenTransition(Exception):
    """The actor's role does not allow this transition on this order."""


class OrderAccessDenied(Exception):
    """The actor may not read this order."""


class NotACourier(Exception):
    """The customer chosen for delivery does not have the delivery role."""


class InsufficientStock(Exception):
    """A stock decrement lost a race after reconciliation."""


class OrderStorageFailure(Exception):
    """The database failed while committing an order; nothing was saved."""
