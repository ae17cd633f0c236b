"""Cart repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Iterable, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.carts.models import Cart, CartItem
    from modules.carts.reconciliation import CartLine


class ICartRepository(IRepository["Cart"]):
    """Repository contract for the Cart aggregate (Cart + CartItems)."""

    @abstractmethod
    def get_for_customer(self, customer_id: UUID) -> Optional[Cart]:
        """Return the customer's cart or ``None``; never writes."""

    @abstractmethod
    def get_or_create_for_customer(self, customer_id: UUID) -> Cart:
        """Return the customer's cart, creating an empty one if needed."""

    @abstractmethod
    def get_for_update(self, customer_id: UUID) -> Cart:
        """Return the customer's cart with its row locked."""

    @abstractmethod
    def lines(self, cart: Cart) -> List[CartLine]:
        """Cart contents as ``(product_id, quantity)`` lines in cart order."""

    @abstractmethod
    def add_item(self, cart: Cart, product_id: UUID, quantity: int) -> CartItem:
        """Add *quantity* of a product, merging with an existing line."""

    @abstractmethod
    def remove_item(self, cart: Cart, product_id: UUID) -> bool:
        """Drop a product's line; ``False`` if it was not in the cart."""

    @abstractmethod
    def replace_lines(self, cart: Cart, lines: Iterable[CartLine]) -> None:
        """Make the cart contain exactly *lines*, keeping surviving items."""

    @abstractmethod
    def clear(self, cart: Cart) -> None:
        """Remove every item, the coupon and the wallet flag."""
