"""Product repository interface.

Read access for the reconciler plus the two stock mutations the order
service performs (reserve on commit, release on rejection).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_many(
        self, ids: Iterable[UUID], lock: bool = False
    ) -> Dict[UUID, "Product"]:
        """Fetch live products keyed by id.

        Missing and soft-deleted ids are simply absent from the result.
        With ``lock=True`` the rows are locked (SELECT FOR UPDATE) in
        primary-key order.
        """

    @abstractmethod
    def reserve_stock(self, id: UUID, quantity: int) -> bool:
        """Atomically take *quantity* units; ``False`` if stock is short."""

    @abstractmethod
    def release_stock(self, id: UUID, quantity: int) -> None:
        """Atomically give *quantity* units back."""
