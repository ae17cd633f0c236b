"""Customer repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.customers.models import Customer


class ICustomerRepository(IRepository["Customer"]):
    """Repository contract for the Customer aggregate."""

    @abstractmethod
    def get_by_user_id(self, user_id: Any) -> Optional[Customer]:
        """Retrieve the profile attached to an auth user."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Customer]:
        """Retrieve a customer with a row-level lock (SELECT FOR UPDATE).

        Checkout takes this lock first: it serializes commits of the same
        customer's cart and guards the wallet / spend counters.
        """
