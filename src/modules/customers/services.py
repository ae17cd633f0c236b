"""Customer look-ups used by the HTTP layer to resolve the acting user."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from modules.customers.exceptions import CustomerNotFound

if TYPE_CHECKING:
    from modules.customers.models import Customer
    from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerService:
    def __init__(self, repository: ICustomerRepository) -> None:
        self._repo = repository

    def get_for_user(self, user: Any) -> Customer:
        """Return the customer profile of an authenticated user.

        Raises:
            CustomerNotFound: the user has no customer profile.
        """
        customer = self._repo.get_by_user_id(getattr(user, "pk", None))
        if customer is None:
            logger.warning("customer.profile_missing", user_id=getattr(user, "pk", None))
            raise CustomerNotFound("No customer profile for the current user.")
        return customer
