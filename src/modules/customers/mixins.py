"""View helpers that resolve the acting customer from ``request.user``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework.exceptions import PermissionDenied

from modules.customers.exceptions import CustomerNotFound
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.customers.services import CustomerService

if TYPE_CHECKING:
    from modules.customers.models import Customer


class CustomerContextMixin:
    """Adds ``get_customer()`` to a DRF view.

    An authenticated user without a customer profile cannot use the
    checkout endpoints and gets a 403.
    """

    customer_service_class = CustomerService

    def get_customer(self) -> Customer:
        service = self.customer_service_class(CustomerDjangoRepository())
        try:
            return service.get_for_user(self.request.user)
        except CustomerNotFound as exc:
            raise PermissionDenied(str(exc)) from exc
