"""Order domain constants.

Status choices, the transition graph, and the per-role transition table
used by the lifecycle.
"""

from django.db import models

from modules.customers.models import CustomerRole


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    REJECTED = "rejected", "Rejected"
    DELIVERED = "delivered", "Delivered"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.ACCEPTED, OrderStatus.REJECTED},
    OrderStatus.ACCEPTED: {OrderStatus.DELIVERED, OrderStatus.REJECTED},
    OrderStatus.REJECTED: set(),
    OrderStatus.DELIVERED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.REJECTED}

_STAFF_TRANSITIONS: frozenset[tuple[str, str]] = frozenset(
    (old, new) for old, targets in VALID_TRANSITIONS.items() for new in targets
)

# (from, to) pairs each role may perform.  Couriers are further limited
# to orders assigned to them (see ``OrderService.update_status``).
ROLE_TRANSITIONS: dict[str, frozenset[tuple[str, str]]] = {
    CustomerRole.DELIVERY: frozenset(
        {
            (OrderStatus.PENDING, OrderStatus.ACCEPTED),
            (OrderStatus.ACCEPTED, OrderStatus.DELIVERED),
            (OrderStatus.ACCEPTED, OrderStatus.REJECTED),
        }
    ),
    CustomerRole.MANAGER: _STAFF_TRANSITIONS,
    CustomerRole.ADMIN: _STAFF_TRANSITIONS,
    CustomerRole.USER: frozenset(),
}

ORDER_NUMBER_MAX_RETRIES = 5
