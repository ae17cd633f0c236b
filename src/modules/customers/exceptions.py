"""Customer domain exceptions."""

from __future__ import annotations


class CustomerNotFound(Exception):
    """The referenced customer (or the caller's profile) does not exist."""


class InactiveCustomer(Exception):
    """The customer is deactivated and cannot check out."""
