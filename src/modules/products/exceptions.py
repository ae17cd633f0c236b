"""Product domain exceptions."""

from __future__ import annotations


class ProductNotFound(Exception):
    """The requested product does not exist or has been soft-deleted."""


class OutOfStock(Exception):
    """The product has no stock left and cannot be added to a cart."""
