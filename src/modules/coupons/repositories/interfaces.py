"""Coupon repository interface."""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.coupons.models import Coupon


class ICouponRepository(IRepository["Coupon"]):
    """Repository contract for the Coupon aggregate."""

    @abstractmethod
    def get_by_code(self, code: str) -> Optional[Coupon]:
        """Retrieve a live coupon by code (case-insensitive)."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Coupon]:
        """Retrieve a live coupon with a row-level lock."""

    @abstractmethod
    def claim_use(self, id: str, now: datetime) -> bool:
        """Increment ``used`` by one if, and only if, the coupon is still
        redeemable at *now*.  Returns whether a use was claimed."""

    @abstractmethod
    def release_use(self, id: str) -> bool:
        """Give one use back (``used - 1``) unless ``used`` is already zero.
        Returns whether a use was released."""
