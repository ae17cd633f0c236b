"""Cart service layer.

Cart editing endpoints plus ``sync``, which is how a client accepts the
corrections reported by a drifted checkout.  Applying a coupon only
validates it; the use is claimed when the order is committed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional
from uuid import UUID

import structlog
from django.db import transaction

from modules.carts.exceptions import CartItemNotFound, CouponAlreadyApplied
from modules.carts.reconciliation import CartReconciler, ReconciliationResult
from modules.coupons.constants import COUPON_MISSING
from modules.coupons.exceptions import CouponNotFound, CouponRejected
from modules.products.exceptions import OutOfStock, ProductNotFound

if TYPE_CHECKING:
    from modules.carts.models import Cart
    from modules.carts.repositories.interfaces import ICartRepository
    from modules.coupons.services import CouponService
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CartSync:
    """What ``CartService.sync`` wrote back to the cart.

    ``coupon_rejection`` is set when the cart's coupon was no longer usable
    and has been detached.
    """

    cart: Cart
    reconciliation: ReconciliationResult
    coupon_rejection: Optional[str] = None

    @property
    def altered(self) -> bool:
        return self.reconciliation.altered or self.coupon_rejection is not None


class CartService:
    def __init__(
        self,
        cart_repository: ICartRepository,
        product_repository: IProductRepository,
        coupon_service: CouponService,
        reconciler: Optional[CartReconciler] = None,
    ) -> None:
        self._cart_repo = cart_repository
        self._product_repo = product_repository
        self._coupon_service = coupon_service
        self._reconciler = reconciler or CartReconciler(product_repository)

    def get_cart(self, customer_id: UUID) -> Cart:
        return self._cart_repo.get_or_create_for_customer(customer_id)

    @transaction.atomic
    def add_product(self, customer_id: UUID, product_id: UUID, quantity: int = 1) -> Cart:
        """Add a product to the cart (merging with an existing line).

        Raises:
            ProductNotFound: the product does not exist.
            OutOfStock: the product has no stock left.
        """
        product = self._product_repo.get_by_id(str(product_id))
        if product is None:
            raise ProductNotFound(f"Product {product_id} not found.")
        if not product.in_stock:
            raise OutOfStock(f"Product {product_id} is out of stock.")

        cart = self._cart_repo.get_for_update(customer_id)
        self._cart_repo.add_item(cart, product.id, quantity)
        return cart

    @transaction.atomic
    def remove_product(self, customer_id: UUID, product_id: UUID) -> Cart:
        cart = self._cart_repo.get_for_update(customer_id)
        if not self._cart_repo.remove_item(cart, product_id):
            raise CartItemNotFound(f"Product {product_id} is not in the cart.")
        logger.info(
            "cart.item_removed", customer_id=str(customer_id), product_id=str(product_id)
        )
        return cart

    @transaction.atomic
    def apply_coupon(self, customer_id: UUID, code: str) -> Cart:
        """Attach a coupon to the cart after checking it is usable.

        Raises:
            CouponAlreadyApplied: the cart already has a coupon.
            CouponNotFound: no coupon with that code.
            CouponRejected: inactive, expired or limit reached.
        """
        log = logger.bind(customer_id=str(customer_id))
        cart = self._cart_repo.get_for_update(customer_id)
        if cart.coupon_id:
            raise CouponAlreadyApplied("Coupon already applied.")

        coupon = self._coupon_service.get_by_code(code)
        self._coupon_service.validate(coupon)

        cart.coupon = coupon
        self._cart_repo.save(cart)
        log.info("cart.coupon_applied", coupon_id=str(coupon.id), code=coupon.code)
        return cart

    @transaction.atomic
    def remove_coupon(self, customer_id: UUID) -> Cart:
        cart = self._cart_repo.get_for_update(customer_id)
        if cart.coupon_id:
            cart.coupon = None
            self._cart_repo.save(cart)
            logger.info("cart.coupon_removed", customer_id=str(customer_id))
        return cart

    @transaction.atomic
    def set_wallet(self, customer_id: UUID, use_wallet: bool) -> Cart:
        cart = self._cart_repo.get_for_update(customer_id)
        cart.use_wallet = use_wallet
        self._cart_repo.save(cart)
        logger.info(
            "cart.wallet_toggled", customer_id=str(customer_id), use_wallet=use_wallet
        )
        return cart

    @transaction.atomic
    def sync(self, customer_id: UUID) -> CartSync:
        """Accept the corrections a drifted checkout reports.

        Clamped quantities and dropped lines are written back, and a coupon
        that is no longer usable is detached, so the next check is clean.
        """
        cart = self._cart_repo.get_for_update(customer_id)
        result = self._reconciler.reconcile(self._cart_repo.lines(cart), lock=True)
        if result.altered:
            self._cart_repo.replace_lines(cart, result.as_cart_lines())

        coupon_rejection = None
        if cart.coupon_id:
            try:
                self._coupon_service.peek(str(cart.coupon_id))
            except CouponNotFound:
                coupon_rejection = COUPON_MISSING
            except CouponRejected as exc:
                coupon_rejection = exc.reason.value
            if coupon_rejection is not None:
                cart.coupon = None
                self._cart_repo.save(cart)

        outcome = CartSync(cart, result, coupon_rejection)
        logger.info(
            "cart.synced",
            customer_id=str(customer_id),
            altered=outcome.altered,
            coupon_rejection=coupon_rejection,
        )
        return outcome
