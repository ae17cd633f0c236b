"""Django ORM implementation of the Cart repository."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F

from modules.carts.models import Cart, CartItem
from modules.carts.reconciliation import CartLine
from modules.carts.repositories.interfaces import ICartRepository

logger = structlog.get_logger(__name__)


class CartDjangoRepository(ICartRepository):
    """Concrete Cart repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Cart]:
        try:
            return (
                Cart.objects.select_related("coupon")
                .prefetch_related("items__product")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_customer(self, customer_id: UUID) -> Optional[Cart]:
        return (
            Cart.objects.select_related("coupon")
            .filter(customer_id=customer_id)
            .first()
        )

    def get_or_create_for_customer(self, customer_id: UUID) -> Cart:
        cart, created = Cart.objects.select_related("coupon").get_or_create(
            customer_id=customer_id
        )
        if created:
            logger.info("cart.created", customer_id=str(customer_id))
        return cart

    @transaction.atomic
    def get_for_update(self, customer_id: UUID) -> Cart:
        self.get_or_create_for_customer(customer_id)
        return Cart.objects.select_for_update().get(customer_id=customer_id)

    def lines(self, cart: Cart) -> List[CartLine]:
        return [
            CartLine(product_id=product_id, quantity=quantity)
            for product_id, quantity in CartItem.objects.filter(cart=cart)
            .order_by("created_at", "id")
            .values_list("product_id", "quantity")
        ]

    @transaction.atomic
    def add_item(self, cart: Cart, product_id: UUID, quantity: int) -> CartItem:
        item, created = CartItem.objects.get_or_create(
            cart=cart,
            product_id=product_id,
            defaults={"quantity": quantity},
        )
        if not created:
            CartItem.objects.filter(id=item.id).update(
                quantity=F("quantity") + quantity
            )
            item.refresh_from_db(fields=["quantity"])
        logger.info(
            "cart.item_added",
            cart_id=str(cart.id),
            product_id=str(product_id),
            quantity=item.quantity,
        )
        return item

    @transaction.atomic
    def remove_item(self, cart: Cart, product_id: UUID) -> bool:
        deleted, _ = CartItem.objects.filter(cart=cart, product_id=product_id).delete()
        return deleted > 0

    @transaction.atomic
    def replace_lines(self, cart: Cart, lines: Iterable[CartLine]) -> None:
        wanted: Dict[UUID, int] = {line.product_id: line.quantity for line in lines}
        CartItem.objects.filter(cart=cart).exclude(product_id__in=wanted).delete()
        for item in CartItem.objects.filter(cart=cart):
            quantity = wanted[item.product_id]
            if item.quantity != quantity:
                item.quantity = quantity
                item.save(update_fields=["quantity"])
        logger.info("cart.lines_replaced", cart_id=str(cart.id), line_count=len(wanted))

    @transaction.atomic
    def clear(self, cart: Cart) -> None:
        CartItem.objects.filter(cart=cart).delete()
        cart.coupon = None
        cart.use_wallet = False
        cart.save(update_fields=["coupon", "use_wallet"])
        logger.info("cart.cleared", cart_id=str(cart.id))

    @transaction.atomic
    def save(self, entity: Cart) -> Cart:
        entity.save()
        return entity
