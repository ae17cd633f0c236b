"""Django ORM implementation of the Product repository.

Stock changes are single conditional ``UPDATE`` statements built on
``F()`` expressions, so the database arbitrates concurrent checkouts:
``amount`` can never be driven below zero by a read-modify-write race.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Returns ``None`` for missing, soft-deleted or malformed IDs."""
        try:
            return Product.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_many(self, ids: Iterable[UUID], lock: bool = False) -> Dict[UUID, Product]:
        queryset = Product.objects.alive().filter(id__in=list(ids)).order_by("id")
        if lock:
            queryset = queryset.select_for_update()
        return {product.id: product for product in queryset}

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    def reserve_stock(self, id: UUID, quantity: int) -> bool:
        updated = (
            Product.objects.alive()
            .filter(id=id, amount__gte=quantity)
            .update(
                amount=F("amount") - quantity,
                orders_count=F("orders_count") + 1,
                updated_at=timezone.now(),
            )
        )
        logger.info(
            "product.stock_reserved" if updated else "product.stock_short",
            product_id=str(id),
            quantity=quantity,
        )
        return updated == 1

    def release_stock(self, id: UUID, quantity: int) -> None:
        Product.objects.filter(id=id).update(
            amount=F("amount") + quantity, updated_at=timezone.now()
        )
        logger.info("product.stock_released", product_id=str(id), quantity=quantity)
