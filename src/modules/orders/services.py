"""Order service layer (Use Cases).

Two checkout entry points share one pricing pipeline (``_build_draft``):

- ``check_order`` is a dry run: it reconciles the cart, peeks at the
  coupon, allocates the wallet and prices delivery, and persists nothing.
- ``create_order`` re-runs the pipeline under row locks inside a single
  transaction and, if nothing drifted, applies every side effect of the
  purchase at once.

``update_status`` is the post-creation lifecycle.  Lock order is always
customer, cart, products (by PK), coupon; the lifecycle takes the order
row first, then customer, then products.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, List, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction

from modules.carts.reconciliation import CartLine, CartReconciler
from modules.coupons.constants import COUPON_MISSING
from modules.coupons.exceptions import CouponNotFound, CouponRejected
from modules.coupons.services import coupon_discount
from modules.customers.exceptions import CustomerNotFound, InactiveCustomer
from modules.customers.models import CustomerRole
from modules.orders.constants import ROLE_TRANSITIONS, OrderStatus
from modules.orders.costing import delivery_fee, wallet_allocation
from modules.orders.dtos import CostBreakdownDTO, DraftLineDTO, OrderDraftDTO
from modules.orders.events import (
    OrderCreated,
    OrderDeliveryAssigned,
    OrderRejected,
    OrderStatusChanged,
)
from modules.orders.exceptions import (
    CartDrifted,
    EmptyCart,
    ForbiddenTransition,
    InsufficientStock,
    InvalidOrderStatus,
    NotACourier,
    OrderAccessDenied,
    OrderNotFound,
    OrderStorageFailure,
)
from modules.products.pricing import ZERO

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.carts.models import Cart
    from modules.carts.repositories.interfaces import ICartRepository
    from modules.coupons.services import CouponService
    from modules.customers.models import Customer
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.orders.dtos import UpdateOrderStatusDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for checkout and the order lifecycle.

    Receives repositories via constructor injection.  ``rate_per_km``
    defaults to ``settings.DELIVERY_RATE_PER_KM``, read at call time.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        customer_repository: ICustomerRepository,
        cart_repository: ICartRepository,
        product_repository: IProductRepository,
        coupon_service: CouponService,
        reconciler: Optional[CartReconciler] = None,
        rate_per_km: Optional[Decimal] = None,
    ) -> None:
        self._order_repo = order_repository
        self._customer_repo = customer_repository
        self._cart_repo = cart_repository
        self._product_repo = product_repository
        self._coupon_service = coupon_service
        self._reconciler = reconciler or CartReconciler(product_repository)
        self._rate_per_km = rate_per_km

    @property
    def rate_per_km(self) -> Decimal:
        if self._rate_per_km is not None:
            return Decimal(self._rate_per_km)
        return Decimal(settings.DELIVERY_RATE_PER_KM)

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def check_order(self, customer_id: UUID) -> OrderDraftDTO:
        """Price the customer's cart without changing anything.

        A drifted draft is returned, not raised: the caller decides how to
        present it.  Calling this twice on unchanged state gives equal
        drafts.

        Raises:
            CustomerNotFound / InactiveCustomer: bad customer.
            EmptyCart: the cart has no items.
        """
        customer = self._customer_repo.get_by_id(str(customer_id))
        self._ensure_active(customer, customer_id)

        cart = self._cart_repo.get_for_customer(customer.id)
        lines = self._cart_repo.lines(cart) if cart is not None else []
        if not lines:
            raise EmptyCart("Cart is empty.")

        draft = self._build_draft(customer, cart, lines, lock=False)
        logger.info(
            "order.checked",
            customer_id=str(customer.id),
            drifted=draft.drifted,
            final_cost=str(draft.costs.final_cost),
        )
        return draft

    def create_order(
        self, customer_id: UUID, idempotency_key: Optional[str] = None
    ) -> Order:
        """Commit the customer's cart as a new order.

        Raises:
            CustomerNotFound / InactiveCustomer: bad customer.
            EmptyCart: the cart has no items.
            CartDrifted: stock or coupon changed; carries the corrected draft.
            CouponRejected: the coupon lost a redemption race.
            InsufficientStock: a stock decrement lost a race.
            OrderStorageFailure: the database failed; everything rolled back.
        """
        try:
            return self._commit(customer_id, idempotency_key)
        except IntegrityError as exc:
            # Two requests with the same key raced past the idempotency check.
            if idempotency_key:
                existing = self._order_repo.get_by_idempotency_key(
                    idempotency_key, customer_id
                )
                if existing is not None:
                    return existing
            logger.error("order.storage_failed", customer_id=str(customer_id))
            raise OrderStorageFailure("Could not save the order.") from exc
        except DatabaseError as exc:
            logger.error("order.storage_failed", customer_id=str(customer_id))
            raise OrderStorageFailure("Could not save the order.") from exc

    @transaction.atomic
    def _commit(self, customer_id: UUID, idempotency_key: Optional[str]) -> Order:
        log = logger.bind(customer_id=str(customer_id))
        log.info("order.creation_started")

        # 1. Serialize commits per customer
        customer = self._customer_repo.get_for_update(str(customer_id))

        # Idempotency check under the customer lock (keys are per customer)
        if idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(
                idempotency_key, customer_id
            )
            if existing:
                log.info(
                    "order.idempotency_hit",
                    order_id=str(existing.id),
                    key=idempotency_key,
                )
                return existing

        self._ensure_active(customer, customer_id)

        # 2. Cart
        cart = self._cart_repo.get_for_update(customer.id)
        lines = self._cart_repo.lines(cart)
        if not lines:
            raise EmptyCart("Cart is empty.")

        # 3. Same pipeline as the check, holding product and coupon locks
        draft = self._build_draft(customer, cart, lines, lock=True)
        if draft.drifted:
            log.warning(
                "order.drifted",
                altered=draft.altered,
                coupon_rejection=draft.coupon_rejection,
            )
            raise CartDrifted(draft)

        costs = draft.costs

        # 4. Coupon
        if draft.coupon_id is not None:
            self._coupon_service.redeem(str(draft.coupon_id))

        # 5. Stock (draft lines follow the PK lock order)
        for line in sorted(draft.lines, key=lambda item: item.product_id):
            if not self._product_repo.reserve_stock(line.product_id, line.quantity):
                raise InsufficientStock(
                    f"Product {line.product_id}: requested {line.quantity}."
                )

        # 6. Order + items, initial history, outbox event
        order = self._order_repo.create(
            {
                "customer_id": customer.id,
                "coupon_id": draft.coupon_id,
                "idempotency_key": idempotency_key,
                "total": costs.total,
                "profit": costs.profit,
                "delivery_fee": costs.delivery,
                "wallet_amount": costs.wallet,
                "coupon_amount": costs.coupon,
                "items": [
                    {
                        "product_id": line.product_id,
                        "product_name": line.product_name,
                        "quantity": line.quantity,
                        "unit_price": line.unit_price,
                        "unit_cost": line.unit_cost,
                    }
                    for line in draft.lines
                ],
            }
        )
        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                customer_id=str(customer.id),
                order_number=order.order_number,
                total=str(costs.total),
                final_cost=str(costs.final_cost),
                coupon_code=draft.coupon_code or "",
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id, new_status=OrderStatus.PENDING, notes="Order created"
        )

        # 7. Wallet debit and spend counters (customer row is locked)
        customer.wallet -= costs.wallet
        customer.orders_count += 1
        customer.spent += costs.total - costs.coupon - costs.wallet
        self._customer_repo.save(customer)

        # 8. Cart
        self._cart_repo.clear(cart)

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            final_cost=str(costs.final_cost),
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    def _build_draft(
        self, customer: Customer, cart: Cart, lines: List[CartLine], lock: bool
    ) -> OrderDraftDTO:
        result = self._reconciler.reconcile(lines, lock=lock)

        coupon_amount = ZERO
        coupon_id = None
        coupon_rejection = None
        if cart.coupon_id:
            try:
                coupon = self._coupon_service.peek(str(cart.coupon_id), lock=lock)
            except CouponNotFound:
                coupon_rejection = COUPON_MISSING
            except CouponRejected as exc:
                coupon_rejection = exc.reason.value
            else:
                coupon_id = coupon.id
                coupon_amount = coupon_discount(result.total, coupon.value)

        wallet = wallet_allocation(
            cart.use_wallet, customer.wallet, result.total, coupon_amount
        )
        delivery = delivery_fee(customer.distance_km, self.rate_per_km)

        return OrderDraftDTO(
            customer_id=customer.id,
            lines=[
                DraftLineDTO(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    requested_quantity=line.requested_quantity,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    unit_cost=line.unit_cost,
                    subtotal=line.subtotal,
                )
                for line in result.lines
            ],
            dropped_product_ids=list(result.dropped_product_ids),
            costs=CostBreakdownDTO(
                total=result.total,
                profit=result.profit,
                delivery=delivery,
                wallet=wallet,
                coupon=coupon_amount,
            ),
            altered=result.altered,
            coupon_id=coupon_id,
            coupon_code=cart.coupon.code if cart.coupon_id else None,
            coupon_rejection=coupon_rejection,
            use_wallet=cart.use_wallet,
        )

    @staticmethod
    def _ensure_active(customer: Optional[Customer], customer_id: Any) -> None:
        if customer is None:
            raise CustomerNotFound(f"Customer {customer_id} not found.")
        if not customer.is_active:
            raise InactiveCustomer(f"Customer {customer_id} is inactive.")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @transaction.atomic
    def update_status(
        self, order_id: UUID, actor: Customer, dto: UpdateOrderStatusDTO
    ) -> Order:
        """Move an order along the lifecycle and/or assign a courier.

        Raises:
            OrderNotFound: order does not exist.
            ForbiddenTransition: the actor's role or assignment forbids it.
            CustomerNotFound / NotACourier: bad ``delivery_id``.
            InvalidOrderStatus: the transition is not in the order graph.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        old_status = order.status
        new_status = dto.status
        log = logger.bind(
            order_id=str(order.id),
            actor_id=str(actor.id),
            role=actor.role,
            current_status=old_status,
            new_status=new_status,
        )

        allowed = ROLE_TRANSITIONS.get(actor.role, frozenset())
        if not allowed:
            log.warning("order.transition_forbidden")
            raise ForbiddenTransition(f"Role '{actor.role}' cannot change orders.")
        if order.is_terminal:
            raise InvalidOrderStatus(f"Order is already {old_status}.")

        courier = self._resolve_assignment(actor, dto.delivery_id)
        status_changes = new_status != old_status

        if not status_changes:
            if courier is None:
                raise InvalidOrderStatus(f"Order is already {old_status}.")
        else:
            if not order.can_transition_to(new_status):
                log.warning("order.invalid_transition")
                raise InvalidOrderStatus(
                    f"Cannot transition from {old_status} to {new_status}."
                )
            if (old_status, new_status) not in allowed:
                log.warning("order.transition_forbidden")
                raise ForbiddenTransition(
                    f"Role '{actor.role}' cannot move an order from "
                    f"{old_status} to {new_status}."
                )
            if actor.role == CustomerRole.DELIVERY:
                courier = self._courier_claim(order, actor, new_status)

        if status_changes:
            order.status = new_status
            order.add_domain_event(
                OrderStatusChanged(
                    aggregate_id=order.id,
                    old_status=old_status,
                    new_status=new_status,
                    changed_by=str(actor.id),
                )
            )
            if new_status == OrderStatus.REJECTED:
                self._release(order)

        if courier is not None and courier.id != order.delivery_id:
            order.delivery = courier
            order.add_domain_event(
                OrderDeliveryAssigned(
                    aggregate_id=order.id,
                    delivery_id=str(courier.id),
                    assigned_by=str(actor.id),
                )
            )
            log.info("order.delivery_assigned", delivery_id=str(courier.id))

        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            new_status=order.status,
            old_status=old_status,
            changed_by_id=actor.id,
            notes=dto.notes,
        )

        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(order.id)) or order

    def _resolve_assignment(
        self, actor: Customer, delivery_id: Optional[UUID]
    ) -> Optional[Customer]:
        if delivery_id is None:
            return None
        if not actor.is_staff_role:
            raise ForbiddenTransition("Only managers and admins assign couriers.")
        courier = self._customer_repo.get_by_id(str(delivery_id))
        if courier is None:
            raise CustomerNotFound(f"Customer {delivery_id} not found.")
        if not courier.is_courier:
            raise NotACourier(f"Customer {delivery_id} is not a courier.")
        return courier

    @staticmethod
    def _courier_claim(order: Order, actor: Customer, new_status: str) -> Customer:
        """A courier accepting an order takes it; later moves need ownership."""
        assigned = order.delivery_id
        if new_status == OrderStatus.ACCEPTED:
            if assigned is not None and assigned != actor.id:
                raise ForbiddenTransition("Order is assigned to another courier.")
            return actor
        if assigned != actor.id:
            raise ForbiddenTransition("Order is not assigned to you.")
        return actor

    def _release(self, order: Order) -> None:
        """Undo what the commit of a now rejected order took.

        Stock and the coupon use go back, the wallet debit is refunded, and
        the customer's ``orders_count`` / ``spent`` drop by what the
        commit added.
        """
        customer = self._customer_repo.get_for_update(str(order.customer_id))
        for item in order.items.order_by("product_id"):
            self._product_repo.release_stock(item.product_id, item.quantity)
        if order.coupon_id is not None:
            self._coupon_service.release(str(order.coupon_id))

        refunded = order.wallet_amount
        if customer is not None:
            paid = order.total - order.coupon_amount - order.wallet_amount
            customer.wallet += refunded
            customer.orders_count = max(customer.orders_count - 1, 0)
            customer.spent = max(customer.spent - paid, ZERO)
            self._customer_repo.save(customer)

        order.add_domain_event(
            OrderRejected(
                aggregate_id=order.id,
                customer_id=str(order.customer_id),
                refunded_wallet=str(refunded),
            )
        )
        logger.info(
            "order.released",
            order_id=str(order.id),
            refunded_wallet=str(refunded),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str, actor: Customer) -> Order:
        """Retrieve a single order visible to *actor*.

        Raises:
            OrderNotFound: the order does not exist.
            OrderAccessDenied: a plain user asked for someone else's order.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        if actor.role == CustomerRole.USER and order.customer_id != actor.id:
            raise OrderAccessDenied("You can only view your own orders.")
        return order

    def visible_orders(self, actor: Customer) -> QuerySet:
        """Orders *actor* may list; plain users only see their own."""
        if actor.role == CustomerRole.USER:
            return self._order_repo.queryset({"customer_id": actor.id})
        return self._order_repo.queryset()
