"""Order service layer (Use Cases).

Orchestrates checkout, order look-up, cancellation and the admin
lifecycle.  All write operations are atomic: the service defines the
unit-of-work boundary.

Business rules enforced:
- Online payments are verified before anything is written.
- A gateway payment id can back at most one order; a replay by the same
  user returns the existing order.
- Stock is reserved with a conditional decrement under SELECT FOR UPDATE
  and given back on cancellation.
- Status transitions are validated against the state machine.
- Only the owner or an admin can see an order.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Dict

import structlog
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import QuerySet

from modules.orders.constants import (
    CUSTOMER_CANCELLABLE_STATES,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.exceptions import (
    DuplicatePayment,
    EmptyCart,
    InsufficientStock,
    InvalidOrderStatus,
    MissingPaymentConfirmation,
    OrderAccessDenied,
    OrderNotFound,
)
from modules.orders.pricing import calculate_pricing, estimate_delivery
from modules.products.exceptions import InactiveProduct, ProductNotFound

if TYPE_CHECKING:
    from modules.carts.repositories.interfaces import ICartRepository
    from modules.orders.dtos import CreateOrderDTO, UpdateOrderStatusDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.services import PaymentService
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OrderPlacement:
    """Outcome of checkout: ``created`` is ``False`` for a replayed payment."""

    order: Order
    created: bool


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and the payment service via constructor
    injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        cart_repository: ICartRepository,
        payment_service: PaymentService,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._cart_repo = cart_repository
        self._payment_service = payment_service

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(self, dto: CreateOrderDTO) -> OrderPlacement:
        """Turn the caller's cart into an order.

        Steps:
        1. For online methods, verify the gateway signature (no writes yet).
        2. If the payment already backs an order, replay or reject.
        3. In one transaction: lock and reserve stock for every cart line
           (sorted by product id to avoid deadlocks), snapshot prices,
           persist the order, empty the cart.
        4. ``OrderCreated`` is published after commit.

        Raises:
            MissingPaymentConfirmation: online method without ``payment``.
            SignatureMismatch: the gateway signature is not authentic.
            DuplicatePayment: the payment backs another user's order.
            EmptyCart: nothing to check out.
            ProductNotFound / InactiveProduct: a cart line is no longer sold.
            InsufficientStock: a product cannot cover the requested quantity.
            OrderNumberConflict: no unique order number could be allocated.
        """
        log = logger.bind(user_id=dto.user_id, payment_method=dto.payment_method)
        log.info("order.creation_started")

        payment = dto.payment if dto.is_gateway_payment else None
        if dto.is_gateway_payment:
            if payment is None:
                raise MissingPaymentConfirmation(
                    "Payment confirmation is required for online payment methods."
                )
            self._payment_service.verify(payment, user_id=dto.user_id)

            existing = self._order_repo.get_by_payment(
                payment.razorpay_order_id, payment.razorpay_payment_id
            )
            if existing:
                if existing.user_id != dto.user_id:
                    log.warning(
                        "order.duplicate_payment",
                        payment_id=payment.razorpay_payment_id,
                        order_id=str(existing.id),
                    )
                    raise DuplicatePayment(
                        "This payment has already been used for another order."
                    )
                log.info("order.payment_replayed", order_id=str(existing.id))
                return OrderPlacement(order=existing, created=False)

        order = self._place_order(dto, payment, log)
        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=str(order.total_amount),
        )
        persisted = self._order_repo.get_by_id(str(order.id)) or order
        return OrderPlacement(order=persisted, created=True)

    @transaction.atomic
    def _place_order(self, dto: CreateOrderDTO, payment, log) -> Order:
        cart_items = self._cart_repo.get_items(dto.user_id)
        if not cart_items:
            raise EmptyCart("Your cart is empty.")

        lines = []
        for cart_item in sorted(cart_items, key=lambda i: str(i.product_id)):
            product = self._product_repo.get_for_update(str(cart_item.product_id))
            if not product:
                raise ProductNotFound(f"Product {cart_item.product_id} not found.")
            if not product.is_active:
                raise InactiveProduct(f"{product.name} is no longer available.")
            if not self._product_repo.reserve_stock(str(product.id), cart_item.quantity):
                log.warning(
                    "order.insufficient_stock",
                    product_id=str(product.id),
                    requested=cart_item.quantity,
                    available=product.stock,
                )
                raise InsufficientStock(
                    f"Only {product.stock} unit(s) of {product.name} left in stock."
                )
            log.info(
                "order.stock_reserved",
                product_id=str(product.id),
                quantity=cart_item.quantity,
            )
            lines.append(
                {
                    "product_id": product.id,
                    "name": product.name,
                    "price": product.price,
                    "image": product.image,
                    "quantity": cart_item.quantity,
                }
            )

        pricing = calculate_pricing((line["price"], line["quantity"]) for line in lines)
        address = dto.shipping_address

        order = self._order_repo.create(
            {
                "user_id": dto.user_id,
                "shipping_name": address.name,
                "shipping_phone": address.phone,
                "shipping_street": address.street,
                "shipping_city": address.city,
                "shipping_state": address.state,
                "shipping_zip_code": address.zip_code,
                "shipping_country": address.country,
                "payment_method": dto.payment_method,
                "payment_status": PaymentStatus.PAID if payment else PaymentStatus.PENDING,
                "payment_intent_id": payment.razorpay_order_id if payment else None,
                "payment_id": payment.razorpay_payment_id if payment else None,
                "notes": dto.notes,
                "subtotal": pricing.subtotal,
                "shipping_cost": pricing.shipping_cost,
                "tax": pricing.tax,
                "discount": pricing.discount,
                "total_amount": pricing.total_amount,
                "estimated_delivery": estimate_delivery(),
                "items": lines,
            }
        )

        order.add_domain_event(OrderCreated(aggregate_id=order.id))
        self._order_repo.save(order)
        self._cart_repo.clear(dto.user_id)
        return order

    @transaction.atomic
    def cancel_order(self, order_id: str, user_id: str, note: str = "") -> Order:
        """Cancel the caller's own order and release its stock.

        Acquires a row-level lock on the order first so that concurrent
        cancellations cannot release stock twice.

        Raises:
            OrderNotFound: order does not exist.
            OrderAccessDenied: the caller does not own the order.
            InvalidOrderStatus: already cancelled, or past the point where
                customers may cancel.
        """
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        if order.user_id != user_id:
            raise OrderAccessDenied("You do not have access to this order.")

        log = logger.bind(order_id=str(order.id), current_status=order.status)

        if order.status == OrderStatus.CANCELLED:
            raise InvalidOrderStatus("Order is already cancelled.")
        if order.status not in CUSTOMER_CANCELLABLE_STATES:
            log.warning("order.cancel_not_allowed")
            raise InvalidOrderStatus(
                f"Order cannot be cancelled once it is {order.status}."
            )

        self._cancel(order, note or "Cancelled by customer", log)
        log.info("order.cancelled", cancelled_by="customer")
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def update_status(self, order_id: str, dto: UpdateOrderStatusDTO) -> Order:
        """Admin lifecycle change.

        Setting the current status again only updates the tracking
        number, no history is appended.  Delivering a cash-on-delivery
        order marks it paid.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: transition is not allowed.
        """
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        old_status = order.status
        new_status = OrderStatus(dto.status).value
        log = logger.bind(
            order_id=str(order.id),
            current_status=old_status,
            new_status=new_status,
        )

        if dto.tracking_number:
            order.tracking_number = dto.tracking_number

        if new_status == old_status:
            self._order_repo.save(order)
            log.info("order.status_unchanged")
            return self._order_repo.get_by_id(str(order.id)) or order

        if not order.can_transition_to(new_status):
            log.warning("order.invalid_transition")
            raise InvalidOrderStatus(
                f"Cannot transition from {old_status} to {new_status}."
            )

        if new_status == OrderStatus.CANCELLED:
            self._cancel(order, dto.note or "Cancelled by store", log)
            log.info("order.cancelled", cancelled_by="admin")
            return self._order_repo.get_by_id(str(order.id)) or order

        if (
            new_status == OrderStatus.DELIVERED
            and order.payment_method == PaymentMethod.COD
        ):
            order.payment_status = PaymentStatus.PAID

        order.set_status(new_status, dto.note)
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                old_status=old_status,
                new_status=new_status,
            )
        )
        self._order_repo.save(order)

        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(order.id)) or order

    def _cancel(self, order: Order, note: str, log) -> None:
        for item in sorted(order.items.all(), key=lambda i: str(i.product_id)):
            self._product_repo.release_stock(str(item.product_id), item.quantity)
            log.info(
                "order.stock_released",
                product_id=str(item.product_id),
                quantity=item.quantity,
            )
        order.set_status(OrderStatus.CANCELLED, note)
        order.add_domain_event(OrderCancelled(aggregate_id=order.id))
        self._order_repo.save(order)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str, user_id: str, is_admin: bool = False) -> Order:
        """Retrieve a single order visible to the caller.

        Raises:
            OrderNotFound: the order does not exist.
            OrderAccessDenied: the caller is neither the owner nor an admin.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        if not is_admin and order.user_id != user_id:
            logger.warning("order.access_denied", order_id=order_id, user_id=user_id)
            raise OrderAccessDenied("You do not have access to this order.")
        return order

    def list_user_orders(self, user_id: str) -> QuerySet[Order]:
        return self._order_repo.list_for_user(user_id)

    def list_orders(self) -> QuerySet[Order]:
        """All orders, newest first; filtering is left to the caller."""
        return self._order_repo.list()

    def get_analytics(self) -> Dict[str, Any]:
        """Dashboard figures for the admin panel."""
        by_status = self._order_repo.count_by("status")
        by_payment_status = self._order_repo.count_by("payment_status")
        revenue, paid_orders = self._order_repo.revenue_summary()
        average = (
            (revenue / paid_orders).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
            if paid_orders
            else Decimal("0.00")
        )
        return {
            "total_orders": sum(by_status.values()),
            "pending_orders": by_status.get(OrderStatus.PENDING, 0),
            "revenue": revenue,
            "average_order_value": average,
            "orders_by_status": {
                choice: by_status.get(choice, 0) for choice in OrderStatus.values
            },
            "orders_by_payment_status": {
                choice: by_payment_status.get(choice, 0)
                for choice in PaymentStatus.values
            },
            "total_products": self._product_repo.list().count(),
            "low_stock_products": self._product_repo.count_low_stock(
                settings.LOW_STOCK_THRESHOLD
            ),
            "total_users": get_user_model().objects.count(),
        }
