"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
Payment failures get a generic message, the detail stays in the logs.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.core.pagination import StandardResultsSetPagination
from modules.core.responses import error_response, success_response
from modules.orders.dtos import CreateOrderDTO, ShippingAddressDTO, UpdateOrderStatusDTO
from modules.orders.exceptions import (
    DuplicatePayment,
    EmptyCart,
    InsufficientStock,
    InvalidOrderStatus,
    MissingPaymentConfirmation,
    OrderAccessDenied,
    OrderNotFound,
    OrderNumberConflict,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    CreateOrderSerializer,
    OrderAnalyticsSerializer,
    OrderListSerializer,
    OrderSerializer,
    UpdateOrderStatusSerializer,
)
from modules.orders.services import OrderService
from modules.payments.dtos import PaymentConfirmationDTO
from modules.payments.exceptions import SignatureMismatch
from modules.payments.gateway import build_payment_gateway
from modules.payments.services import PaymentService
from modules.payments.views import PAYMENT_NOT_VERIFIED_MESSAGE
from modules.products.exceptions import InactiveProduct, ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository

ADMIN_ACTIONS = {"list", "update_status", "analytics"}


def build_order_service() -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        cart_repository=CartDjangoRepository(),
        payment_service=PaymentService(gateway=build_payment_gateway()),
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    search_fields = ["order_number", "shipping_name"]
    ordering_fields = ["created_at", "total_amount"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_permissions(self):
        if self.action in ADMIN_ACTIONS:
            return [IsAdminUser()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "my_orders"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        return self._service.list_orders()

    @property
    def _user_id(self) -> str:
        return str(self.request.user.pk)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Checks out the caller's cart.  Returns 201 for a new order and 200
        when an already-used gateway payment is replayed by its owner.
        """
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        address = data["shippingAddress"]
        payment = data.get("payment")
        dto = CreateOrderDTO(
            user_id=self._user_id,
            shipping_address=ShippingAddressDTO(
                name=address["name"],
                phone=address["phone"],
                street=address["street"],
                city=address["city"],
                state=address["state"],
                zip_code=address["zipCode"],
                country=address["country"],
            ),
            payment_method=data["paymentMethod"],
            notes=data.get("notes", ""),
            payment=PaymentConfirmationDTO(**payment) if payment else None,
        )

        try:
            placement = self._service.create_order(dto)
        except SignatureMismatch:
            return error_response(
                PAYMENT_NOT_VERIFIED_MESSAGE, status=status.HTTP_400_BAD_REQUEST
            )
        except (EmptyCart, InactiveProduct, MissingPaymentConfirmation) as exc:
            return error_response(str(exc), status=status.HTTP_400_BAD_REQUEST)
        except ProductNotFound as exc:
            return error_response(str(exc), status=status.HTTP_404_NOT_FOUND)
        except (InsufficientStock, DuplicatePayment, OrderNumberConflict) as exc:
            return error_response(str(exc), status=status.HTTP_409_CONFLICT)

        if not placement.created:
            return success_response(
                {"order": OrderSerializer(placement.order).data},
                message="Order already placed for this payment.",
            )
        return success_response(
            {"order": OrderSerializer(placement.order).data},
            message="Order placed successfully.",
            status=status.HTTP_201_CREATED,
        )

    # ------------------------------------------------------------------
    # Customer reads
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"], url_path="my-orders")
    def my_orders(self, request: Request) -> Response:
        """GET /api/v1/orders/my-orders/"""
        orders = self._service.list_user_orders(self._user_id)
        return success_response(OrderSerializer(orders, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(
                str(pk), self._user_id, is_admin=request.user.is_staff
            )
        except OrderNotFound:
            return error_response("Order not found.", status=status.HTTP_404_NOT_FOUND)
        except OrderAccessDenied as exc:
            return error_response(str(exc), status=status.HTTP_403_FORBIDDEN)
        return success_response({"order": OrderSerializer(order).data})

    # ------------------------------------------------------------------
    # Cancel (dedicated action)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Cancels the caller's order and releases reserved stock.
        """
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.cancel_order(
                str(pk), self._user_id, note=serializer.validated_data["note"]
            )
        except OrderNotFound:
            return error_response("Order not found.", status=status.HTTP_404_NOT_FOUND)
        except OrderAccessDenied as exc:
            return error_response(str(exc), status=status.HTTP_403_FORBIDDEN)
        except InvalidOrderStatus as exc:
            return error_response(str(exc), status=status.HTTP_400_BAD_REQUEST)

        return success_response(
            {"order": OrderSerializer(order).data}, message="Order cancelled."
        )

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (status, payment, user, date range, total range) is
        handled by ``OrderFilter`` via ``filter_backends``.  Ordering is
        handled by ``OrderingFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination(results_key="orders")
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    @action(detail=True, methods=["patch"], url_path="status")
    def update_status(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/status/"""
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        dto = UpdateOrderStatusDTO(
            status=data["status"],
            note=data.get("note", ""),
            tracking_number=data.get("trackingNumber"),
        )
        try:
            order = self._service.update_status(str(pk), dto)
        except OrderNotFound:
            return error_response("Order not found.", status=status.HTTP_404_NOT_FOUND)
        except InvalidOrderStatus as exc:
            return error_response(str(exc), status=status.HTTP_400_BAD_REQUEST)

        return success_response(
            {"order": OrderSerializer(order).data}, message="Order status updated."
        )

    @action(detail=False, methods=["get"], url_path="analytics/summary")
    def analytics(self, request: Request) -> Response:
        """GET /api/v1/orders/analytics/summary/"""
        summary = self._service.get_analytics()
        return success_response(OrderAnalyticsSerializer(summary).data)
