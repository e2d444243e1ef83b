"""Product API views.

The catalog is public and only lists active products; stock adjustment
is an admin action.  Domain exceptions are translated into HTTP status
codes here.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.core.responses import error_response, success_response
from modules.products.dtos import UpdateStockDTO
from modules.products.exceptions import ProductNotFound
from modules.products.filters import ProductFilter
from modules.products.models import Product, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import ProductSerializer, UpdateStockSerializer
from modules.products.services import ProductService


class ProductViewSet(GenericViewSet):
    """Catalog read endpoints plus admin stock management."""

    filterset_class = ProductFilter
    search_fields = ["name", "description"]
    ordering_fields = ["name", "price", "stock", "created_at"]
    ordering = ["name", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Product.objects.all()
    serializer_class = ProductSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(repository=ProductDjangoRepository())

    def get_permissions(self):
        if self.action in {"list", "retrieve"}:
            return [AllowAny()]
        return [IsAdminUser()]

    def get_queryset(self):
        user = getattr(self.request, "user", None)
        if user is not None and user.is_staff:
            return self._service.list_products()
        return self._service.list_products({"status": ProductStatus.ACTIVE})

    def list(self, request: Request) -> Response:
        """GET /api/v1/products/"""
        queryset = self.filter_queryset(self.get_queryset())
        paginator = StandardResultsSetPagination(results_key="products")
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = ProductSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        try:
            product = self._service.get_product(pk)
        except ProductNotFound:
            return error_response("Product not found.", status=status.HTTP_404_NOT_FOUND)
        if not product.is_active and not request.user.is_staff:
            return error_response("Product not found.", status=status.HTTP_404_NOT_FOUND)
        return success_response(ProductSerializer(product).data)

    @action(detail=True, methods=["patch"], url_path="stock")
    def update_stock(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/stock/"""
        serializer = UpdateStockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            product = self._service.update_stock(
                pk, UpdateStockDTO(stock=serializer.validated_data["stock"])
            )
        except ProductNotFound:
            return error_response("Product not found.", status=status.HTTP_404_NOT_FOUND)

        return success_response(ProductSerializer(product).data, message="Stock updated.")
