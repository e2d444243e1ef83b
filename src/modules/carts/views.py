"""Cart API views.

The cart is always the authenticated user's own; there is no cart id
in the URL.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.carts.exceptions import CartItemNotFound
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.serializers import AddCartItemSerializer, SetQuantitySerializer
from modules.carts.services import CartService
from modules.core.responses import error_response, success_response
from modules.products.exceptions import InactiveProduct, ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository


def build_cart_service() -> CartService:
    return CartService(
        cart_repository=CartDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


class CartView(APIView):
    """GET / DELETE /api/v1/cart/"""

    def get(self, request: Request) -> Response:
        cart = build_cart_service().get_cart(str(request.user.pk))
        return success_response(cart.as_response())

    def delete(self, request: Request) -> Response:
        cart = build_cart_service().clear(str(request.user.pk))
        return success_response(cart.as_response(), message="Cart cleared.")


class CartItemsView(APIView):
    """POST /api/v1/cart/items/"""

    def post(self, request: Request) -> Response:
        serializer = AddCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            cart = build_cart_service().add_item(
                str(request.user.pk), str(data["productId"]), data["quantity"]
            )
        except ProductNotFound as exc:
            return error_response(str(exc), status=status.HTTP_404_NOT_FOUND)
        except InactiveProduct as exc:
            return error_response(str(exc), status=status.HTTP_400_BAD_REQUEST)

        return success_response(cart.as_response(), message="Item added to cart.")


class CartItemDetailView(APIView):
    """PATCH / DELETE /api/v1/cart/items/{product_id}/"""

    def patch(self, request: Request, product_id: str) -> Response:
        serializer = SetQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            cart = build_cart_service().set_quantity(
                str(request.user.pk), str(product_id), serializer.validated_data["quantity"]
            )
        except CartItemNotFound as exc:
            return error_response(str(exc), status=status.HTTP_404_NOT_FOUND)

        return success_response(cart.as_response())

    def delete(self, request: Request, product_id: str) -> Response:
        cart = build_cart_service().remove_item(str(request.user.pk), str(product_id))
        return success_response(cart.as_response(), message="Item removed from cart.")
