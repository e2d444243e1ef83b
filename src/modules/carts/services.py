"""Cart service layer.

Every command is safe to retry: repeating it with the same arguments
leaves the cart in the same state.  ``add_item`` therefore places the
product with the given quantity rather than incrementing it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from modules.carts.dtos import CartDTO
from modules.carts.exceptions import CartItemNotFound
from modules.products.exceptions import InactiveProduct, ProductNotFound

if TYPE_CHECKING:
    from modules.carts.repositories.interfaces import ICartRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class CartService:
    """Application service for Cart use-cases."""

    def __init__(
        self,
        cart_repository: ICartRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._cart_repo = cart_repository
        self._product_repo = product_repository

    def get_cart(self, user_id: str) -> CartDTO:
        return CartDTO.from_items(self._cart_repo.get_items(user_id))

    def add_item(self, user_id: str, product_id: str, quantity: int) -> CartDTO:
        """Put ``product_id`` in the cart with ``quantity`` units.

        Raises:
            ProductNotFound: product does not exist.
            InactiveProduct: product is not for sale.
        """
        product = self._product_repo.get_by_id(product_id)
        if not product:
            raise ProductNotFound(f"Product {product_id} not found.")
        if not product.is_active:
            raise InactiveProduct(f"Product {product.name} is not available.")

        self._cart_repo.upsert_item(user_id, str(product.id), quantity)
        logger.info(
            "cart.item_added",
            user_id=user_id,
            product_id=str(product.id),
            quantity=quantity,
        )
        return self.get_cart(user_id)

    def set_quantity(self, user_id: str, product_id: str, quantity: int) -> CartDTO:
        """Raises ``CartItemNotFound`` if the product is not in the cart."""
        if not self._cart_repo.get_item(user_id, product_id):
            raise CartItemNotFound(f"Product {product_id} is not in the cart.")
        self._cart_repo.upsert_item(user_id, product_id, quantity)
        logger.info(
            "cart.quantity_set",
            user_id=user_id,
            product_id=product_id,
            quantity=quantity,
        )
        return self.get_cart(user_id)

    def remove_item(self, user_id: str, product_id: str) -> CartDTO:
        removed = self._cart_repo.remove_item(user_id, product_id)
        logger.info(
            "cart.item_removed",
            user_id=user_id,
            product_id=product_id,
            removed=removed,
        )
        return self.get_cart(user_id)

    def clear(self, user_id: str) -> CartDTO:
        count = self._cart_repo.clear(user_id)
        logger.info("cart.cleared", user_id=user_id, removed=count)
        return self.get_cart(user_id)
