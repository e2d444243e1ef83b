"""Product service layer (Use Cases).

The storefront only reads the catalog; the back-office adjusts stock
levels.  Stock reservation for checkout lives on the repository so the
order service can run it inside its own transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import transaction
from django.db.models import QuerySet

from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.products.dtos import UpdateStockDTO
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductService:
    """Application service for Product use-cases.

    Receives an ``IProductRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    def list_products(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Product]:
        """Return products, optionally filtered."""
        return self._repo.list(filters)

    def get_product(self, id: str) -> Product:
        """Retrieve a single product by ID.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    @transaction.atomic
    def update_stock(self, id: str, dto: UpdateStockDTO) -> Product:
        """Set the absolute stock level of a product.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_for_update(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")

        previous = product.stock
        product.stock = dto.stock
        product = self._repo.save(product)
        logger.info(
            "product.stock_updated",
            product_id=str(id),
            previous_stock=previous,
            stock=product.stock,
        )
        return product
