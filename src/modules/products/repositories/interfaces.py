"""Product repository interface.

Extends ``IRepository[Product]`` with the stock operations used by
checkout (reserve) and cancellation (release).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Product]:
        """Retrieve a product with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def reserve_stock(self, id: str, quantity: int) -> bool:
        """Atomically decrement stock if at least ``quantity`` is available.

        Returns ``False`` (and changes nothing) when stock is insufficient.
        """

    @abstractmethod
    def release_stock(self, id: str, quantity: int) -> None:
        """Atomically give ``quantity`` units back to stock."""

    @abstractmethod
    def count_low_stock(self, threshold: int) -> int:
        """Number of products with ``stock <= threshold``."""
