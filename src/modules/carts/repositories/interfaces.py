"""Cart repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.carts.models import Cart, CartItem


class ICartRepository(IRepository["Cart"]):
    """Repository contract for the Cart aggregate."""

    @abstractmethod
    def get_or_create_for_user(self, user_id: str) -> Cart:
        """Return the user's cart, creating an empty one on first use."""

    @abstractmethod
    def get_items(self, user_id: str) -> List[CartItem]:
        """Cart lines with their products loaded."""

    @abstractmethod
    def upsert_item(self, user_id: str, product_id: str, quantity: int) -> CartItem:
        """Insert the line or overwrite its quantity."""

    @abstractmethod
    def get_item(self, user_id: str, product_id: str) -> Optional[CartItem]:
        """A single line, ``None`` if the product is not in the cart."""

    @abstractmethod
    def remove_item(self, user_id: str, product_id: str) -> bool:
        """Delete a line. Returns ``False`` if it was not there."""

    @abstractmethod
    def clear(self, user_id: str) -> int:
        """Delete every line. Returns the number removed."""
