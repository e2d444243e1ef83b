"""Django ORM implementation of the Cart repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.carts.models import Cart, CartItem
from modules.carts.repositories.interfaces import ICartRepository

logger = structlog.get_logger(__name__)


class CartDjangoRepository(ICartRepository):
    """Concrete Cart repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Cart]:
        try:
            return Cart.objects.prefetch_related("items__product").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Cart]:
        queryset = Cart.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def save(self, entity: Cart) -> Cart:
        entity.save()
        return entity

    def get_or_create_for_user(self, user_id: str) -> Cart:
        cart, created = Cart.objects.get_or_create(user_id=user_id)
        if created:
            logger.info("cart.created", user_id=user_id)
        return cart

    def get_items(self, user_id: str) -> List[CartItem]:
        return list(
            CartItem.objects.select_related("product")
            .filter(cart__user_id=user_id)
            .order_by("created_at")
        )

    @transaction.atomic
    def upsert_item(self, user_id: str, product_id: str, quantity: int) -> CartItem:
        cart = self.get_or_create_for_user(user_id)
        item, _ = CartItem.objects.update_or_create(
            cart=cart,
            product_id=product_id,
            defaults={"quantity": quantity},
        )
        return item

    def get_item(self, user_id: str, product_id: str) -> Optional[CartItem]:
        try:
            return (
                CartItem.objects.select_related("product")
                .filter(cart__user_id=user_id, product_id=product_id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def remove_item(self, user_id: str, product_id: str) -> bool:
        try:
            deleted, _ = CartItem.objects.filter(
                cart__user_id=user_id, product_id=product_id
            ).delete()
        except (ValueError, ValidationError):
            return False
        return deleted > 0

    def clear(self, user_id: str) -> int:
        deleted, _ = CartItem.objects.filter(cart__user_id=user_id).delete()
        return deleted
