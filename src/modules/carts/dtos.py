"""Cart DTOs (Pydantic v2, immutable).

``CartDTO`` is the read model returned by every cart endpoint and the
input snapshot handed to checkout.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from modules.carts.models import CartItem


class CartLineDTO(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    product_id: UUID
    name: str
    price: Decimal
    image: str
    quantity: int
    line_total: Decimal

    @classmethod
    def from_entity(cls, item: CartItem) -> CartLineDTO:
        return cls(
            product_id=item.product_id,
            name=item.product.name,
            price=item.product.price,
            image=item.product.image,
            quantity=item.quantity,
            line_total=item.line_total,
        )


class CartDTO(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    items: List[CartLineDTO]
    computed_total: Decimal
    item_count: int

    @classmethod
    def from_items(cls, items: List[CartItem]) -> CartDTO:
        lines = [CartLineDTO.from_entity(item) for item in items]
        return cls(
            items=lines,
            computed_total=sum((line.line_total for line in lines), Decimal("0.00")),
            item_count=sum(line.quantity for line in lines),
        )

    def as_response(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
