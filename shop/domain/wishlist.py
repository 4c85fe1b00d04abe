# shop/domain/wishlist.py
from decimal import Decimal
from typing import Any, Dict, List

from pydantic import BaseModel

from shop.domain.errors import InvalidInputError
from shop.domain.money import to_money


class WishlistItem(BaseModel):
    product_id: int
    name: str
    unit_price: Decimal


class Wishlist:
    """
    Session-scoped list of saved products. A product appears at most once;
    saving it again is a no-op.
    """

    def __init__(self, items: List[WishlistItem] | None = None):
        self._items: Dict[int, WishlistItem] = {}
        for item in items or []:
            self._items.setdefault(item.product_id, item)

    @property
    def items(self) -> List[WishlistItem]:
        return list(self._items.values())

    def add_item(self, product_id: int, name: str, unit_price) -> bool:
        if product_id <= 0:
            raise InvalidInputError(f"Invalid product id: {product_id}")
        if product_id in self._items:
            return False

        self._items[product_id] = WishlistItem(
            product_id=product_id,
            name=name,
            unit_price=to_money(unit_price),
        )
        return True

    def remove_item(self, product_id: int) -> bool:
        return self._items.pop(product_id, None) is not None

    def contains(self, product_id: int) -> bool:
        return product_id in self._items

    def count_items(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def to_session(self) -> List[Dict[str, Any]]:
        return [i.model_dump(mode="json") for i in self._items.values()]

    @classmethod
    def from_session(cls, data: List[Dict[str, Any]] | None) -> "Wishlist":
        return cls([WishlistItem.model_validate(row) for row in data or []])
