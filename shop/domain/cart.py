# shop/domain/cart.py
from decimal import Decimal
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel

from shop.domain.errors import InvalidInputError, InvalidStateError
from shop.domain.money import ZERO, to_money
from shop.utils.settings import SHIPPING_FEE


class LineItem(BaseModel):
    """
    One product in the cart. No field constraints here on purpose:
    data coming back from the session is checked by Cart.validate().
    """

    product_id: int
    unit_price: Decimal
    discount: Decimal = ZERO
    quantity: int


class Cart:
    """
    Session-scoped aggregate of line items, keyed by product id.
    Only the owning session touches it, so there is no locking here.
    """

    def __init__(self, items: List[LineItem] | None = None, shipping_fee: Decimal = SHIPPING_FEE):
        self._items: Dict[int, LineItem] = {}
        self.shipping_flat_fee = to_money(shipping_fee)
        for item in items or []:
            self._items[item.product_id] = item

    @property
    def items(self) -> List[LineItem]:
        return list(self._items.values())

    #commands
    def add_item(self, product_id: int, quantity: int, unit_price, discount=ZERO) -> None:
        if product_id <= 0:
            raise InvalidInputError(f"Invalid product id: {product_id}")
        if quantity <= 0:
            raise InvalidInputError("Quantity must be greater than 0")

        unit_price = to_money(unit_price)
        discount = to_money(discount)
        if unit_price < 0 or discount < 0:
            raise InvalidInputError("Price and discount cannot be negative")
        if discount > unit_price:
            raise InvalidInputError(f"Discount {discount} exceeds unit price {unit_price}")

        existing = self._items.get(product_id)
        if existing:
            existing.quantity += quantity
        else:
            self._items[product_id] = LineItem(
                product_id=product_id,
                unit_price=unit_price,
                discount=discount,
                quantity=quantity,
            )

    def remove_item(self, product_id: int) -> bool:
        return self._items.pop(product_id, None) is not None

    def update_quantity(self, product_id: int, new_quantity: int) -> bool:
        if new_quantity < 0:
            raise InvalidInputError("Quantity cannot be negative")

        item = self._items.get(product_id)
        if item is None:
            return False
        if new_quantity == 0:
            return self.remove_item(product_id)

        item.quantity = new_quantity
        return True

    def clear(self) -> None:
        self._items.clear()

    def merge(self, other: "Cart") -> None:
        for item in other.items:
            self.add_item(item.product_id, item.quantity, item.unit_price, item.discount)

    def validate(self) -> None:
        """
        Rejects corrupted state (e.g. a tampered session payload).
        Pure check: calling it twice gives the same answer.
        """
        for item in self._items.values():
            if item.quantity <= 0:
                raise InvalidStateError(
                    f"Cart contains item with invalid quantity: product {item.product_id}"
                )
            if item.unit_price < 0:
                raise InvalidStateError(
                    f"Cart contains item with negative price: product {item.product_id}"
                )
            if item.discount < 0:
                raise InvalidStateError(
                    f"Cart contains item with negative discount: product {item.product_id}"
                )
            if item.discount > item.unit_price:
                raise InvalidStateError(
                    f"Cart contains item discounted below zero: product {item.product_id}"
                )

    #queries
    def is_empty(self) -> bool:
        return not self._items

    def contains(self, product_id: int) -> bool:
        return product_id in self._items

    def quantity_of(self, product_id: int) -> int:
        item = self._items.get(product_id)
        return item.quantity if item else 0

    def total_quantity(self) -> int:
        return sum(i.quantity for i in self._items.values())

    def product_count(self) -> int:
        return len(self._items)

    def subtotal(self) -> Decimal:
        return to_money(sum((i.unit_price * i.quantity for i in self._items.values()), ZERO))

    def discount_total(self) -> Decimal:
        return to_money(sum((i.discount * i.quantity for i in self._items.values()), ZERO))

    def shipping_fee(self) -> Decimal:
        return ZERO if self.is_empty() else self.shipping_flat_fee

    def total(self) -> Decimal:
        return to_money(self.subtotal() - self.discount_total() + self.shipping_fee())

    def snapshot(self) -> Tuple[LineItem, ...]:
        return tuple(i.model_copy() for i in self._items.values())

    #session (de)serialization
    def to_session(self) -> List[Dict[str, Any]]:
        return [i.model_dump(mode="json") for i in self._items.values()]

    @classmethod
    def from_session(cls, data: List[Dict[str, Any]] | None) -> "Cart":
        return cls([LineItem.model_validate(row) for row in data or []])

    def __repr__(self) -> str:
        return (
            f"Cart(items={self.product_count()}, quantity={self.total_quantity()}, "
            f"total={self.total()})"
        )
