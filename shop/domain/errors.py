# shop/domain/errors.py
from decimal import Decimal


class ShopError(Exception):
    """Base class for domain errors raised by the shop core."""


class InvalidInputError(ShopError, ValueError):
    pass


class InvalidStateError(ShopError):
    pass


class WalletNotFoundError(ShopError):
    def __init__(self, user_id: str):
        super().__init__(f"Wallet not found for user {user_id}")
        self.user_id = user_id


class InsufficientFundsError(ShopError):
    def __init__(self, required: Decimal, available: Decimal):
        super().__init__(f"Insufficient balance: required={required}, available={available}")
        self.required = required
        self.available = available


class InsufficientInventoryError(ShopError):
    def __init__(self, product_id: int, requested: int):
        super().__init__(f"Insufficient quantity for product {product_id} (requested {requested})")
        self.product_id = product_id
        self.requested = requested


class OrderCreationError(ShopError):
    """Order unit of work was rolled back; ``__cause__`` holds the original error."""


class OrderNotFoundError(ShopError):
    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id
