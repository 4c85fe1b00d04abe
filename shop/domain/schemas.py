# shop/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Annotated, List, Literal, Union
from decimal import Decimal
from datetime import datetime


class ItemIn(BaseModel):
    """Adding a product to the cart."""

    product_id: int = Field(..., gt=0, description="Product id (> 0)")
    quantity: int = Field(..., gt=0, description="Quantity (> 0)")


class QuantityIn(BaseModel):
    """New quantity for a line; 0 removes the line."""

    quantity: int = Field(..., ge=0)


class CartItemOut(BaseModel):
    product_id: int
    quantity: int
    unit_price: Decimal
    discount: Decimal


class CartOut(BaseModel):
    items: List[CartItemOut]
    subtotal: Decimal
    discount_total: Decimal
    shipping_fee: Decimal
    total: Decimal


class WishlistIn(BaseModel):
    product_id: int = Field(..., gt=0)


class WishlistItemOut(BaseModel):
    product_id: int
    name: str
    unit_price: Decimal


class WishlistOut(BaseModel):
    items: List[WishlistItemOut]
    count: int


class WalletOut(BaseModel):
    user_id: str
    balance: Decimal


class OrderLineOut(BaseModel):
    product_id: int
    quantity: int
    unit_price: Decimal
    discount: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    user_id: str
    status: str
    total: Decimal
    placed_at: datetime
    reconciliation_note: str | None = None
    lines: List[OrderLineOut] = []

    model_config = ConfigDict(from_attributes=True)


class OrderStatsOut(BaseModel):
    order_count: int
    total_revenue: Decimal


# =====================================================
# Checkout result variants
# =====================================================
class Success(BaseModel):
    kind: Literal["success"] = "success"
    order_id: int
    new_wallet_balance: Decimal


class ValidationFailed(BaseModel):
    kind: Literal["validation_failed"] = "validation_failed"
    reason: str


class InsufficientFunds(BaseModel):
    kind: Literal["insufficient_funds"] = "insufficient_funds"
    required: Decimal
    available: Decimal


class OrderCreationFailed(BaseModel):
    kind: Literal["order_creation_failed"] = "order_creation_failed"
    cause: str


class PaymentSettlementFailed(BaseModel):
    """Order persisted but the debit did not go through. Manual reconciliation."""

    kind: Literal["payment_settlement_failed"] = "payment_settlement_failed"
    order_id: int
    cause: str


class CheckoutPartiallyFailed(BaseModel):
    """Debit went through but session cleanup did not; a credit-back was attempted."""

    kind: Literal["checkout_partially_failed"] = "checkout_partially_failed"
    order_id: int
    reason: str
    compensated: bool


CheckoutResult = Annotated[
    Union[
        Success,
        ValidationFailed,
        InsufficientFunds,
        OrderCreationFailed,
        PaymentSettlementFailed,
        CheckoutPartiallyFailed,
    ],
    Field(discriminator="kind"),
]
