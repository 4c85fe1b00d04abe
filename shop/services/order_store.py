# shop/services/order_store.py
from decimal import Decimal
from typing import Iterable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shop.data.models.order import OrderModel, ORDER_PENDING, ORDER_COMPLETED
from shop.data.models.order_line import OrderLineModel
from shop.domain.cart import LineItem
from shop.domain.errors import (
    InsufficientInventoryError,
    InvalidInputError,
    InvalidStateError,
    OrderCreationError,
    OrderNotFoundError,
)
from shop.domain.money import ZERO, to_money
from shop.repos.order_repo import OrderRepo
from shop.repos.product_repo import ProductRepo
from shop.utils.logging import get_logger

logger = get_logger(__name__)


class OrderStore:
    """
    Persists orders. Header, lines and inventory decrements are written
    in one transaction: either all of them land or none do.
    """

    def __init__(self, db: Session):
        self.repo = OrderRepo(db)
        self.products = ProductRepo(db)

    # =====================================================
    # COMMANDS
    # =====================================================
    def place_order(self, user_id: str, lines: Iterable[LineItem], total: Decimal) -> int:
        """
        1. insert header (PENDING) and flush for the generated id
        2. insert one OrderLine per cart line with price/discount at purchase
        3. decrement inventory per line, conditioned on quantity >= requested
        4. commit; anything failing rolls back the whole unit
        """
        lines = list(lines)
        if not user_id:
            raise InvalidInputError("User id is required")
        if not lines:
            raise InvalidInputError("Cannot place an order without lines")

        logger.info(f"Creating order for user {user_id}: {len(lines)} lines, total {total}")

        try:
            order = self.repo.add_order(
                OrderModel(user_id=user_id, total=to_money(total), status=ORDER_PENDING)
            )

            for item in lines:
                self.repo.add_order_line(
                    OrderLineModel(
                        order_id=order.id,
                        product_id=item.product_id,
                        quantity=item.quantity,
                        unit_price=item.unit_price,
                        discount=item.discount,
                    )
                )

            for item in lines:
                if self.products.decrement_quantity(item.product_id, item.quantity) == 0:
                    raise InsufficientInventoryError(item.product_id, item.quantity)

            order_id = order.id
            self.repo.commit()

        except (SQLAlchemyError, InsufficientInventoryError) as e:
            self.repo.rollback()
            logger.error(f"Order for user {user_id} rolled back: {e}")
            raise OrderCreationError(f"Failed to create order: {e}") from e

        logger.info(f"Order {order_id} created for user {user_id}")
        return order_id

    def complete_order(self, order_id: int) -> OrderModel:
        """
        Operator transition PENDING -> COMPLETED. Orders waiting for
        reconciliation cannot be completed.
        """
        order = self.get_order(order_id)

        if self.repo.update_status(order_id, ORDER_PENDING, ORDER_COMPLETED) == 0:
            self.repo.rollback()
            if order.reconciliation_note:
                raise InvalidStateError(f"Order {order_id} is waiting for reconciliation")
            raise InvalidStateError(f"Order {order_id} is not pending (status {order.status})")

        self.repo.commit()
        logger.info(f"Order {order_id} completed")
        return self.get_order(order_id)

    def flag_for_reconciliation(self, order_id: int, note: str) -> bool:
        try:
            updated = self.repo.set_reconciliation_note(order_id, note)
            self.repo.commit()
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.critical(f"Could not flag order {order_id} for reconciliation ({note}): {e}")
            return False

        if updated:
            logger.warning(f"Order {order_id} flagged for reconciliation: {note}")
        return bool(updated)

    # =====================================================
    # QUERIES
    # =====================================================
    def get_order(self, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFoundError(order_id)
        return order

    def list_orders_for_user(self, user_id: str) -> List[OrderModel]:
        return self.repo.get_orders_by_user(user_id)

    def list_flagged_orders(self) -> List[OrderModel]:
        return self.repo.get_flagged_orders()

    def get_order_count(self) -> int:
        return self.repo.count_orders()

    def get_total_revenue(self) -> Decimal:
        total = self.repo.sum_totals()
        return to_money(total) if total is not None else ZERO
