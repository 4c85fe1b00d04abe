# shop/repos/order_repo.py
from decimal import Decimal
from typing import List

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, selectinload

from shop.data.models.order import OrderModel
from shop.data.models.order_line import OrderLineModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        # flush only, the caller owns the transaction
        self.db.add(order)
        self.db.flush()
        return order

    def add_order_line(self, line: OrderLineModel) -> None:
        self.db.add(line)
        self.db.flush()

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.lines))
            .where(OrderModel.id == order_id)
        ).scalar_one_or_none()

    def get_orders_by_user(self, user_id: str) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .options(selectinload(OrderModel.lines))
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.placed_at.desc(), OrderModel.id.desc())
            ).scalars()
        )

    def get_flagged_orders(self) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.reconciliation_note.is_not(None))
                .order_by(OrderModel.id)
            ).scalars()
        )

    def count_orders(self) -> int:
        return self.db.execute(select(func.count(OrderModel.id))).scalar_one()

    def sum_totals(self) -> Decimal | None:
        return self.db.execute(select(func.sum(OrderModel.total))).scalar_one()

    def update_status(self, order_id: int, old_status: str, new_status: str) -> int:
        result = self.db.execute(
            update(OrderModel)
            .where(
                OrderModel.id == order_id,
                OrderModel.status == old_status,
                OrderModel.reconciliation_note.is_(None),
            )
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def set_reconciliation_note(self, order_id: int, note: str) -> int:
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id)
            .values(reconciliation_note=note)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
