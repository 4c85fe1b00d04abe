from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Text
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from shop.data.database import Base

ORDER_PENDING = "PENDING"
ORDER_COMPLETED = "COMPLETED"


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)

    placed_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    total = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default=ORDER_PENDING)  # PENDING, COMPLETED

    # set when checkout left the order paid/unpaid inconsistently, cleared by an operator
    reconciliation_note = Column(Text, nullable=True)

    lines = relationship(
        "OrderLineModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLineModel.product_id",
    )
