from sqlalchemy import Column, Integer, ForeignKey, Numeric
from sqlalchemy.orm import relationship

from shop.data.database import Base


class OrderLineModel(Base):
    __tablename__ = "order_lines"

    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id"), primary_key=True)

    quantity = Column(Integer, nullable=False)
    # snapshot at purchase time, independent of later price changes
    unit_price = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), nullable=False, default=0)

    order = relationship("OrderModel", back_populates="lines")
