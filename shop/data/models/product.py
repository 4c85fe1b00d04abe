from sqlalchemy import CheckConstraint, Column, Integer, Numeric, String

from shop.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)

    price = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), nullable=False, default=0)  # per unit
    quantity = Column(Integer, nullable=False, default=0)

    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_product_quantity_non_negative"),)
