# shop/repos/product_repo.py
from sqlalchemy import update
from sqlalchemy.orm import Session

from shop.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def decrement_quantity(self, product_id: int, quantity: int) -> int:
        #condition lives in the UPDATE itself, no separate check-then-act
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.quantity >= quantity)
            .values(quantity=ProductModel.quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
