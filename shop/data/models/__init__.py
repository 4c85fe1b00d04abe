#import all models so SQLAlchemy registers them in Base.metadata

from shop.data.models.user import UserModel
from shop.data.models.product import ProductModel
from shop.data.models.wallet import WalletModel
from shop.data.models.order import OrderModel
from shop.data.models.order_line import OrderLineModel

__all__ = ["UserModel", "ProductModel", "WalletModel", "OrderModel", "OrderLineModel"]
