# shop/data/seed.py
from decimal import Decimal

from shop.data.database import SessionLocal
from shop.data.models import ProductModel, UserModel, WalletModel

PRODUCTS = [
    {"id": 1, "name": "Chanel No. 5 EDP 100ml", "price": Decimal("10.00"), "discount": Decimal("0.00"), "quantity": 50},
    {"id": 2, "name": "Dior Sauvage EDT 60ml", "price": Decimal("12.50"), "discount": Decimal("1.50"), "quantity": 3},
    {"id": 3, "name": "Tom Ford Oud Wood 50ml", "price": Decimal("25.00"), "discount": Decimal("0.00"), "quantity": 10},
]

USERS = [
    {"id": "alice", "name": "Alice", "email": "alice@example.com", "balance": Decimal("100.00")},
    {"id": "bob", "name": "Bob", "email": None, "balance": Decimal("20.00")},
]


def seed():
    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            return
        for p in PRODUCTS:
            db.add(ProductModel(**p))
        for u in USERS:
            db.add(UserModel(id=u["id"], name=u["name"], email=u["email"]))
            db.add(WalletModel(user_id=u["id"], balance=u["balance"]))
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    seed()
