from sqlalchemy import CheckConstraint, Column, ForeignKey, Numeric, String

from shop.data.database import Base


class WalletModel(Base):
    __tablename__ = "wallets"

    user_id = Column(String(64), ForeignKey("users.id"), primary_key=True)
    balance = Column(Numeric(12, 2), nullable=False, default=0)

    __table_args__ = (CheckConstraint("balance >= 0", name="ck_wallet_balance_non_negative"),)
