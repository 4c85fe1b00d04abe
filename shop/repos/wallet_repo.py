# shop/repos/wallet_repo.py
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from shop.data.models.wallet import WalletModel


class WalletRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_balance(self, user_id: str) -> Decimal | None:
        # column select, never served from the identity map
        return self.db.execute(
            select(WalletModel.balance).where(WalletModel.user_id == user_id)
        ).scalar_one_or_none()

    def create_wallet(self, wallet: WalletModel) -> WalletModel:
        self.db.add(wallet)
        self.db.commit()
        self.db.refresh(wallet)
        return wallet

    def debit_if_sufficient(self, user_id: str, amount: Decimal) -> int:
        # UPDATE wallets SET balance = balance - :a WHERE user_id = :u AND balance >= :a
        result = self.db.execute(
            update(WalletModel)
            .where(WalletModel.user_id == user_id, WalletModel.balance >= amount)
            .values(balance=WalletModel.balance - amount)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def credit(self, user_id: str, amount: Decimal) -> int:
        result = self.db.execute(
            update(WalletModel)
            .where(WalletModel.user_id == user_id)
            .values(balance=WalletModel.balance + amount)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
