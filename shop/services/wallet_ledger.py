# shop/services/wallet_ledger.py
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shop.domain.errors import InsufficientFundsError, InvalidInputError, WalletNotFoundError
from shop.domain.money import to_money
from shop.repos.wallet_repo import WalletRepo
from shop.utils.logging import get_logger

logger = get_logger(__name__)


class WalletLedger:
    """
    Stored-balance wallet, the only payment method.

    Every read goes to the database. Debit is a single conditional UPDATE,
    so two concurrent debits for the same user cannot both pass the balance check.
    """

    def __init__(self, db: Session):
        self.repo = WalletRepo(db)

    def exists(self, user_id: str) -> bool:
        return self.repo.get_balance(user_id) is not None

    def get_balance(self, user_id: str) -> Decimal:
        balance = self.repo.get_balance(user_id)
        if balance is None:
            raise WalletNotFoundError(user_id)
        return to_money(balance)

    def debit(self, user_id: str, amount) -> Decimal:
        amount = self._check_amount(amount)

        try:
            rowcount = self.repo.debit_if_sufficient(user_id, amount)

            if rowcount == 0:
                self.repo.rollback()
                #tell a missing wallet apart from a short balance
                available = self.repo.get_balance(user_id)
                if available is None:
                    raise WalletNotFoundError(user_id)
                logger.warning(
                    f"Debit refused for user {user_id}: required={amount}, available={available}"
                )
                raise InsufficientFundsError(required=amount, available=to_money(available))

            new_balance = to_money(self.repo.get_balance(user_id))
            self.repo.commit()
        except SQLAlchemyError:
            self.repo.rollback()
            raise

        logger.info(f"Debited {amount} from wallet of {user_id}, new balance {new_balance}")
        return new_balance

    def credit(self, user_id: str, amount) -> Decimal:
        amount = self._check_amount(amount)

        try:
            if self.repo.credit(user_id, amount) == 0:
                self.repo.rollback()
                raise WalletNotFoundError(user_id)

            new_balance = to_money(self.repo.get_balance(user_id))
            self.repo.commit()
        except SQLAlchemyError:
            self.repo.rollback()
            raise

        logger.info(f"Credited {amount} to wallet of {user_id}, new balance {new_balance}")
        return new_balance

    @staticmethod
    def _check_amount(amount) -> Decimal:
        amount = to_money(amount)
        if amount <= 0:
            raise InvalidInputError("Amount must be greater than 0")
        return amount
