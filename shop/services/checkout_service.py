# shop/services/checkout_service.py
from decimal import Decimal

import redis
from sqlalchemy.exc import SQLAlchemyError

from shop.domain.cart import Cart
from shop.domain.errors import (
    InvalidStateError,
    ShopError,
)
from shop.domain.schemas import (
    CheckoutPartiallyFailed,
    CheckoutResult,
    InsufficientFunds,
    OrderCreationFailed,
    PaymentSettlementFailed,
    Success,
    ValidationFailed,
)
from shop.services.lock_service import LockNotAcquired, LockService
from shop.services.notification_service import NotificationService
from shop.services.order_store import OrderStore
from shop.services.session_store import UserSession
from shop.services.wallet_ledger import WalletLedger
from shop.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutService:
    """
    Turns a session cart into a paid order.

    Stages:
    1. preconditions (cart, identity, wallet) - no mutation
    2. per-user lock, re-read of the session cart, authoritative balance check
    3. order + lines + inventory in one transaction (OrderStore)
    4. wallet debit (conditional UPDATE)
    5. confirmation notification, fire-and-forget
    6. clear the cart, refresh the cached wallet in the session

    The order is written before the debit: a failed debit leaves an unpaid
    order for reconciliation instead of money taken with no order.
    Every outcome is returned as a result variant, nothing is raised.
    """

    def __init__(
        self,
        wallet_ledger: WalletLedger,
        order_store: OrderStore,
        lock_service: LockService,
        notification_service: NotificationService,
    ):
        self.wallets = wallet_ledger
        self.orders = order_store
        self.lock_service = lock_service
        self.notifications = notification_service

    def place_order(self, user_id: str | None, cart: Cart, session: UserSession | None = None) -> CheckoutResult:
        # 1. preconditions, cart and identity first (no database access)
        reason = self._check_cart_and_identity(user_id, cart)
        if reason:
            logger.warning(f"Checkout rejected for user {user_id}: {reason}")
            return ValidationFailed(reason=reason)

        try:
            if not self.wallets.exists(user_id):
                logger.warning(f"Checkout rejected for user {user_id}: wallet not found")
                return ValidationFailed(reason="Wallet not found")
        except Exception as e:
            logger.error(f"Wallet lookup failed for user {user_id}: {e}")
            return OrderCreationFailed(cause=f"Wallet lookup failed: {e}")

        logger.info(f"Checkout started for user {user_id}: {cart!r}")

        try:
            with self.lock_service.user_lock(user_id):
                result = self._checkout_current_cart(user_id, cart, session)
        except LockNotAcquired as e:
            logger.warning(str(e))
            return OrderCreationFailed(cause=str(e))
        except redis.RedisError as e:
            logger.error(f"Checkout lock unavailable for user {user_id}: {e}")
            return OrderCreationFailed(cause=f"Checkout lock unavailable: {e}")

        if isinstance(result, Success):
            cart.clear()
        return result

    def _checkout_current_cart(self, user_id: str, cart: Cart, session: UserSession | None) -> CheckoutResult:
        # once the lock is held the session copy is authoritative
        if session is not None:
            try:
                cart = session.load_cart()
            except Exception as e:
                logger.error(f"Session cart reload failed for user {user_id}: {e}")
                return OrderCreationFailed(cause=f"Session store unavailable: {e}")

            reason = self._check_cart_and_identity(user_id, cart)
            if reason:
                logger.warning(f"Checkout rejected for user {user_id} under lock: {reason}")
                return ValidationFailed(reason=reason)

        return self._place_locked(user_id, cart, cart.total(), session)

    @staticmethod
    def _check_cart_and_identity(user_id: str | None, cart: Cart | None) -> str | None:
        if cart is None or cart.is_empty():
            return "Cart is empty"
        try:
            cart.validate()
        except InvalidStateError as e:
            return f"Invalid cart contents: {e}"
        if cart.total() <= 0:
            return "Order total must be positive"
        if not user_id or not str(user_id).strip():
            return "User not logged in"
        return None

    def _place_locked(self, user_id: str, cart: Cart, total: Decimal, session: UserSession | None) -> CheckoutResult:
        # 2. authoritative balance; the debit re-checks atomically later
        try:
            available = self.wallets.get_balance(user_id)
        except (ShopError, SQLAlchemyError) as e:
            logger.error(f"Balance check failed for user {user_id}: {e}")
            return OrderCreationFailed(cause=f"Balance check failed: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error at stage=balance user={user_id}: {e}")
            return OrderCreationFailed(cause=f"Balance check failed: {e}")

        if available < total:
            logger.warning(
                f"Insufficient balance for user {user_id}: required={total}, available={available}"
            )
            return InsufficientFunds(required=total, available=available)

        # 3. order creation, fully rolled back on failure
        try:
            order_id = self.orders.place_order(user_id, cart.snapshot(), total)
        except (ShopError, SQLAlchemyError) as e:
            logger.error(f"Order creation failed for user {user_id} (total {total}): {e}")
            return OrderCreationFailed(cause=str(e))
        except Exception as e:
            logger.exception(f"Unexpected error at stage=order user={user_id} total={total}: {e}")
            return OrderCreationFailed(cause=f"Unexpected error creating order: {e}")

        # 4. settlement; never retried automatically
        try:
            new_balance = self.wallets.debit(user_id, total)
        except Exception as e:
            return self._settlement_failed(user_id, order_id, total, e)

        # 5. best effort
        try:
            notified = self.notifications.send_order_confirmation(user_id, order_id, total)
        except Exception as e:
            logger.warning(f"Notification for order {order_id} raised: {e}")
            notified = False
        if not notified:
            logger.warning(f"Order {order_id} placed without confirmation notification")

        # 6. cleanup
        try:
            cart.clear()
            if session is not None:
                session.save_cart(cart)
                session.cache_wallet(new_balance)
        except Exception as e:
            return self._cleanup_failed(user_id, order_id, total, e)

        logger.info(f"Checkout completed for user {user_id}: order {order_id}, balance {new_balance}")
        return Success(order_id=order_id, new_wallet_balance=new_balance)

    def _settlement_failed(self, user_id: str, order_id: int, total: Decimal, error: Exception) -> CheckoutResult:
        logger.error(
            f"PAYMENT SETTLEMENT FAILED user={user_id} order={order_id} total={total} "
            f"stage=debit: {error}"
        )
        self._flag(order_id, f"payment not settled: {error}")
        return PaymentSettlementFailed(order_id=order_id, cause=str(error))

    def _cleanup_failed(self, user_id: str, order_id: int, total: Decimal, error: Exception) -> CheckoutResult:
        logger.error(
            f"Post-checkout cleanup failed user={user_id} order={order_id} total={total} "
            f"stage=cleanup: {error}"
        )

        compensated = False
        try:
            self.wallets.credit(user_id, total)
            compensated = True
            logger.warning(f"Wallet of {user_id} credited back {total} for order {order_id}")
        except Exception as credit_error:
            logger.critical(
                f"COMPENSATION FAILED user={user_id} order={order_id} total={total}: {credit_error}"
            )

        note = "payment refunded after cleanup failure" if compensated else "paid, refund failed after cleanup failure"
        self._flag(order_id, f"{note}: {error}")

        return CheckoutPartiallyFailed(
            order_id=order_id,
            reason=f"Cleanup failed after payment: {error}",
            compensated=compensated,
        )

    def _flag(self, order_id: int, note: str) -> None:
        try:
            self.orders.flag_for_reconciliation(order_id, note)
        except Exception as e:
            logger.critical(f"Could not flag order {order_id} for reconciliation ({note}): {e}")
