import threading
from decimal import Decimal

from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from shop.data.models import OrderLineModel, OrderModel
from shop.domain.cart import Cart
from shop.domain.schemas import (
    CheckoutPartiallyFailed,
    InsufficientFunds,
    OrderCreationFailed,
    PaymentSettlementFailed,
    Success,
    ValidationFailed,
)
from shop.services.lock_service import LockService
from shop.services.order_store import OrderStore
from shop.services.wallet_ledger import WalletLedger

from conftest import RecordingNotifier, read_balance, read_stock, set_balance


def _cart(product_id=1, quantity=2, price="10.00", discount="0.00"):
    cart = Cart()
    cart.add_item(product_id, quantity, Decimal(price), Decimal(discount))
    return cart


def _orders(session_factory):
    s = session_factory()
    try:
        return s.query(OrderModel).all(), s.query(OrderLineModel).count()
    finally:
        s.close()


def test_successful_checkout_debits_total_and_creates_one_order(
    db, seeded, session_factory, make_checkout, user_session, notifier
):
    cart = _cart()
    user_session.save_cart(cart)

    result = make_checkout(db).place_order("alice", cart, user_session)

    assert isinstance(result, Success)
    assert result.new_wallet_balance == Decimal("2.00")
    assert read_balance(session_factory, "alice") == Decimal("2.00")
    assert read_stock(session_factory, 1) == 8

    orders, line_count = _orders(session_factory)
    assert [o.id for o in orders] == [result.order_id]
    assert orders[0].total == Decimal("23.00")
    assert orders[0].reconciliation_note is None
    assert line_count == 1

    assert cart.is_empty()
    assert user_session.load_cart().is_empty()
    assert user_session.cached_wallet() == Decimal("2.00")
    assert notifier.sent == [("alice", result.order_id, Decimal("23.00"))]


def test_insufficient_funds_changes_nothing(db, seeded, session_factory, make_checkout):
    set_balance(session_factory, "alice", Decimal("20.00"))
    cart = _cart()

    result = make_checkout(db).place_order("alice", cart)

    assert result == InsufficientFunds(required=Decimal("23.00"), available=Decimal("20.00"))
    assert _orders(session_factory) == ([], 0)
    assert read_stock(session_factory, 1) == 10
    assert read_balance(session_factory, "alice") == Decimal("20.00")
    assert not cart.is_empty()


def test_insufficient_inventory_fails_before_any_debit(db, seeded, session_factory, make_checkout):
    set_balance(session_factory, "alice", Decimal("100.00"))
    cart = _cart(product_id=2, quantity=5, price="12.50", discount="1.50")

    result = make_checkout(db).place_order("alice", cart)

    assert isinstance(result, OrderCreationFailed)
    assert "product 2" in result.cause
    assert _orders(session_factory) == ([], 0)
    assert read_stock(session_factory, 2) == 3
    assert read_balance(session_factory, "alice") == Decimal("100.00")


def test_empty_cart_is_rejected_without_touching_the_database(db, seeded, engine, make_checkout):
    statements = []

    @event.listens_for(engine, "before_cursor_execute")
    def _count(conn, cursor, statement, *args):
        statements.append(statement)

    result = make_checkout(db).place_order("alice", Cart())

    assert isinstance(result, ValidationFailed)
    assert statements == []


def test_missing_identity_is_rejected(db, seeded, make_checkout):
    result = make_checkout(db).place_order("", _cart())
    assert result == ValidationFailed(reason="User not logged in")


def test_missing_wallet_is_rejected(db, seeded, session_factory, make_checkout):
    result = make_checkout(db).place_order("bob", _cart())

    assert result == ValidationFailed(reason="Wallet not found")
    assert _orders(session_factory) == ([], 0)


def test_corrupted_cart_is_rejected(db, seeded, make_checkout):
    cart = Cart.from_session(
        [{"product_id": 1, "unit_price": "10.00", "discount": "0.00", "quantity": -4}]
    )

    result = make_checkout(db).place_order("alice", cart)

    assert isinstance(result, ValidationFailed)
    assert "invalid quantity" in result.reason


def test_money_is_conserved_across_repeated_checkouts(db, seeded, session_factory, make_checkout):
    set_balance(session_factory, "alice", Decimal("100.00"))
    svc = make_checkout(db)
    spent = Decimal("0.00")

    for _ in range(3):
        cart = _cart(product_id=2, quantity=1, price="12.50", discount="1.50")
        before = read_balance(session_factory, "alice")
        result = svc.place_order("alice", cart)
        after = read_balance(session_factory, "alice")

        assert isinstance(result, Success)
        assert before - after == Decimal("14.00")
        spent += before - after

    assert read_balance(session_factory, "alice") == Decimal("100.00") - spent
    assert read_stock(session_factory, 2) == 0


def test_notification_failure_does_not_fail_checkout(db, seeded, make_checkout):
    result = make_checkout(db, notification_service=RecordingNotifier(ok=False)).place_order(
        "alice", _cart()
    )
    assert isinstance(result, Success)


class _DrainedBeforeDebit(WalletLedger):
    """Simulates another payment emptying the wallet between balance check and debit."""

    def __init__(self, db, session_factory):
        super().__init__(db)
        self.session_factory = session_factory

    def debit(self, user_id, amount):
        set_balance(self.session_factory, user_id, Decimal("5.00"))
        return super().debit(user_id, amount)


def test_debit_failure_after_order_creation_needs_reconciliation(db, seeded, session_factory, make_checkout):
    cart = _cart()
    svc = make_checkout(db, wallet_ledger=_DrainedBeforeDebit(db, session_factory))

    result = svc.place_order("alice", cart)

    assert isinstance(result, PaymentSettlementFailed)
    orders, _ = _orders(session_factory)
    assert [o.id for o in orders] == [result.order_id]
    assert orders[0].status == "PENDING"
    assert orders[0].reconciliation_note.startswith("payment not settled")
    # nothing retried, nothing taken
    assert read_balance(session_factory, "alice") == Decimal("5.00")
    assert not cart.is_empty()


class _BrokenSession:
    def __init__(self, cart):
        self.cart = cart

    def load_cart(self):
        return Cart.from_session(self.cart.to_session())

    def save_cart(self, cart):
        raise RedisConnectionError("session store down")

    def cache_wallet(self, balance):
        raise AssertionError("not reached")


def test_cleanup_failure_credits_back_and_flags_order(db, seeded, session_factory, make_checkout):
    cart = _cart()
    result = make_checkout(db).place_order("alice", cart, _BrokenSession(cart))

    assert isinstance(result, CheckoutPartiallyFailed)
    assert result.compensated is True
    assert read_balance(session_factory, "alice") == Decimal("25.00")

    orders, _ = _orders(session_factory)
    assert [o.id for o in orders] == [result.order_id]
    assert orders[0].reconciliation_note.startswith("payment refunded")


class _NoCredit(WalletLedger):
    def credit(self, user_id, amount):
        raise OperationalError("UPDATE wallets", {}, Exception("database is locked"))


def test_failed_compensation_is_reported_not_raised(db, seeded, session_factory, make_checkout):
    svc = make_checkout(db, wallet_ledger=_NoCredit(db))

    cart = _cart()
    result = svc.place_order("alice", cart, _BrokenSession(cart))

    assert isinstance(result, CheckoutPartiallyFailed)
    assert result.compensated is False
    assert read_balance(session_factory, "alice") == Decimal("2.00")
    orders, _ = _orders(session_factory)
    assert orders[0].reconciliation_note.startswith("paid, refund failed")


def test_checkout_while_user_locked_fails_without_side_effects(
    db, seeded, session_factory, redis_client, make_checkout
):
    locks = LockService(client=redis_client, wait=0)
    assert locks.try_acquire_user_lock("alice", "someone-else")

    result = make_checkout(db, lock_service=locks).place_order("alice", _cart())

    assert isinstance(result, OrderCreationFailed)
    assert _orders(session_factory) == ([], 0)
    assert read_balance(session_factory, "alice") == Decimal("25.00")
    # foreign lock untouched
    assert redis_client.get("checkout:user:alice:lock") == "someone-else"


def test_lock_is_released_after_checkout(db, seeded, redis_client, make_checkout):
    make_checkout(db).place_order("alice", _cart())
    make_checkout(db).place_order("alice", _cart(quantity=1))

    assert redis_client.get("checkout:user:alice:lock") is None


def test_concurrent_checkouts_for_same_user_only_one_succeeds(seeded, session_factory, make_checkout):
    # room for one $23 cart, not two
    set_balance(session_factory, "alice", Decimal("30.00"))
    barrier = threading.Barrier(2)
    results = []

    def worker():
        s = session_factory()
        try:
            svc = make_checkout(s)
            barrier.wait()
            results.append(svc.place_order("alice", _cart()))
        finally:
            s.close()

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    kinds = sorted(r.kind for r in results)
    assert kinds == ["insufficient_funds", "success"]
    assert read_balance(session_factory, "alice") == Decimal("7.00")
    orders, _ = _orders(session_factory)
    assert len(orders) == 1
    assert read_stock(session_factory, 1) == 8


def test_second_request_with_stale_cart_copy_is_not_charged_again(
    db, seeded, session_factory, make_checkout, user_session
):
    set_balance(session_factory, "alice", Decimal("100.00"))
    user_session.save_cart(_cart())
    first, second = user_session.load_cart(), user_session.load_cart()
    svc = make_checkout(db)

    assert isinstance(svc.place_order("alice", first, user_session), Success)
    result = svc.place_order("alice", second, user_session)

    assert result == ValidationFailed(reason="Cart is empty")
    assert read_balance(session_factory, "alice") == Decimal("77.00")
    assert read_stock(session_factory, 1) == 8
    assert len(_orders(session_factory)[0]) == 1


def test_cart_changed_in_session_is_charged_as_stored(db, seeded, session_factory, make_checkout, user_session):
    user_session.save_cart(_cart(quantity=1))

    result = make_checkout(db).place_order("alice", _cart(quantity=2), user_session)

    assert isinstance(result, Success)
    assert read_balance(session_factory, "alice") == Decimal("12.00")
    assert read_stock(session_factory, 1) == 9


def test_discount_above_price_in_session_is_rejected(db, seeded, session_factory, make_checkout):
    cart = Cart.from_session(
        [{"product_id": 1, "unit_price": "1.00", "discount": "5.00", "quantity": 1}]
    )

    result = make_checkout(db).place_order("alice", cart)

    assert isinstance(result, ValidationFailed)
    assert "discounted below zero" in result.reason
    assert _orders(session_factory) == ([], 0)


def test_non_positive_total_is_rejected(db, seeded, session_factory, make_checkout):
    cart = Cart(shipping_fee=Decimal("0.00"))
    cart.add_item(1, 1, Decimal("10.00"), Decimal("10.00"))

    result = make_checkout(db).place_order("alice", cart)

    assert result == ValidationFailed(reason="Order total must be positive")
    assert _orders(session_factory) == ([], 0)
    assert read_balance(session_factory, "alice") == Decimal("25.00")


class _ExplodingStore(OrderStore):
    def place_order(self, user_id, lines, total):
        raise RuntimeError("driver went away")


def test_unexpected_order_store_error_becomes_order_creation_failed(db, seeded, session_factory, make_checkout):
    result = make_checkout(db, order_store=_ExplodingStore(db)).place_order("alice", _cart())

    assert isinstance(result, OrderCreationFailed)
    assert "driver went away" in result.cause
    assert read_balance(session_factory, "alice") == Decimal("25.00")


class _ExplodingNotifier:
    def send_order_confirmation(self, user_id, order_id, total):
        raise RuntimeError("broker exploded")


def test_notifier_raising_does_not_fail_checkout(db, seeded, make_checkout):
    result = make_checkout(db, notification_service=_ExplodingNotifier()).place_order("alice", _cart())
    assert isinstance(result, Success)
