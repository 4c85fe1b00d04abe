# tests/conftest.py
from decimal import Decimal

import fakeredis
import pytest
from sqlalchemy.orm import sessionmaker

import shop.data.models  # noqa: F401
from shop.data.database import Base, build_engine
from shop.data.models import ProductModel, UserModel, WalletModel
from shop.services.checkout_service import CheckoutService
from shop.services.lock_service import LockService
from shop.services.order_store import OrderStore
from shop.services.session_store import SessionStore, UserSession
from shop.services.wallet_ledger import WalletLedger


class RecordingNotifier:
    """Stands in for NotificationService; records calls instead of queueing Celery tasks."""

    def __init__(self, ok: bool = True):
        self.ok = ok
        self.sent = []

    def send_order_confirmation(self, user_id, order_id, total):
        self.sent.append((user_id, order_id, total))
        return self.ok


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'shop.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded(session_factory):
    """
    product 1: $10.00, no discount, 10 in stock
    product 2: $12.50, $1.50 off, 3 in stock
    alice: wallet $25.00
    """
    s = session_factory()
    s.add_all(
        [
            ProductModel(id=1, name="Chanel No. 5", price=Decimal("10.00"), discount=Decimal("0.00"), quantity=10),
            ProductModel(id=2, name="Dior Sauvage", price=Decimal("12.50"), discount=Decimal("1.50"), quantity=3),
            UserModel(id="alice", name="Alice", email="alice@example.com"),
            WalletModel(user_id="alice", balance=Decimal("25.00")),
        ]
    )
    s.commit()
    s.close()


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def lock_service(redis_client):
    return LockService(client=redis_client, ttl=30, wait=5)


@pytest.fixture
def session_store(redis_client):
    return SessionStore(client=redis_client)


@pytest.fixture
def user_session(session_store):
    return UserSession(session_store, "test-session")


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_checkout(lock_service, notifier):
    def _make(db, **overrides):
        return CheckoutService(
            wallet_ledger=overrides.get("wallet_ledger") or WalletLedger(db),
            order_store=overrides.get("order_store") or OrderStore(db),
            lock_service=overrides.get("lock_service") or lock_service,
            notification_service=overrides.get("notification_service") or notifier,
        )

    return _make


def set_balance(session_factory, user_id: str, balance: Decimal):
    s = session_factory()
    s.get(WalletModel, user_id).balance = balance
    s.commit()
    s.close()


def read_balance(session_factory, user_id: str) -> Decimal:
    s = session_factory()
    try:
        return s.get(WalletModel, user_id).balance
    finally:
        s.close()


def read_stock(session_factory, product_id: int) -> int:
    s = session_factory()
    try:
        return s.get(ProductModel, product_id).quantity
    finally:
        s.close()
