# shop/api/deps.py
from contextlib import contextmanager
from functools import lru_cache

from fastapi import Depends, HTTPException, Request, Response
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from shop.data.database import get_db
from shop.domain.cart import Cart
from shop.domain.wishlist import Wishlist
from shop.services.checkout_service import CheckoutService
from shop.services.lock_service import LockService
from shop.services.notification_service import NotificationService
from shop.services.order_store import OrderStore
from shop.services.session_store import SessionStore, UserSession
from shop.services.wallet_ledger import WalletLedger

SESSION_COOKIE = "session_id"


#one redis connection pool per process
@lru_cache
def get_session_store() -> SessionStore:
    return SessionStore()


@lru_cache
def get_lock_service() -> LockService:
    return LockService()


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_user_session(
    request: Request,
    response: Response,
    store: SessionStore = Depends(get_session_store),
) -> UserSession:
    session_id = request.cookies.get(SESSION_COOKIE)
    if not session_id:
        session_id = store.new_session_id()
        response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
    return UserSession(store, session_id)


@contextmanager
def session_store_errors():
    """Maps session store outages to 503 for the wrapped block."""
    try:
        yield
    except RedisError as e:
        raise HTTPException(status_code=503, detail=f"Session store unavailable: {e}")


def get_session_cart(session: UserSession = Depends(get_user_session)) -> Cart:
    with session_store_errors():
        return session.load_cart()


def get_session_wishlist(session: UserSession = Depends(get_user_session)) -> Wishlist:
    with session_store_errors():
        return session.load_wishlist()


def get_checkout_service(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> CheckoutService:
    return CheckoutService(
        wallet_ledger=WalletLedger(db),
        order_store=OrderStore(db),
        lock_service=lock_service,
        notification_service=notification_service,
    )
