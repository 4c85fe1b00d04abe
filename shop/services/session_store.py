# shop/services/session_store.py
import json
import uuid
from decimal import Decimal
from typing import Any

import redis

from shop.domain.cart import Cart
from shop.domain.money import to_money
from shop.domain.wishlist import Wishlist
from shop.utils.retry import redis_retry
from shop.utils.settings import REDIS_URL, SESSION_TTL_SECONDS
from shop.utils.logging import get_logger

logger = get_logger(__name__)

SESSION_CART = "cart"
SESSION_WALLET = "wallet"
SESSION_WISHLIST = "wishlist"


class SessionStore:
    """
    Server-side HTTP session kept in a redis hash ``session:{sid}``.
    Values are JSON; every write extends the TTL.
    """

    def __init__(self, client: redis.Redis | None = None, url: str | None = None, ttl: int = SESSION_TTL_SECONDS):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.ttl = ttl

    @staticmethod
    def new_session_id() -> str:
        return uuid.uuid4().hex

    @staticmethod
    def _key(session_id: str) -> str:
        return f"session:{session_id}"

    @redis_retry()
    def get(self, session_id: str, name: str) -> Any:
        raw = self.redis.hget(self._key(session_id), name)
        return json.loads(raw) if raw is not None else None

    @redis_retry()
    def set(self, session_id: str, name: str, value: Any) -> None:
        key = self._key(session_id)
        pipe = self.redis.pipeline()
        pipe.hset(key, name, json.dumps(value))
        pipe.expire(key, self.ttl)
        pipe.execute()

    @redis_retry()
    def delete(self, session_id: str, name: str) -> None:
        self.redis.hdel(self._key(session_id), name)


class UserSession:
    """View of one session bound to its id; this is what the web layer hands to the core."""

    def __init__(self, store: SessionStore, session_id: str):
        self.store = store
        self.session_id = session_id

    def load_cart(self) -> Cart:
        return Cart.from_session(self.store.get(self.session_id, SESSION_CART))

    def save_cart(self, cart: Cart) -> None:
        self.store.set(self.session_id, SESSION_CART, cart.to_session())

    def load_wishlist(self) -> Wishlist:
        return Wishlist.from_session(self.store.get(self.session_id, SESSION_WISHLIST))

    def save_wishlist(self, wishlist: Wishlist) -> None:
        self.store.set(self.session_id, SESSION_WISHLIST, wishlist.to_session())

    def cache_wallet(self, balance: Decimal) -> None:
        # read-only copy for views, never used for payment decisions
        self.store.set(self.session_id, SESSION_WALLET, str(to_money(balance)))

    def cached_wallet(self) -> Decimal | None:
        value = self.store.get(self.session_id, SESSION_WALLET)
        return Decimal(value) if value is not None else None
