import uuid
from contextlib import contextmanager
from typing import Iterator

import redis

from shop.utils.retry import poll_until_true, redis_retry
from shop.utils.settings import REDIS_URL, CHECKOUT_LOCK_TTL_SECONDS, CHECKOUT_LOCK_WAIT_SECONDS
from shop.utils.logging import get_logger

logger = get_logger(__name__)

#LUA compare-and-delete, runs atomically inside redis
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#lua scripts are single threaded in redis, nothing can slip in between GET and DEL
#so only the holder of the token can release the lock


class LockNotAcquired(Exception):
    def __init__(self, user_id: str):
        super().__init__(f"Another checkout is in progress for user {user_id}")
        self.user_id = user_id


class LockService:
    """
    -per-user checkout lock (shared by every server process through redis)
    -release only by the owner token
    -TTL so a crashed worker never leaves a user locked forever
    """

    def __init__(
        self,
        client: redis.Redis | None = None,
        url: str | None = None,
        ttl: int = CHECKOUT_LOCK_TTL_SECONDS,
        wait: float = CHECKOUT_LOCK_WAIT_SECONDS,
    ):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.ttl = ttl
        self.wait = wait

    @staticmethod
    def _key(user_id: str) -> str:
        return f"checkout:user:{user_id}:lock"

    @redis_retry()
    def try_acquire_user_lock(self, user_id: str, token: str) -> bool:
        key = self._key(user_id)
        #SET checkout:user:alice:lock "<token>" NX EX 30
        return bool(
            self.redis.set(
                name=key,
                value=token,
                nx=True,  #only if nobody holds it
                ex=self.ttl,  #expires by itself
            )
        )

    def acquire_user_lock(self, user_id: str, token: str, wait: float | None = None) -> bool:
        timeout = self.wait if wait is None else wait
        logger.info(f"Acquire lock {self._key(user_id)} (wait up to {timeout}s)")

        @poll_until_true(timeout)
        def _attempt():
            return self.try_acquire_user_lock(user_id, token)

        return _attempt()

    @redis_retry()
    def release_user_lock(self, user_id: str, token: str) -> bool:
        key = self._key(user_id)
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    @contextmanager
    def user_lock(self, user_id: str, wait: float | None = None) -> Iterator[str]:
        """
        Holds the user's checkout lock for the body of the with-block,
        released on every exit path. Raises LockNotAcquired on timeout.
        """
        token = uuid.uuid4().hex
        if not self.acquire_user_lock(user_id, token, wait):
            raise LockNotAcquired(user_id)
        try:
            yield token
        finally:
            try:
                self.release_user_lock(user_id, token)
            except redis.RedisError as e:
                # key still expires after ttl
                logger.warning(f"Failed to release lock for user {user_id}: {e}")
