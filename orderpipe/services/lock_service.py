# orderpipe/services/lock_service.py
import uuid
from contextlib import contextmanager

import redis

from orderpipe.domain.errors import ConcurrentModification
from orderpipe.utils.retry import redis_retry
from orderpipe.utils.settings import REDIS_URL, CART_LOCK_TTL_SECONDS
from orderpipe.utils.logging import get_logger

logger = get_logger(__name__)

# compare-and-delete: only the holder's token may release the lock
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    Short per-customer cart lock in Redis. Serializes cart mutations and
    commits of one customer; the database constraints stay authoritative.
    """

    def __init__(self, url: str | None = None, ttl: int | None = None, client=None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.ttl = ttl or CART_LOCK_TTL_SECONDS

    @staticmethod
    def _key(user_id: int) -> str:
        return f"cart:{user_id}:lock"

    @redis_retry()
    def acquire_cart_lock(self, user_id: int, token: str) -> bool:
        key = self._key(user_id)
        logger.info(f"Acquire lock {key}")
        # SET cart:1:lock <token> NX EX <ttl>
        if self.redis.set(name=key, value=token, nx=True, ex=self.ttl):
            return True
        # a retried SET whose first reply was lost finds its own token
        return self.redis.get(key) == token

    @redis_retry()
    def release_cart_lock(self, user_id: int, token: str) -> bool:
        key = self._key(user_id)
        logger.info(f"Release lock {key}")
        return bool(self.redis.eval(_RELEASE_LUA, 1, key, token))

    @contextmanager
    def cart_lock(self, user_id: int):
        token = uuid.uuid4().hex
        if not self.acquire_cart_lock(user_id, token):
            raise ConcurrentModification("Another request is modifying this cart")
        try:
            yield
        finally:
            try:
                self.release_cart_lock(user_id, token)
            except redis.RedisError:
                # the key still expires after its TTL
                logger.exception(f"Failed to release lock {self._key(user_id)}")


@contextmanager
def no_lock(user_id: int):
    yield
