from __future__ import annotations

# single-use login challenge store (redis + in-memory fallback)
import hashlib
import json
import logging
import time
from threading import Lock
from typing import Dict, Optional, Tuple

from redis import Connection, ConnectionPool, Redis, SSLConnection

from app.core.config import settings
from app.core.wallet_auth import AuthChallenge

logger = logging.getLogger(__name__)

KEY_PREFIX = "auth:challenge"


def challenge_key(wallet_address: str, message: str) -> str:
    """Key for one issued challenge: wallet address + digest of the exact message."""
    digest = hashlib.sha256(message.encode("utf-8")).hexdigest()
    return f"{KEY_PREFIX}:{wallet_address}:{digest}"


class ChallengeStore:
    """
    Expiring key-value store for issued login challenges.

    A challenge is issued once and may be consumed once. ``consume`` is a single
    delete, so two concurrent logins replaying the same signed message cannot
    both succeed. Redis is used when configured and reachable; otherwise entries
    live in process memory.
    """

    def __init__(
        self,
        pool: Optional[ConnectionPool] = None,
        recheck_interval: int = settings.REDIS_RECHECK_INTERVAL,
    ):
        self.pool = pool
        self.recheck_interval = recheck_interval
        self.redis_available = False
        self.memory_store: Dict[str, Tuple[bytes, float]] = {}
        self._memory_lock = Lock()
        self._last_redis_check: Optional[float] = None

    @classmethod
    def from_settings(cls) -> "ChallengeStore":
        if settings.REDIS_HOST is None or settings.REDIS_HOST.strip() == "":
            return cls()
        pool = ConnectionPool(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            socket_connect_timeout=0.05,
            socket_timeout=5,
            retry_on_timeout=False,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            connection_class=SSLConnection if settings.REDIS_SSL else Connection,
        )
        return cls(pool=pool)

    def redis_connect(self) -> Optional[Redis]:
        """Connect to Redis, with a cooldown when unavailable"""
        if self.pool is None:
            return None

        if self.redis_available:
            try:
                rc = Redis(connection_pool=self.pool)
                if rc.ping():
                    return rc
                self.redis_available = False
                self._last_redis_check = time.time()
            except Exception:
                logger.warning("redis unavailable, using in-memory challenge store", exc_info=True)
                self.redis_available = False
                self._last_redis_check = time.time()
            return None

        now = time.time()
        if self._last_redis_check is not None:
            if now - self._last_redis_check < self.recheck_interval:
                return None

        self._last_redis_check = now
        try:
            rc = Redis(connection_pool=self.pool)
            if rc.ping():
                self.redis_available = True
                return rc
        except Exception:
            logger.warning("redis ping failed", exc_info=True)

        return None

    def issue(self, challenge: AuthChallenge, ttl_seconds: int = settings.NONCE_EXPIRY_SECONDS) -> None:
        """Remember an issued challenge for ``ttl_seconds``."""
        key = challenge_key(challenge.wallet_address, challenge.message)
        data = json.dumps(
            {
                "wallet_address": challenge.wallet_address,
                "issued_at_ms": challenge.issued_at_ms,
                "nonce": challenge.nonce,
            }
        ).encode("utf-8")
        ttl_seconds = max(int(ttl_seconds), 1)

        if self._set_redis(key, data, ttl_seconds):
            return
        self._set_memory(key, data, ttl_seconds)

    def consume(self, wallet_address: str, message: str) -> bool:
        """
        Atomically remove the challenge matching ``(wallet_address, message)``.

        Returns:
            True if an unexpired challenge existed and is now spent, False otherwise
        """
        key = challenge_key(wallet_address, message)
        deleted = self._delete_redis(key)
        if deleted:
            return True
        return self._pop_memory(key)

    def _set_redis(self, key: str, data: bytes, ttl_seconds: int) -> bool:
        rc = self.redis_connect()
        if rc is None:
            return False
        try:
            rc.set(key, data, ex=ttl_seconds)
            return True
        except Exception:
            logger.warning("failed to store challenge in redis", exc_info=True)
            return False
        finally:
            rc.close()

    def _delete_redis(self, key: str) -> bool:
        rc = self.redis_connect()
        if rc is None:
            return False
        try:
            return bool(rc.delete(key))
        except Exception:
            logger.warning("failed to consume challenge from redis", exc_info=True)
            return False
        finally:
            rc.close()

    def _set_memory(self, key: str, data: bytes, ttl_seconds: int) -> None:
        now = time.time()
        with self._memory_lock:
            expired = [k for k, (_, exp) in self.memory_store.items() if exp <= now]
            for k in expired:
                self.memory_store.pop(k, None)
            self.memory_store[key] = (data, now + ttl_seconds)

    def _pop_memory(self, key: str) -> bool:
        now = time.time()
        with self._memory_lock:
            cached = self.memory_store.pop(key, None)
        if cached is None:
            return False
        _, expires_at = cached
        return expires_at > now
