"""
Redis Repository Base Class

Key prefixing, JSON documents, and atomic Lua script execution on top of
redis-py. Connection and protocol failures surface as UnavailableError.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

import redis
from redis.exceptions import RedisError

from ..domain.errors import UnavailableError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RedisRepository:
    """Base Redis repository with JSON helpers and atomic script execution."""

    def __init__(self, redis_client: redis.Redis, key_prefix: str = ""):
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        """Create a prefixed key for Redis storage."""
        return f"{self.key_prefix}:{key}" if self.key_prefix else key

    def _call(self, operation: str, func: Callable[[], T]) -> T:
        try:
            return func()
        except RedisError as e:
            logger.error(f"Redis {operation} failed: {e}")
            raise UnavailableError(f"Policy store unavailable during {operation}", e) from e

    def set_json(
        self,
        key: str,
        data: Dict[str, Any],
        ttl: Optional[int] = None,
        only_if_absent: bool = False,
    ) -> bool:
        """
        Set JSON data with optional TTL.

        Args:
            key: Redis key
            data: Dictionary to store as JSON
            ttl: Time to live in seconds
            only_if_absent: Use SET NX (insert-if-absent)

        Returns:
            True if written, False if ``only_if_absent`` and the key existed
        """
        redis_key = self._make_key(key)
        json_data = json.dumps(data)
        result = self._call(
            f"SET {key}",
            lambda: self.redis.set(redis_key, json_data, ex=ttl, nx=only_if_absent),
        )
        return bool(result)

    def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Get JSON data from Redis.

        Returns:
            Dictionary if found, None otherwise
        """
        redis_key = self._make_key(key)
        data = self._call(f"GET {key}", lambda: self.redis.get(redis_key))
        if data is None:
            return None
        try:
            return json.loads(_decode(data))
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt JSON document at {key}: {e}")
            return None

    def delete(self, *keys: str) -> int:
        """Delete keys; returns how many existed."""
        redis_keys = [self._make_key(key) for key in keys]
        return self._call("DEL", lambda: self.redis.delete(*redis_keys))

    def exists(self, key: str) -> bool:
        redis_key = self._make_key(key)
        return self._call(f"EXISTS {key}", lambda: self.redis.exists(redis_key)) > 0

    def eval_script(self, script: str, keys: Sequence[str], args: Sequence[Any] = ()) -> Any:
        """
        Run a Lua script atomically on the server.

        Args:
            script: Lua source
            keys: Unprefixed keys passed as KEYS
            args: Values passed as ARGV

        Returns:
            Raw script result
        """
        redis_keys = [self._make_key(key) for key in keys]
        return self._call(
            "script",
            lambda: self.redis.eval(script, len(redis_keys), *redis_keys, *args),
        )

    def index_add(self, key: str, member: str, score: float) -> None:
        """Add a member to a sorted-set index."""
        redis_key = self._make_key(key)
        self._call(f"ZADD {key}", lambda: self.redis.zadd(redis_key, {member: score}))

    def index_remove(self, key: str, member: str) -> None:
        redis_key = self._make_key(key)
        self._call(f"ZREM {key}", lambda: self.redis.zrem(redis_key, member))

    def index_members(self, key: str, start: int = 0, stop: int = -1) -> List[str]:
        """Return sorted-set members by rank, highest score first (stop inclusive)."""
        redis_key = self._make_key(key)
        members = self._call(
            f"ZREVRANGE {key}", lambda: self.redis.zrevrange(redis_key, start, stop)
        )
        return [_decode(member) for member in members]

    def index_size(self, key: str) -> int:
        redis_key = self._make_key(key)
        return self._call(f"ZCARD {key}", lambda: self.redis.zcard(redis_key))

    def list_append(self, key: str, data: Dict[str, Any]) -> int:
        redis_key = self._make_key(key)
        json_data = json.dumps(data)
        return self._call(f"RPUSH {key}", lambda: self.redis.rpush(redis_key, json_data))

    def list_tail(self, key: str, limit: int) -> List[Dict[str, Any]]:
        """Return the last ``limit`` JSON entries of a list, newest first."""
        if limit <= 0:
            return []
        redis_key = self._make_key(key)
        items = self._call(f"LRANGE {key}", lambda: self.redis.lrange(redis_key, -limit, -1))
        return [json.loads(_decode(item)) for item in reversed(items)]

    def list_length(self, key: str) -> int:
        redis_key = self._make_key(key)
        return self._call(f"LLEN {key}", lambda: self.redis.llen(redis_key))


class RedisConnectionManager:
    """Manages Redis connection with connection pooling."""

    def __init__(
        self,
        host: str = 'localhost',
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        max_connections: int = 20,
        socket_timeout: Optional[float] = 5.0,
        decode_responses: bool = False,
    ):
        self.connection_pool = redis.ConnectionPool(
            host=host,
            port=port,
            db=db,
            password=password,
            max_connections=max_connections,
            decode_responses=decode_responses,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            retry_on_timeout=True,
            socket_keepalive=True,
        )
        self._client = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client instance with connection pooling."""
        if self._client is None:
            self._client = redis.Redis(connection_pool=self.connection_pool)
        return self._client

    def health_check(self) -> bool:
        """Check if Redis connection is healthy."""
        try:
            return bool(self.client.ping())
        except RedisError:
            return False

    def close(self):
        """Close the connection pool."""
        if self.connection_pool:
            self.connection_pool.disconnect()


def _decode(value: Any) -> str:
    return value.decode('utf-8') if isinstance(value, bytes) else value
