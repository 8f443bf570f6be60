"""Redis-based session store for production use.

⚠️ IMPORTANT: This requires redis package to be installed:
    pip install "session-csrf[redis]"

Key Features:
    - Persistent session storage
    - Shared across multiple application instances
    - Automatic expiration with Redis TTL
    - Save failures reported to the caller instead of being dropped

Dependencies:
    - redis: For Redis client
    - json: For session serialization

Example:
    from session_csrf.redis_sessions import RedisSessionStore
    from session_csrf.sessions import ServerSessionMiddleware

    store = RedisSessionStore(redis_url="redis://localhost:6379/0")
    app.add_middleware(CSRFMiddleware, secret=settings.secret_key)
    app.add_middleware(ServerSessionMiddleware, store=store)
"""

import json
import logging
from typing import Any

_redis_available: bool
try:
    import redis

    _redis_available = True
except ImportError:
    _redis_available = False
    redis = None  # type: ignore[assignment]

REDIS_AVAILABLE = _redis_available

logger = logging.getLogger(__name__)


class RedisSessionStore:
    """Redis-backed SessionStore.

    Session data is stored as JSON under ``{key_prefix}:{session_id}``
    with a TTL equal to the session timeout; every load or save refreshes
    the TTL.

    Requirements:
        pip install redis>=5.0.0

    Example:
        store = RedisSessionStore(
            redis_url="redis://localhost:6379/0",
            session_timeout=3600,
            key_prefix="csrf_session",
        )
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        session_timeout: int = 3600,
        key_prefix: str = "csrf_session",
    ) -> None:
        """Initialize Redis session store.

        Args:
            redis_url: Redis connection URL
            session_timeout: Session timeout in seconds (default: 1 hour)
            key_prefix: Prefix for Redis keys (default: "csrf_session")

        Raises:
            ImportError: If redis package is not installed
            redis.ConnectionError: If cannot connect to Redis
        """
        if not REDIS_AVAILABLE or redis is None:
            msg = (
                "Redis package is required for RedisSessionStore. "
                "Install with: pip install redis>=5.0.0"
            )
            raise ImportError(msg)

        self.session_timeout = session_timeout
        self.key_prefix = key_prefix

        self.redis_client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
        )

        try:
            self.redis_client.ping()
            logger.info(
                "Initialized Redis session store (timeout=%ds, prefix=%s)",
                session_timeout,
                key_prefix,
            )
        except redis.ConnectionError:
            logger.exception("Failed to connect to Redis")
            raise

    def _make_key(self, session_id: str) -> str:
        return f"{self.key_prefix}:{session_id}"

    def load(self, session_id: str) -> dict[str, Any] | None:
        """Get session data from Redis and refresh its TTL.

        Args:
            session_id: Session identifier

        Returns:
            Session data if valid, None if expired, missing or corrupted
        """
        if not session_id:
            return None

        key = self._make_key(session_id)
        raw = self.redis_client.get(key)
        if not raw:
            return None

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.exception("Failed to decode session data, deleting session")
            self.redis_client.delete(key)
            return None

        if not isinstance(data, dict):
            logger.warning("Session payload is not an object, deleting session")
            self.redis_client.delete(key)
            return None

        self.redis_client.expire(key, self.session_timeout)
        return data

    def save(self, session_id: str, data: dict[str, Any]) -> bool:
        """Write session data to Redis with TTL.

        Args:
            session_id: Session identifier
            data: JSON-serializable session data

        Returns:
            True if Redis acknowledged the write, False on Redis errors
        """
        key = self._make_key(session_id)
        try:
            return bool(
                self.redis_client.setex(key, self.session_timeout, json.dumps(data))
            )
        except redis.RedisError:
            logger.exception("Failed to save session %s", session_id[:8] + "...")
            return False

    def delete(self, session_id: str) -> bool:
        """Delete a session from Redis.

        Args:
            session_id: Session to delete

        Returns:
            True if session was found and deleted
        """
        deleted = self.redis_client.delete(self._make_key(session_id))
        if deleted:
            logger.debug("Deleted session %s", session_id[:8] + "...")
            return True
        return False

    def get_stats(self) -> dict[str, Any]:
        """Get session store statistics.

        Returns:
            Dictionary with session statistics
        """
        keys = list(self.redis_client.scan_iter(match=f"{self.key_prefix}:*"))
        return {
            "total_sessions": len(keys),
            "active_sessions": len(keys),
            "expired_sessions": 0,  # Redis handles automatically
            "session_timeout": self.session_timeout,
            "storage_backend": "redis",
            "key_prefix": self.key_prefix,
        }

    def health_check(self) -> bool:
        """Check if Redis connection is healthy.

        Returns:
            True if Redis is reachable and responsive
        """
        try:
            return bool(self.redis_client.ping())
        except redis.RedisError:
            return False
