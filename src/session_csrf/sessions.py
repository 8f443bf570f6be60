"""Session collaborators for CSRF salt storage.

The CSRF core only needs three operations on the current client's
session: ``get``, ``set`` and ``save``. This module defines that protocol
and provides implementations for the two common Starlette setups:

- Cookie sessions from ``starlette.middleware.sessions.SessionMiddleware``
  (wrapped by StarletteSession)
- Server-side sessions kept in a store (InMemorySessionStore here,
  RedisSessionStore in session_csrf.redis_sessions) and attached to the
  request by ServerSessionMiddleware

Key Features:
    - Session accessor protocol
    - In-memory store with expiration handling
    - Session id cookie handling
    - Explicit save with success reporting

Dependencies:
    - starlette: For request/session middleware plumbing
    - secrets: For secure session ID generation
    - datetime: For expiration handling

Called by:
    - session_csrf.salts: For reading and persisting the salt
    - session_csrf.middleware: For resolving the session of a request
"""

import logging
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol, runtime_checkable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from session_csrf.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@runtime_checkable
class SessionAccessor(Protocol):
    """Access to the current request's session."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def save(self) -> bool: ...


@runtime_checkable
class SessionStore(Protocol):
    """Server-side storage for session data keyed by session id."""

    def load(self, session_id: str) -> dict[str, Any] | None: ...

    def save(self, session_id: str, data: dict[str, Any]) -> bool: ...

    def delete(self, session_id: str) -> bool: ...


class StarletteSession:
    """SessionAccessor over Starlette's signed-cookie session.

    Starlette's SessionMiddleware serializes ``request.session`` into the
    response cookie, so ``save`` only has to confirm the session is still
    attached to the request.
    """

    def __init__(self, request: Request) -> None:
        if "session" not in request.scope:
            msg = "SessionMiddleware must be installed before CSRFMiddleware"
            raise ConfigurationError(msg)
        self._session: dict[str, Any] = request.scope["session"]

    def get(self, key: str, default: Any = None) -> Any:
        return self._session.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._session[key] = value

    def save(self) -> bool:
        return True


class StoredSession:
    """SessionAccessor over a server-side SessionStore.

    Attributes:
        store: Backing store
        session_id: Identifier of this session in the store
        data: Working copy of the session data
        is_new: Whether the id was issued for this request
    """

    def __init__(
        self,
        store: SessionStore,
        session_id: str,
        data: dict[str, Any] | None = None,
        is_new: bool = False,
    ) -> None:
        self.store = store
        self.session_id = session_id
        self.data: dict[str, Any] = data or {}
        self.is_new = is_new

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def save(self) -> bool:
        """Write the working copy back to the store.

        Returns:
            True if the store accepted the write
        """
        return self.store.save(self.session_id, self.data)


class InMemorySessionStore:
    """In-memory session store.

    ⚠️ SECURITY WARNING:
        This in-memory implementation is NOT suitable for production use:
        - Sessions are lost on application restart
        - Not shared across multiple instances

        For production, use RedisSessionStore or another shared store.

    Example:
        store = InMemorySessionStore(session_timeout=3600)
        app.add_middleware(ServerSessionMiddleware, store=store)

    Expired entries are only dropped when their id is loaded again, so
    run cleanup_expired_sessions periodically:

        async def cleanup_task():
            while True:
                store.cleanup_expired_sessions()
                await asyncio.sleep(300)  # Every 5 minutes
    """

    def __init__(self, session_timeout: int = 3600) -> None:
        """Initialize session store.

        Args:
            session_timeout: Session timeout in seconds (default: 1 hour)
        """
        self.sessions: dict[str, dict[str, Any]] = {}
        self.session_timeout = session_timeout
        logger.info("Initialized in-memory session store with %ss timeout", session_timeout)

    def load(self, session_id: str) -> dict[str, Any] | None:
        """Get session data if valid, clean up if expired.

        Args:
            session_id: Session identifier

        Returns:
            Copy of the session data, None if expired or not found
        """
        if not session_id:
            return None

        entry = self.sessions.get(session_id)
        if not entry:
            return None

        if self._is_expired(entry):
            logger.debug("Session %s expired, removing", session_id[:8] + "...")
            del self.sessions[session_id]
            return None

        entry["last_accessed"] = datetime.now(tz=UTC)
        return dict(entry["data"])

    def save(self, session_id: str, data: dict[str, Any]) -> bool:
        """Store session data.

        Args:
            session_id: Session identifier
            data: Session data to store

        Returns:
            Always True
        """
        now = datetime.now(tz=UTC)
        entry = self.sessions.get(session_id)
        if entry is None:
            entry = {"created_at": now}
            self.sessions[session_id] = entry
        entry["data"] = dict(data)
        entry["last_accessed"] = now
        return True

    def delete(self, session_id: str) -> bool:
        """Delete a session.

        Args:
            session_id: Session to delete

        Returns:
            True if session was found and removed
        """
        if session_id in self.sessions:
            del self.sessions[session_id]
            logger.debug("Deleted session %s", session_id[:8] + "...")
            return True
        return False

    def _is_expired(self, entry: dict[str, Any]) -> bool:
        expiry = entry["last_accessed"] + timedelta(seconds=self.session_timeout)
        return datetime.now(tz=UTC) >= expiry

    def cleanup_expired_sessions(self) -> int:
        """Remove expired sessions from memory.

        Returns:
            Number of sessions cleaned up
        """
        expired = [
            session_id
            for session_id, entry in self.sessions.items()
            if self._is_expired(entry)
        ]

        for session_id in expired:
            del self.sessions[session_id]

        if expired:
            logger.debug("Cleaned up %d expired sessions", len(expired))

        return len(expired)

    def get_session_count(self) -> int:
        """Get the current number of stored sessions."""
        return len(self.sessions)

    def get_stats(self) -> dict[str, Any]:
        """Get session store statistics.

        Returns:
            Dictionary with session statistics
        """
        expired = sum(1 for entry in self.sessions.values() if self._is_expired(entry))
        return {
            "total_sessions": len(self.sessions),
            "active_sessions": len(self.sessions) - expired,
            "expired_sessions": expired,
            "session_timeout": self.session_timeout,
            "storage_backend": "memory",
        }


class ServerSessionMiddleware(BaseHTTPMiddleware):
    """Attach a StoredSession to ``request.state.session``.

    The session id travels in a cookie; a fresh id is issued when the
    cookie is missing or refers to an unknown or expired session. The id
    cookie is only set on the response once something was written to the
    session, so anonymous browsing does not create store entries.

    Example:
        app.add_middleware(CSRFMiddleware, secret="change-me")
        app.add_middleware(ServerSessionMiddleware, store=InMemorySessionStore())
    """

    def __init__(
        self,
        app: Any,
        store: SessionStore,
        cookie_name: str = "session_id",
        max_age: int | None = 3600,
        cookie_path: str = "/",
        cookie_secure: bool = True,
        cookie_samesite: str = "lax",
    ) -> None:
        super().__init__(app)
        self.store = store
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.cookie_path = cookie_path
        self.cookie_secure = cookie_secure
        self.cookie_samesite = cookie_samesite

    def _load_session(self, request: Request) -> StoredSession:
        session_id = request.cookies.get(self.cookie_name)
        if session_id:
            data = self.store.load(session_id)
            if data is not None:
                return StoredSession(self.store, session_id, data)
            logger.debug("Unknown or expired session cookie, issuing new id")
        return StoredSession(self.store, secrets.token_urlsafe(32), is_new=True)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        session = self._load_session(request)
        request.state.session = session

        response = await call_next(request)

        if session.is_new and session.data:
            response.set_cookie(
                key=self.cookie_name,
                value=session.session_id,
                max_age=self.max_age,
                path=self.cookie_path,
                secure=self.cookie_secure,
                httponly=True,
                samesite=self.cookie_samesite,
            )
        return response


def default_session_getter(request: Request) -> SessionAccessor:
    """Resolve the session accessor for a request.

    Prefers a server-side session attached by ServerSessionMiddleware and
    falls back to Starlette's cookie session.

    Args:
        request: The incoming request

    Returns:
        SessionAccessor for the current client session

    Raises:
        ConfigurationError: If no session middleware is installed
    """
    session = getattr(request.state, "session", None)
    # request.state.session may hold an unrelated object such as a database session
    if isinstance(session, SessionAccessor):
        return session
    return StarletteSession(request)
