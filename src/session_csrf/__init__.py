"""Session-bound CSRF protection for Starlette and FastAPI.

Tokens are derived from an application-wide secret and a random per-session
salt, so no token has to be stored server-side:

- Token derivation (``hash(salt + "-" + secret)``, URL-safe base64)
- Salt creation and rotation through the session store
- Method and path exemptions
- Validation middleware with pluggable rejection handler and token getter
- Request-scoped token accessors for handlers

Quick Start:
    from fastapi import Depends, FastAPI, Request
    from session_csrf import get_token, refresh_token, setup_csrf_protection

    app = FastAPI()
    setup_csrf_protection(
        app,
        secret="change-me",
        session_secret_key="another-secret",
    )

    @app.get("/form")
    async def form(token: str = Depends(get_token)):
        return {"csrf_token": token}

    @app.post("/login")
    async def login(request: Request):
        _, token = refresh_token(request)
        return {"csrf_token": token}
"""

from session_csrf.context import CSRFContext, get_context
from session_csrf.exceptions import (
    ConfigurationError,
    CSRFError,
    CSRFValidationError,
    SessionPersistenceError,
)
from session_csrf.extractors import default_token_getter, make_token_getter
from session_csrf.middleware import (
    CSRFMiddleware,
    default_error_handler,
    setup_csrf_protection,
)
from session_csrf.policy import DEFAULT_IGNORED_METHODS, requires_check
from session_csrf.salts import SaltManager
from session_csrf.sessions import (
    InMemorySessionStore,
    ServerSessionMiddleware,
    SessionAccessor,
    SessionStore,
    StarletteSession,
    StoredSession,
    default_session_getter,
)
from session_csrf.settings import CSRFSettings
from session_csrf.tokenizer import tokenize, tokens_match
from session_csrf.tokens import get_token, refresh_token

__version__ = "0.1.0"

# Optional Redis session store (requires redis package)
_redis_available: bool
try:
    from session_csrf.redis_sessions import REDIS_AVAILABLE, RedisSessionStore

    _redis_available = REDIS_AVAILABLE
except ImportError:
    RedisSessionStore = None  # type: ignore[assignment,misc]
    _redis_available = False

__all__ = [
    "DEFAULT_IGNORED_METHODS",
    # Context
    "CSRFContext",
    # Exceptions
    "CSRFError",
    # Middleware
    "CSRFMiddleware",
    # Configuration
    "CSRFSettings",
    "CSRFValidationError",
    "ConfigurationError",
    # Sessions
    "InMemorySessionStore",
    # Salts
    "SaltManager",
    "ServerSessionMiddleware",
    "SessionAccessor",
    "SessionPersistenceError",
    "SessionStore",
    "StarletteSession",
    "StoredSession",
    "__version__",
    "default_error_handler",
    "default_session_getter",
    # Extraction
    "default_token_getter",
    "get_context",
    # Token accessors
    "get_token",
    "make_token_getter",
    "refresh_token",
    # Policy
    "requires_check",
    "setup_csrf_protection",
    # Tokenizer
    "tokenize",
    "tokens_match",
]

if _redis_available and RedisSessionStore is not None:
    __all__.append("RedisSessionStore")
