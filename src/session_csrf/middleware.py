"""Session-bound CSRF validation middleware for Starlette and FastAPI.

Every state-changing request must carry a token equal to
``tokenize(secret, salt)`` where the salt is the per-session value kept in
the session store. Requests that do not are handed to a pluggable
rejection handler and never reach the application.

Key Features:
    - Method and path-substring exemptions
    - Five-location token extraction (form, query, two headers, cookie)
    - Pluggable rejection handler and token getter
    - Per-request context for the token accessors

Architecture:
    The middleware follows the ASGI middleware pattern. For each request it:
    1. Attaches a CSRFContext to request.state (needed by get_token)
    2. Passes exempt requests through unchanged
    3. Looks up the session salt without creating one
    4. Extracts the presented token
    5. Compares it with the expected token
    Any failed step calls the rejection handler exactly once and returns
    its response.

Dependencies:
    - fastapi: For Request/Response handling
    - starlette: For BaseHTTPMiddleware and SessionMiddleware
    - session_csrf.settings: For configuration
    - session_csrf.sessions: For the session collaborator

Example:
    from fastapi import FastAPI
    from starlette.middleware.sessions import SessionMiddleware
    from session_csrf import CSRFMiddleware

    app = FastAPI()
    app.add_middleware(CSRFMiddleware, secret="change-me", ignored_paths=["/hooks/"])
    app.add_middleware(SessionMiddleware, secret_key="session-signing-key")
"""

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware

from session_csrf.context import CSRFContext, SessionGetter, attach_context
from session_csrf.exceptions import ConfigurationError, CSRFValidationError
from session_csrf.extractors import TokenGetter, make_token_getter
from session_csrf.policy import requires_check
from session_csrf.salts import SaltManager
from session_csrf.sessions import default_session_getter
from session_csrf.settings import CSRFSettings
from session_csrf.tokenizer import tokenize, tokens_match
from session_csrf.utils import get_client_ip, sanitize_path

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[Request, CSRFValidationError], Response | Awaitable[Response]]


def default_error_handler(request: Request, error: CSRFValidationError) -> Response:
    """Reject with 403 and the serialized error."""
    return JSONResponse(error.to_dict(), status_code=status.HTTP_403_FORBIDDEN)


class CSRFMiddleware(BaseHTTPMiddleware):
    """Middleware validating session-bound CSRF tokens.

    Explicit keyword arguments take precedence over the corresponding
    CSRFSettings values. All configuration is fixed at construction.

    Attributes:
        secret: Application-wide secret
        ignored_methods: Methods exempt from checking
        ignored_paths: Path substrings exempt from checking
        salt_manager: Salt manager bound to the configured session key
        algorithm: Tokenizer hash algorithm
        error_handler: Called with the request and error on rejection
        token_getter: Extracts the presented token
        session_getter: Resolves the session of a request
    """

    def __init__(
        self,
        app: Any,
        settings: CSRFSettings | None = None,
        secret: str | None = None,
        ignored_methods: Iterable[str] | None = None,
        ignored_paths: Iterable[str] | None = None,
        error_handler: ErrorHandler | None = None,
        token_getter: TokenGetter | None = None,
        session_getter: SessionGetter | None = None,
    ) -> None:
        """Initialize CSRF middleware.

        Args:
            app: The ASGI application
            settings: Optional CSRFSettings instance (default: from environment)
            secret: Application-wide secret key
            ignored_methods: Methods exempt from checking
            ignored_paths: Path substrings exempt from checking
            error_handler: Rejection handler (default: 403 JSON response)
            token_getter: Token extraction strategy
            session_getter: Session resolution strategy

        Raises:
            ConfigurationError: If no secret is configured
        """
        super().__init__(app)
        self.settings = settings or CSRFSettings()

        self.secret = secret if secret is not None else self.settings.secret
        if not self.secret:
            msg = "CSRF secret is required"
            raise ConfigurationError(msg, details={"setting": "CSRF_SECRET"})

        methods = self.settings.ignored_methods if ignored_methods is None else ignored_methods
        self.ignored_methods = frozenset(method.upper() for method in methods)
        self.ignored_paths = tuple(
            self.settings.ignored_paths if ignored_paths is None else ignored_paths
        )

        self.salt_manager = SaltManager(
            session_key=self.settings.session_key,
            salt_length=self.settings.salt_length,
        )
        self.algorithm = self.settings.hash_algorithm
        self.error_handler = error_handler or default_error_handler
        self.token_getter = token_getter or make_token_getter(
            form_field=self.settings.form_field,
            query_param=self.settings.query_param,
            header_names=self.settings.header_names,
            cookie_name=self.settings.cookie_name,
        )
        self.session_getter = session_getter or default_session_getter

        logger.info(
            "CSRF middleware initialized (ignored_methods=%s, ignored_paths=%d, algorithm=%s)",
            ",".join(sorted(self.ignored_methods)),
            len(self.ignored_paths),
            self.algorithm,
        )

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        """Validate the CSRF token of the request.

        Args:
            request: The incoming request
            call_next: The next middleware/endpoint in the chain

        Returns:
            Response from the application, or from the error handler
        """
        attach_context(
            request,
            CSRFContext(
                secret=self.secret,
                salt_manager=self.salt_manager,
                algorithm=self.algorithm,
                session_getter=self.session_getter,
            ),
        )

        if not requires_check(
            request.method, request.url.path, self.ignored_methods, self.ignored_paths
        ):
            logger.debug(
                "CSRF check skipped: %s %s", request.method, sanitize_path(request.url.path)
            )
            return await call_next(request)

        error = await self._validate(request)
        if error is not None:
            return await self._reject(request, error)

        return await call_next(request)

    async def _validate(self, request: Request) -> CSRFValidationError | None:
        """Run salt lookup, extraction and comparison.

        Returns:
            The validation error, or None if the token is valid
        """
        session = self.session_getter(request)
        salt = self.salt_manager.get_salt(session)
        if salt is None:
            return CSRFValidationError(CSRFValidationError.MISSING_SALT)

        presented = self.token_getter(request)
        if inspect.isawaitable(presented):
            presented = await presented
        if not presented:
            return CSRFValidationError(CSRFValidationError.MISSING_TOKEN)

        expected = tokenize(self.secret, salt, self.algorithm)
        if not tokens_match(expected, presented):
            return CSRFValidationError(CSRFValidationError.TOKEN_MISMATCH)

        return None

    async def _reject(self, request: Request, error: CSRFValidationError) -> Response:
        if self.settings.log_failures:
            logger.warning(
                "CSRF validation failed: %s (method: %s, path: %s, ip: %s)",
                error.reason,
                request.method,
                sanitize_path(request.url.path),
                get_client_ip(request),
            )

        response = self.error_handler(request, error)
        if inspect.isawaitable(response):
            response = await response
        return response


def setup_csrf_protection(
    app: Any,
    secret: str | None = None,
    ignored_paths: list[str] | None = None,
    settings: CSRFSettings | None = None,
    error_handler: ErrorHandler | None = None,
    token_getter: TokenGetter | None = None,
    session_secret_key: str | None = None,
) -> None:
    """Configure CSRF protection for a Starlette or FastAPI application.

    Adds CSRFMiddleware and, when ``session_secret_key`` is given, a
    Starlette SessionMiddleware outside of it to hold the salt. Without a
    session secret the application must install its own session
    middleware after calling this function.

    Args:
        app: The application instance
        secret: CSRF secret (default: CSRF_SECRET from settings)
        ignored_paths: Path substrings exempt from checking
        settings: Optional CSRFSettings instance
        error_handler: Optional rejection handler
        token_getter: Optional token extraction strategy
        session_secret_key: Signing key for Starlette's cookie session

    Raises:
        ConfigurationError: If no CSRF secret is configured

    Example:
        app = FastAPI()
        setup_csrf_protection(
            app,
            secret=os.environ["CSRF_SECRET"],
            ignored_paths=["/hooks/"],
            session_secret_key=os.environ["SESSION_SECRET"],
        )
    """
    settings = settings or CSRFSettings()
    resolved_secret = secret if secret is not None else settings.secret
    if not resolved_secret:
        # Starlette builds the middleware stack lazily; fail here instead
        msg = "CSRF secret is required"
        raise ConfigurationError(msg, details={"setting": "CSRF_SECRET"})

    app.add_middleware(
        CSRFMiddleware,
        settings=settings,
        secret=resolved_secret,
        ignored_paths=ignored_paths,
        error_handler=error_handler,
        token_getter=token_getter,
    )

    if session_secret_key:
        app.add_middleware(SessionMiddleware, secret_key=session_secret_key)

    logger.info(
        "CSRF protection configured (ignored_paths=%d, cookie_session=%s)",
        len(ignored_paths or settings.ignored_paths),
        bool(session_secret_key),
    )
