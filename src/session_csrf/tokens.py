"""Token accessors for request handlers.

Handlers call these to embed the current token in forms or headers, or to
rotate it after a privilege change such as login. Both take the request
and can be used directly as FastAPI dependencies.

Example:
    from fastapi import Depends, FastAPI
    from session_csrf import get_token, refresh_token

    @app.get("/form")
    async def form(token: str = Depends(get_token)):
        return {"csrf_token": token}

    @app.post("/login")
    async def login(request: Request):
        ...  # authenticate
        refresh_token(request)
"""

import logging

from fastapi import Request

from session_csrf.context import get_context
from session_csrf.tokenizer import tokenize

logger = logging.getLogger(__name__)


def get_token(request: Request) -> str:
    """Get the CSRF token for the current session.

    Returns the token cached earlier in this request if there is one.
    Otherwise reads the session salt, creating and saving one when the
    session has none yet, and caches the derived token for the rest of
    the request.

    Args:
        request: The current request

    Returns:
        CSRF token to send to the client

    Raises:
        ConfigurationError: If CSRFMiddleware did not run for this request
        SessionPersistenceError: If a new salt could not be saved
    """
    context = get_context(request)
    if context.token is not None:
        return context.token

    session = context.session_getter(request)
    salt = context.salt_manager.get_or_create_salt(session)

    context.token = tokenize(context.secret, salt, context.algorithm)
    return context.token


def refresh_token(request: Request) -> tuple[str, str]:
    """Rotate the session salt and return the old and new tokens.

    Call after a security-sensitive transition (e.g. successful login) so
    that any token fixed into the session beforehand stops validating.

    Args:
        request: The current request

    Returns:
        Tuple of (token cached earlier in this request or "", new token)

    Raises:
        ConfigurationError: If CSRFMiddleware did not run for this request
        SessionPersistenceError: If the new salt could not be saved
    """
    context = get_context(request)
    old = context.token or ""

    session = context.session_getter(request)
    salt = context.salt_manager.rotate_salt(session)

    context.token = tokenize(context.secret, salt, context.algorithm)
    logger.debug("Issued new CSRF token after rotation")
    return old, context.token
