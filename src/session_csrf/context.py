"""Typed per-request CSRF state.

The middleware attaches a CSRFContext to ``request.state.csrf`` on entry.
It carries an immutable reference to the active configuration plus the
token cache for the current request, so the token accessors never depend
on process-wide state.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from starlette.requests import Request

from session_csrf.exceptions import ConfigurationError
from session_csrf.salts import SaltManager
from session_csrf.sessions import SessionAccessor, default_session_getter

STATE_ATTRIBUTE = "csrf"

SessionGetter = Callable[[Request], SessionAccessor]


@dataclass
class CSRFContext:
    """CSRF configuration and token cache for one request.

    Attributes:
        secret: Application-wide secret mixed into every token
        salt_manager: Salt manager bound to the configured session key
        algorithm: Hash algorithm used by the tokenizer
        session_getter: Resolves the session of the request
        token: Token computed earlier in this request, if any
    """

    secret: str
    salt_manager: SaltManager
    algorithm: str
    session_getter: SessionGetter = field(default=default_session_getter)
    token: str | None = None


def attach_context(request: Request, context: CSRFContext) -> None:
    """Attach CSRF context to the request."""
    setattr(request.state, STATE_ATTRIBUTE, context)


def get_context(request: Request) -> CSRFContext:
    """Get the CSRF context attached by CSRFMiddleware.

    Args:
        request: The current request

    Returns:
        CSRFContext for the request

    Raises:
        ConfigurationError: If CSRFMiddleware did not run for this request
    """
    context = getattr(request.state, STATE_ATTRIBUTE, None)
    if not isinstance(context, CSRFContext):
        msg = "CSRF context missing: is CSRFMiddleware installed?"
        raise ConfigurationError(msg)
    if not context.secret:
        msg = "CSRF secret is empty"
        raise ConfigurationError(msg)
    return context
