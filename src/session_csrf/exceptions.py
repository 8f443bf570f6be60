"""Exception hierarchy for session-bound CSRF protection.

All errors raised by this package inherit from CSRFError so applications
can handle them in one place.

Exception Hierarchy:
    CSRFError (base for all package exceptions)
    ├── ConfigurationError (missing secret, middleware not installed)
    ├── CSRFValidationError (missing salt, missing token, token mismatch)
    └── SessionPersistenceError (session store could not save the salt)

Usage:
    from session_csrf.exceptions import CSRFValidationError

    async def on_csrf_failure(request, error: CSRFValidationError):
        return JSONResponse(error.to_dict(), status_code=403)
"""

from __future__ import annotations

from typing import Any

TOKEN_MISMATCH_MESSAGE = "CSRF token mismatch"


class CSRFError(Exception):
    """Base exception for all session-csrf errors.

    Attributes:
        message: Human-readable error message.
        details: Additional context about the error (optional).
        error_code: Machine-readable error code for API responses (optional).
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            details: Additional context as key-value pairs.
            error_code: Machine-readable error code.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.error_code = error_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses.

        Returns:
            Dictionary with error details suitable for JSON serialization.
        """
        result: dict[str, Any] = {
            "error": self.__class__.__name__,
            "message": self.message,
        }
        if self.error_code:
            result["code"] = self.error_code
        if self.details:
            result["details"] = self.details
        return result


class ConfigurationError(CSRFError):
    """Programming or deployment error.

    Raised when the secret is missing or empty, when an unknown hash
    algorithm is configured, or when the token accessors are called on a
    request the CSRF middleware never saw. These are never routed through
    the rejection handler.

    Example:
        >>> raise ConfigurationError(
        ...     "CSRF secret is required",
        ...     details={"setting": "CSRF_SECRET"},
        ... )
    """


class CSRFValidationError(CSRFError):
    """A request failed CSRF validation.

    This is an expected, per-request outcome rather than a program error.
    The middleware builds one of these and hands it to the rejection
    handler, which decides what the client sees.

    Attributes:
        reason: One of ``missing_salt``, ``missing_token`` or
            ``token_mismatch``.
    """

    MISSING_SALT = "missing_salt"
    MISSING_TOKEN = "missing_token"
    TOKEN_MISMATCH = "token_mismatch"

    def __init__(
        self,
        reason: str = TOKEN_MISMATCH,
        *,
        message: str = TOKEN_MISMATCH_MESSAGE,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with the failure reason.

        Args:
            reason: Tag describing which check failed.
            message: Client-facing message (fixed by default).
            details: Additional validation context.
        """
        details = details or {}
        details["reason"] = reason
        super().__init__(message, details=details, error_code="CSRF_FAILED")
        self.reason = reason


class SessionPersistenceError(CSRFError):
    """The session store failed to persist a newly issued salt.

    Continuing with an unsaved salt would make later validations disagree
    with the token handed out in this response, so the failure always
    propagates to the caller.

    Attributes:
        session_key: Session key that was being written.
    """

    def __init__(
        self,
        message: str = "Failed to persist CSRF salt to session",
        *,
        session_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize persistence error.

        Args:
            message: Description of the failure.
            session_key: Session key that was being written.
            details: Additional context.
        """
        details = details or {}
        if session_key:
            details["session_key"] = session_key
        super().__init__(message, details=details, error_code="CSRF_SESSION_SAVE")
        self.session_key = session_key
