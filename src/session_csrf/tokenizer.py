"""Token derivation for session-bound CSRF protection.

A token is the URL-safe base64 encoding of ``hash(salt + "-" + secret)``.
Tokens are never stored; they are recomputed from the application secret
and the per-session salt whenever they are needed.

Dependencies:
    - hashlib: For the one-way digest
    - base64: For URL-safe encoding
    - secrets: For constant-time comparison

Called by:
    - session_csrf.middleware: To compute the expected token
    - session_csrf.tokens: To render tokens for handlers
"""

import base64
import hashlib
import secrets

from session_csrf.exceptions import ConfigurationError

DEFAULT_ALGORITHM = "sha256"

# sha1 keeps tokens compatible with gin-contrib csrf deployments
SUPPORTED_ALGORITHMS = frozenset({"sha1", "sha256", "sha384", "sha512"})


def tokenize(secret: str, salt: str, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Derive the CSRF token for a secret and salt.

    Args:
        secret: Application-wide secret key
        salt: Per-session random salt
        algorithm: hashlib algorithm name (default: sha256)

    Returns:
        URL-safe base64 encoded digest

    Raises:
        ConfigurationError: If the algorithm is not supported

    Example:
        >>> tokenize("secret", "salt", algorithm="sha1")
        'XJJE-7m02-iUI9Zb_z6CGLgT7EA='
    """
    if algorithm not in SUPPORTED_ALGORITHMS:
        msg = f"Unsupported CSRF hash algorithm: {algorithm}"
        raise ConfigurationError(
            msg, details={"supported": sorted(SUPPORTED_ALGORITHMS)}
        )

    digest = hashlib.new(algorithm, f"{salt}-{secret}".encode()).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii")


def tokens_match(expected: str, presented: str | None) -> bool:
    """Compare an expected token with the one a client presented.

    Args:
        expected: Token computed from secret and salt
        presented: Token extracted from the request

    Returns:
        True only if both are non-empty and exactly equal
    """
    if not expected or not presented:
        return False
    return secrets.compare_digest(expected.encode(), presented.encode())
