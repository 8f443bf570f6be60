"""Per-session salt management.

The salt is the only per-session secret state. It is created lazily the
first time a token is rendered for a session, stored under a fixed session
key, and replaced on rotation, which invalidates every token issued from
the previous salt.

Dependencies:
    - secrets: For CSPRNG salt generation

Called by:
    - session_csrf.middleware: Read-only salt lookup during validation
    - session_csrf.tokens: Lazy creation and rotation
"""

import logging
import secrets
import string

from session_csrf.exceptions import SessionPersistenceError
from session_csrf.sessions import SessionAccessor

logger = logging.getLogger(__name__)

SALT_ALPHABET = string.ascii_letters + string.digits


class SaltManager:
    """Obtain, create and rotate the CSRF salt of a session.

    Concurrent first-creation or rotation for one session is not locked:
    the last save wins, and a request validating against the salt it read
    earlier will fail. Session stores that need stricter behaviour should
    serialize writes per session.

    Example:
        manager = SaltManager()
        salt = manager.get_or_create_salt(session)
        new_salt = manager.rotate_salt(session)
    """

    def __init__(self, session_key: str = "csrfSalt", salt_length: int = 32) -> None:
        """Initialize salt manager.

        Args:
            session_key: Session key holding the salt
            salt_length: Number of characters in generated salts
        """
        self.session_key = session_key
        self.salt_length = salt_length

    def generate_salt(self) -> str:
        """Generate a new random salt."""
        return "".join(secrets.choice(SALT_ALPHABET) for _ in range(self.salt_length))

    def get_salt(self, session: SessionAccessor) -> str | None:
        """Read the session salt without creating one.

        Args:
            session: Current session

        Returns:
            The salt, or None if absent, empty or not a string
        """
        salt = session.get(self.session_key)
        if not isinstance(salt, str) or not salt:
            return None
        return salt

    def get_or_create_salt(self, session: SessionAccessor) -> str:
        """Return the session salt, creating and saving one if needed.

        Args:
            session: Current session

        Returns:
            The existing or newly created salt

        Raises:
            SessionPersistenceError: If the session could not be saved
        """
        salt = self.get_salt(session)
        if salt is not None:
            return salt

        salt = self.generate_salt()
        self._store(session, salt)
        logger.debug("Created CSRF salt for session")
        return salt

    def rotate_salt(self, session: SessionAccessor) -> str:
        """Replace the session salt unconditionally.

        Args:
            session: Current session

        Returns:
            The new salt

        Raises:
            SessionPersistenceError: If the session could not be saved
        """
        salt = self.generate_salt()
        self._store(session, salt)
        logger.info("Rotated CSRF salt for session")
        return salt

    def _store(self, session: SessionAccessor, salt: str) -> None:
        session.set(self.session_key, salt)
        try:
            saved = session.save()
        except Exception as e:
            raise SessionPersistenceError(session_key=self.session_key) from e

        if not saved:
            raise SessionPersistenceError(session_key=self.session_key)
