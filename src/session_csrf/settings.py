"""CSRF protection configuration settings.

Reads from the environment (and ``.env``) by default, but every value can
be injected directly. Settings are frozen once built; the middleware holds
its own instance so there is no process-wide mutable configuration.
"""

from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from session_csrf.policy import DEFAULT_IGNORED_METHODS
from session_csrf.tokenizer import DEFAULT_ALGORITHM, SUPPORTED_ALGORITHMS


class CSRFSettings(BaseSettings):
    """Configuration for session-bound CSRF protection."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
        frozen=True,
    )

    # Required
    secret: str = Field(default="", alias="CSRF_SECRET")

    # Interception policy
    ignored_methods: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: sorted(DEFAULT_IGNORED_METHODS),
        alias="CSRF_IGNORED_METHODS",
    )
    ignored_paths: Annotated[list[str], NoDecode] = Field(
        default_factory=list, alias="CSRF_IGNORED_PATHS"
    )

    # Salt
    session_key: str = Field(default="csrfSalt", alias="CSRF_SESSION_KEY")
    salt_length: int = Field(default=32, ge=16, alias="CSRF_SALT_LENGTH")
    hash_algorithm: str = Field(
        default=DEFAULT_ALGORITHM, alias="CSRF_HASH_ALGORITHM"
    )

    # Token transport
    form_field: str = Field(default="_csrf", alias="CSRF_FORM_FIELD")
    query_param: str = Field(default="_csrf", alias="CSRF_QUERY_PARAM")
    header_names: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["X-CSRF-TOKEN", "X-XSRF-TOKEN"],
        alias="CSRF_HEADER_NAMES",
    )
    cookie_name: str = Field(default="_csrf", alias="CSRF_COOKIE_NAME")

    # Logging
    log_failures: bool = Field(default=True, alias="CSRF_LOG_FAILURES")

    @field_validator("ignored_methods", "ignored_paths", "header_names", mode="before")
    @classmethod
    def parse_comma_separated(cls, v: str | list[str] | None) -> list[str]:
        """Parse comma-separated string into list."""
        if isinstance(v, str):
            return (
                [item.strip() for item in v.split(",") if item.strip()]
                if v.strip()
                else []
            )
        return list(v or [])

    @field_validator("ignored_methods")
    @classmethod
    def normalize_methods(cls, v: list[str]) -> list[str]:
        """Upper-case HTTP method names."""
        return [method.upper() for method in v]

    @field_validator("hash_algorithm")
    @classmethod
    def check_algorithm(cls, v: str) -> str:
        """Reject hash algorithms the tokenizer does not support."""
        algorithm = v.lower()
        if algorithm not in SUPPORTED_ALGORITHMS:
            msg = f"hash_algorithm must be one of {sorted(SUPPORTED_ALGORITHMS)}"
            raise ValueError(msg)
        return algorithm

    @property
    def is_configured(self) -> bool:
        """Whether a usable secret has been provided."""
        return bool(self.secret)
