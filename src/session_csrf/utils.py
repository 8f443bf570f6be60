"""Utilities for secure logging of request data.

CSRF rejections are logged with the request path and client address,
both of which are client-controlled. These helpers keep such values from
injecting fake log lines.

Called by:
    - session_csrf.middleware: For rejection and exemption logging
"""

import re
from typing import Any

from starlette.requests import Request

# Patterns for dangerous characters in logs
CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x1f\x7f-\x9f]")
NEWLINE_PATTERN = re.compile(r"[\r\n]")
IP_PATTERN = re.compile(r"^[0-9a-fA-F:.[\]]+$")


def sanitize_for_logging(value: Any, max_length: int = 200) -> str:
    r"""Sanitize user input for safe logging.

    Newlines become spaces, other control characters become U+FFFD, and
    long values are truncated in the middle.

    Args:
        value: Value to sanitize (any type)
        max_length: Maximum length of output (default: 200)

    Returns:
        Sanitized string safe for logging

    Example:
        >>> sanitize_for_logging("/form\nINJECTED LINE")
        '/form INJECTED LINE'
    """
    if value is None:
        return "None"

    str_value = NEWLINE_PATTERN.sub(" ", str(value))
    str_value = CONTROL_CHARS_PATTERN.sub("�", str_value)

    if len(str_value) > max_length:
        keep = (max_length - 20) // 2
        str_value = f"{str_value[:keep]}... (truncated) ...{str_value[-keep:]}"

    return str_value


def sanitize_path(path: str, max_length: int = 200) -> str:
    """Sanitize URL path for logging."""
    return sanitize_for_logging(path, max_length=max_length)


def get_client_ip(request: Request) -> str:
    """Extract the sanitized client address from a request.

    Forwarding headers are not trusted; put a proxy-headers middleware in
    front of the app if the real client address is needed.

    Args:
        request: Starlette Request object

    Returns:
        Client IP address, "unknown" or "<invalid-ip>"
    """
    if not request.client or not request.client.host:
        return "unknown"

    host = sanitize_for_logging(request.client.host, max_length=45)
    if not IP_PATTERN.match(host):
        return "<invalid-ip>"
    return host
