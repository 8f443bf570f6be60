"""Extraction of the presented CSRF token from a request.

The default getter probes, in order, until one yields a non-empty value:

1. form field ``_csrf``
2. query parameter ``_csrf``
3. header ``X-CSRF-TOKEN``
4. header ``X-XSRF-TOKEN``
5. cookie ``_csrf``

Getters may be sync or async callables taking the request and returning
the token, or an empty string when none was sent.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence

from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request

logger = logging.getLogger(__name__)

TokenGetter = Callable[[Request], str | Awaitable[str]]

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def read_form_value(request: Request, field_name: str) -> str:
    """Read a single form field without consuming the body for later handlers.

    Args:
        request: The incoming request
        field_name: Form field to read

    Returns:
        Field value, or empty string if absent, not a form body, or unparseable
    """
    content_type = request.headers.get("content-type", "").lower()
    if not content_type.startswith(FORM_CONTENT_TYPES):
        return ""

    # Buffer the body first so the downstream app receives it again
    await request.body()
    try:
        form = await request.form()
    except (MultiPartException, HTTPException) as e:
        # Starlette raises HTTPException when an app is in scope
        logger.debug("Unreadable form body, skipping form field: %s", e)
        return ""
    value = form.get(field_name)
    return value if isinstance(value, str) else ""


def make_token_getter(
    form_field: str = "_csrf",
    query_param: str = "_csrf",
    header_names: Sequence[str] = ("X-CSRF-TOKEN", "X-XSRF-TOKEN"),
    cookie_name: str = "_csrf",
) -> TokenGetter:
    """Build a token getter probing the given transport locations.

    Args:
        form_field: Form field name
        query_param: Query parameter name
        header_names: Header names, probed in order
        cookie_name: Cookie name

    Returns:
        Async token getter
    """
    header_names = tuple(header_names)

    async def get_token(request: Request) -> str:
        if token := await read_form_value(request, form_field):
            return token
        if token := request.query_params.get(query_param, ""):
            return token
        for header in header_names:
            if token := request.headers.get(header, ""):
                return token
        return request.cookies.get(cookie_name, "")

    return get_token


default_token_getter = make_token_getter()
