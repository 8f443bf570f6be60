"""Tests for session_csrf extractors module."""

import asyncio
from urllib.parse import urlencode

from starlette.requests import Request

from session_csrf.extractors import default_token_getter, make_token_getter, read_form_value


def _make_request(
    method: str = "POST",
    query: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
    cookies: dict[str, str] | None = None,
    form: dict[str, str] | None = None,
    body: bytes = b"",
    content_type: str = "application/x-www-form-urlencoded",
) -> Request:
    """Build a real Starlette request from an ASGI scope."""
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    if form is not None:
        body = urlencode(form).encode()
        raw_headers.append((b"content-type", content_type.encode()))
    if cookies:
        cookie_header = "; ".join(f"{k}={v}" for k, v in cookies.items())
        raw_headers.append((b"cookie", cookie_header.encode()))

    scope = {
        "type": "http",
        "method": method,
        "path": "/submit",
        "query_string": urlencode(query or {}).encode(),
        "headers": raw_headers,
    }
    sent = False

    async def receive():
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


def _extract(request: Request, getter=default_token_getter) -> str:
    return asyncio.run(getter(request))


class TestDefaultTokenGetter:
    """Test suite for the default five-location probe."""

    def test_no_token(self):
        """Test absence everywhere yields an empty string."""
        assert _extract(_make_request()) == ""

    def test_form_field(self):
        """Test the form field is read."""
        assert _extract(_make_request(form={"_csrf": "from-form"})) == "from-form"

    def test_query_parameter(self):
        """Test the query parameter is read."""
        assert _extract(_make_request(query={"_csrf": "from-query"})) == "from-query"

    def test_csrf_header(self):
        """Test the X-CSRF-TOKEN header is read."""
        assert _extract(_make_request(headers={"X-CSRF-TOKEN": "h1"})) == "h1"

    def test_xsrf_header(self):
        """Test the X-XSRF-TOKEN header is read."""
        assert _extract(_make_request(headers={"X-XSRF-TOKEN": "h2"})) == "h2"

    def test_cookie(self):
        """Test the _csrf cookie is read."""
        assert _extract(_make_request(cookies={"_csrf": "from-cookie"})) == "from-cookie"

    def test_full_precedence(self):
        """Test the form field wins when every location is populated."""
        request = _make_request(
            form={"_csrf": "form"},
            query={"_csrf": "query"},
            headers={"X-CSRF-TOKEN": "h1", "X-XSRF-TOKEN": "h2"},
            cookies={"_csrf": "cookie"},
        )

        assert _extract(request) == "form"

    def test_empty_values_are_skipped(self):
        """Test empty values fall through to the next location."""
        request = _make_request(
            form={"_csrf": ""},
            query={"_csrf": ""},
            headers={"X-CSRF-TOKEN": "", "X-XSRF-TOKEN": "h2"},
        )

        assert _extract(request) == "h2"

    def test_non_form_body_not_parsed(self):
        """Test JSON bodies are not parsed as forms."""
        request = _make_request(headers={"content-type": "application/json"})

        assert asyncio.run(read_form_value(request, "_csrf")) == ""

    def test_content_type_case_insensitive(self):
        """Test mixed-case form media types are still parsed."""
        request = _make_request(
            form={"_csrf": "from-form"}, content_type="Application/X-WWW-Form-Urlencoded"
        )

        assert _extract(request) == "from-form"


class TestUnreadableFormBody:
    """Bodies that cannot be parsed as forms fall through to later locations."""

    def test_multipart_without_boundary(self):
        """Test a multipart body missing its boundary yields no form value."""
        request = _make_request(
            headers={"content-type": "multipart/form-data"}, body=b"garbage"
        )

        assert asyncio.run(read_form_value(request, "_csrf")) == ""

    def test_multipart_without_boundary_uses_header(self):
        """Test probing continues to headers after a malformed multipart body."""
        request = _make_request(
            headers={"content-type": "multipart/form-data", "X-CSRF-TOKEN": "h1"},
            body=b"garbage",
        )

        assert _extract(request) == "h1"

    def test_empty_urlencoded_body(self):
        """Test an empty form body yields no value."""
        request = _make_request(
            headers={"content-type": "application/x-www-form-urlencoded"}
        )

        assert _extract(request) == ""


class TestMakeTokenGetter:
    """Test suite for custom transport names."""

    def test_custom_names(self):
        """Test configured names replace the defaults."""
        getter = make_token_getter(
            form_field="csrf_token",
            query_param="csrf_token",
            header_names=["X-Requested-Token"],
            cookie_name="csrftoken",
        )

        assert _extract(_make_request(form={"csrf_token": "f"}), getter) == "f"
        assert _extract(_make_request(headers={"X-Requested-Token": "h"}), getter) == "h"
        assert _extract(_make_request(cookies={"csrftoken": "c"}), getter) == "c"
        assert _extract(_make_request(headers={"X-CSRF-TOKEN": "ignored"}), getter) == ""

    def test_body_still_readable_after_extraction(self):
        """Test the buffered body is available after the form was read."""
        request = _make_request(form={"_csrf": "t", "name": "x"})

        async def extract_then_read():
            token = await default_token_getter(request)
            return token, await request.body()

        token, body = asyncio.run(extract_then_read())

        assert token == "t"
        assert body == b"_csrf=t&name=x"
