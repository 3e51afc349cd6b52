"""Tests for the Starlette cookie store."""

from __future__ import annotations

import pytest
from starlette.requests import Request
from starlette.responses import Response

from peoplehub.entrypoints.api.cookies import HttpCookieStore


def _request(cookie_header: str = "") -> Request:
    headers = [(b"cookie", cookie_header.encode())] if cookie_header else []
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


class TestHttpCookieStore:
    """Tests for HttpCookieStore."""

    def test_reads_request_cookies(self) -> None:
        """Values come from the request."""
        store = HttpCookieStore(_request("session=abc; theme=dark"))

        assert store.get("session") == "abc"
        assert store.get("missing") is None

    def test_set_writes_response_and_is_readable(self) -> None:
        """Writes go to the response and later reads see them."""
        response = Response()
        store = HttpCookieStore(_request("session=old"), response, secure=True)

        store.set("session", "new", max_age=60)

        header = response.headers["set-cookie"]
        assert header.startswith("session=new")
        assert "HttpOnly" in header
        assert "Secure" in header
        assert "SameSite=lax" in header
        assert store.get("session") == "new"

    def test_delete(self) -> None:
        """Deleted cookies read as absent."""
        response = Response()
        store = HttpCookieStore(_request("session=old"), response)

        store.delete("session")

        assert store.get("session") is None
        assert "Max-Age=0" in response.headers["set-cookie"]

    def test_read_only_without_response(self) -> None:
        """Stores built without a response cannot write."""
        store = HttpCookieStore(_request())

        with pytest.raises(RuntimeError):
            store.set("session", "x", max_age=1)
        with pytest.raises(RuntimeError):
            store.delete("session")

    def test_response_is_remembered_for_error_handlers(self) -> None:
        """The response is recorded on the request state."""
        request = _request()
        response = Response()

        HttpCookieStore(request, response)

        assert request.state.cookie_response is response
