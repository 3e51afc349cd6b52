"""Starlette-backed implementation of the auth core's ``CookieStore``."""

from typing import Literal

from starlette.requests import Request
from starlette.responses import Response


class HttpCookieStore:
    """Reads cookies from the request and writes them to the response.

    Writes are also remembered locally, so a value set earlier in the same
    request is what later reads return.
    """

    def __init__(self, request: Request, response: Response | None = None, secure: bool = False):
        self._request = request
        self._response = response
        self._secure = secure
        self._pending: dict[str, str | None] = {}
        if response is not None:
            # Error handlers copy cookie changes onto the error response
            request.state.cookie_response = response

    def get(self, name: str) -> str | None:
        if name in self._pending:
            return self._pending[name]
        return self._request.cookies.get(name)

    def set(
        self,
        name: str,
        value: str,
        *,
        max_age: int,
        httponly: bool = True,
        samesite: Literal["lax", "strict", "none"] = "lax",
    ) -> None:
        if self._response is None:
            raise RuntimeError("Cookie store is read-only")
        self._response.set_cookie(
            name,
            value,
            max_age=max_age,
            httponly=httponly,
            samesite=samesite,
            secure=self._secure,
            path="/",
        )
        self._pending[name] = value

    def delete(self, name: str) -> None:
        if self._response is None:
            raise RuntimeError("Cookie store is read-only")
        self._response.delete_cookie(name, path="/", secure=self._secure, httponly=True)
        self._pending[name] = None
