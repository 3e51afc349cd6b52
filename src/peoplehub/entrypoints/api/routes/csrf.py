"""CSRF token issuance."""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from peoplehub.core.auth.csrf import issue_token
from peoplehub.entrypoints.api.cookies import HttpCookieStore
from peoplehub.entrypoints.api.deps import get_cookies

router = APIRouter(tags=["csrf"])


class CSRFTokenResponse(BaseModel):
    """Token to echo back in the ``x-csrf-token`` header."""

    csrf_token: str


@router.get("/csrf", response_model=CSRFTokenResponse)
async def get_csrf_token(
    cookies: Annotated[HttpCookieStore, Depends(get_cookies)],
) -> CSRFTokenResponse:
    """Issue a token, creating the secret cookie on first use."""
    return CSRFTokenResponse(csrf_token=issue_token(cookies))
