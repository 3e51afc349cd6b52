"""OAuth sign-in routes: provider redirect and callback."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from peoplehub.adapters.oauth import OAuthProviderClient, generate_oauth_state
from peoplehub.core.auth.encryption import EncryptionCodec
from peoplehub.core.auth.oauth_pending import PendingOAuthStore
from peoplehub.core.auth.service import AuthService, OAuthNextStep
from peoplehub.core.auth.session import SessionStore
from peoplehub.core.exceptions import PeopleHubError, ValidationError
from peoplehub.entrypoints.api.cookies import HttpCookieStore
from peoplehub.entrypoints.api.deps import (
    Settings,
    get_auth_service,
    get_codec,
    get_oauth_client,
    get_settings,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/auth", tags=["oauth"])

OAUTH_STATE_COOKIE = "oauth_state"
OAUTH_RETURN_TO_COOKIE = "oauth_return_to"
OAUTH_ORG_COOKIE = "oauth_org"
OAUTH_COOKIE_MAX_AGE = 600

DEFAULT_RETURN_TO = "/dashboard"


def safe_return_path(value: str | None) -> str:
    """Only same-site absolute paths are allowed as post-login targets."""
    if not value or not value.startswith("/") or value.startswith("//") or "\\" in value:
        return DEFAULT_RETURN_TO
    return value


def _callback_uri(settings: Settings, provider: str) -> str:
    return f"{settings.app_url}/api/auth/{provider}/callback"


@router.get("/{provider}")
async def start_oauth(
    provider: str,
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
    client: Annotated[OAuthProviderClient, Depends(get_oauth_client)],
    org: str | None = None,
    return_to: str | None = None,
) -> RedirectResponse:
    """Redirect the browser to the provider's consent page."""
    state = generate_oauth_state()
    try:
        url = client.authorization_url(provider, _callback_uri(settings, provider), state, org)
    except ValidationError:
        return RedirectResponse(f"{settings.app_url}/login?error=invalid_provider", status_code=302)

    response = RedirectResponse(url, status_code=302)
    cookies = HttpCookieStore(request, response, secure=settings.is_production)
    cookies.set(OAUTH_STATE_COOKIE, state, max_age=OAUTH_COOKIE_MAX_AGE)
    cookies.set(OAUTH_RETURN_TO_COOKIE, safe_return_path(return_to), max_age=OAUTH_COOKIE_MAX_AGE)
    if org:
        cookies.set(OAUTH_ORG_COOKIE, org, max_age=OAUTH_COOKIE_MAX_AGE)

    logger.info("oauth_started", provider=provider, org_slug=org)
    return response


@router.get("/{provider}/callback")
async def oauth_callback(
    provider: str,
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
    client: Annotated[OAuthProviderClient, Depends(get_oauth_client)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    codec: Annotated[EncryptionCodec, Depends(get_codec)],
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
) -> RedirectResponse:
    """Finish the provider round trip.

    Existing users get a session; new users get an ``oauth_pending`` cookie
    and are sent to the join or registration page. Failures land on the
    login page with an error code.
    """

    def to_login(reason: str) -> RedirectResponse:
        return RedirectResponse(f"{settings.app_url}/login?error={reason}", status_code=302)

    if provider not in client.configured_providers():
        return to_login("invalid_provider")
    if error:
        logger.warning("oauth_provider_error", provider=provider, error=error)
        return to_login(f"oauth_{error}")
    if not code or not state:
        return to_login("missing_params")

    stored_state = request.cookies.get(OAUTH_STATE_COOKIE)
    returned_state = state.split(":", 1)[0]
    if not stored_state or returned_state != stored_state:
        logger.warning("oauth_state_mismatch", provider=provider)
        return to_login("invalid_state")

    return_to = safe_return_path(request.cookies.get(OAUTH_RETURN_TO_COOKIE))
    requested_org = request.cookies.get(OAUTH_ORG_COOKIE)

    try:
        tokens = await client.exchange_code(provider, code, _callback_uri(settings, provider))
        info = await client.fetch_user_info(provider, tokens.access_token)
        result = await service.handle_oauth_callback(provider, tokens, info, requested_org)
    except PeopleHubError as e:
        logger.warning("oauth_callback_failed", provider=provider, error=e.message)
        return to_login("oauth_failed")

    if result.next_step == OAuthNextStep.LOGIN:
        target = f"{settings.app_url}{return_to}"
    elif result.next_step == OAuthNextStep.JOIN:
        target = f"{settings.app_url}/join-organization"
    else:
        target = f"{settings.app_url}/register/complete"

    response = RedirectResponse(target, status_code=302)
    cookies = HttpCookieStore(request, response, secure=settings.is_production)
    for name in (OAUTH_STATE_COOKIE, OAUTH_RETURN_TO_COOKIE, OAUTH_ORG_COOKIE):
        cookies.delete(name)

    if result.auth is not None:
        SessionStore(cookies, settings.session_secret).create(
            user_id=result.auth.user.id,
            email=result.auth.user.email,
            role=result.auth.user.role,
            organization_id=result.auth.organization.id,
            organization_slug=result.auth.organization.slug,
        )
    elif result.pending is not None:
        PendingOAuthStore(cookies, codec).save(result.pending)

    return response
