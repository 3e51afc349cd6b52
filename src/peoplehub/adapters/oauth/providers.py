"""OAuth 2.0 providers (Google, GitHub).

Handles the authorization-code flow:
1. Build the authorization URL
2. Exchange the callback code for tokens
3. Fetch and normalize the user's profile
"""

import secrets
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

import httpx
import structlog

from peoplehub.core.auth.types import OAuthTokens, OAuthUserInfo
from peoplehub.core.exceptions import OAuthProviderError, ValidationError

logger = structlog.get_logger()

SUPPORTED_PROVIDERS = ("google", "github")

GITHUB_EMAILS_URL = "https://api.github.com/user/emails"


@dataclass
class OAuthProviderConfig:
    """Endpoints and credentials for one provider."""

    name: str
    client_id: str
    client_secret: str
    authorization_url: str
    token_url: str
    userinfo_url: str
    scopes: list[str] = field(default_factory=list)

    @property
    def is_configured(self) -> bool:
        """Whether credentials are present."""
        return bool(self.client_id and self.client_secret)


def google_config(client_id: str, client_secret: str) -> OAuthProviderConfig:
    """Google provider configuration."""
    return OAuthProviderConfig(
        name="google",
        client_id=client_id,
        client_secret=client_secret,
        authorization_url="https://accounts.google.com/o/oauth2/v2/auth",
        token_url="https://oauth2.googleapis.com/token",
        userinfo_url="https://www.googleapis.com/oauth2/v2/userinfo",
        scopes=["openid", "email", "profile"],
    )


def github_config(client_id: str, client_secret: str) -> OAuthProviderConfig:
    """GitHub provider configuration."""
    return OAuthProviderConfig(
        name="github",
        client_id=client_id,
        client_secret=client_secret,
        authorization_url="https://github.com/login/oauth/authorize",
        token_url="https://github.com/login/oauth/access_token",
        userinfo_url="https://api.github.com/user",
        scopes=["read:user", "user:email"],
    )


def generate_oauth_state() -> str:
    """Random state value for the ``oauth_state`` cookie (32 bytes, hex)."""
    return secrets.token_hex(32)


class OAuthProviderClient:
    """Talks to the configured OAuth providers."""

    def __init__(
        self,
        providers: list[OAuthProviderConfig],
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the client.

        Args:
            providers: Provider configurations, keyed by their ``name``.
            transport: Optional httpx transport (tests pass a MockTransport).
            timeout: Request timeout in seconds.
        """
        self._providers = {p.name: p for p in providers}
        self._transport = transport
        self._timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self._timeout)

    def get(self, provider: str) -> OAuthProviderConfig:
        """Return a configured provider.

        Raises:
            ValidationError: If the provider is unknown or has no credentials.
        """
        config = self._providers.get(provider)
        if provider not in SUPPORTED_PROVIDERS or config is None:
            raise ValidationError("Invalid provider")
        if not config.is_configured:
            raise ValidationError("Provider not configured")
        return config

    def configured_providers(self) -> list[str]:
        """Names of providers with credentials."""
        return [name for name, config in self._providers.items() if config.is_configured]

    def authorization_url(
        self,
        provider: str,
        redirect_uri: str,
        state: str,
        organization_slug: str | None = None,
    ) -> str:
        """Build the URL the browser is redirected to."""
        config = self.get(provider)
        params = {
            "client_id": config.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(config.scopes),
            # Only the part before ":" is checked against the state cookie
            "state": f"{state}:{organization_slug}" if organization_slug else state,
            "prompt": "select_account",
        }
        return f"{config.authorization_url}?{urlencode(params)}"

    async def exchange_code(self, provider: str, code: str, redirect_uri: str) -> OAuthTokens:
        """Exchange an authorization code for tokens.

        Raises:
            OAuthProviderError: If the provider rejects the exchange.
        """
        config = self.get(provider)
        try:
            async with self._client() as client:
                response = await client.post(
                    config.token_url,
                    data={
                        "client_id": config.client_id,
                        "client_secret": config.client_secret,
                        "code": code,
                        "redirect_uri": redirect_uri,
                        "grant_type": "authorization_code",
                    },
                    headers={"Accept": "application/json"},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.warning("oauth_token_exchange_failed", provider=provider, error=str(e))
            raise OAuthProviderError("Token exchange failed") from e

        if "access_token" not in data:
            # GitHub reports errors with a 200 response
            logger.warning("oauth_token_exchange_failed", provider=provider, error=data.get("error"))
            raise OAuthProviderError("Token exchange failed")

        return OAuthTokens(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            id_token=data.get("id_token"),
            expires_in=data.get("expires_in"),
            scope=data.get("scope"),
        )

    async def fetch_user_info(self, provider: str, access_token: str) -> OAuthUserInfo:
        """Fetch the provider profile and normalize it.

        Raises:
            OAuthProviderError: If the profile cannot be fetched or has no email.
        """
        config = self.get(provider)
        headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}
        try:
            async with self._client() as client:
                response = await client.get(config.userinfo_url, headers=headers)
                response.raise_for_status()
                data = response.json()

                if provider == "github" and not data.get("email"):
                    data["email"] = await self._github_primary_email(client, headers)
        except httpx.HTTPError as e:
            logger.warning("oauth_userinfo_failed", provider=provider, error=str(e))
            raise OAuthProviderError("Failed to fetch user info") from e

        if "id" not in data:
            raise OAuthProviderError("Provider did not return an account id")
        info = self._normalize(provider, data)
        if not info.email:
            raise OAuthProviderError("Provider did not return an email address")
        return info

    async def _github_primary_email(
        self, client: httpx.AsyncClient, headers: dict[str, str]
    ) -> str | None:
        """Primary verified address, else the first listed one."""
        response = await client.get(GITHUB_EMAILS_URL, headers=headers)
        if response.status_code != 200:
            return None
        emails: list[dict[str, Any]] = response.json()
        for entry in emails:
            if entry.get("primary") and entry.get("verified"):
                return str(entry["email"])
        return str(emails[0]["email"]) if emails else None

    def _normalize(self, provider: str, data: dict[str, Any]) -> OAuthUserInfo:
        if provider == "google":
            return OAuthUserInfo(
                provider_account_id=str(data["id"]),
                email=data.get("email") or "",
                name=data.get("name") or data.get("email") or "",
                picture=data.get("picture"),
                email_verified=bool(data.get("verified_email", False)),
            )
        return OAuthUserInfo(
            provider_account_id=str(data["id"]),
            email=data.get("email") or "",
            name=data.get("name") or data.get("login") or "",
            picture=data.get("avatar_url"),
            email_verified=True,
        )
