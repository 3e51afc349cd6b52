"""OAuth provider adapters."""

from peoplehub.adapters.oauth.providers import (
    SUPPORTED_PROVIDERS,
    OAuthProviderClient,
    OAuthProviderConfig,
    generate_oauth_state,
    github_config,
    google_config,
)

__all__ = [
    "SUPPORTED_PROVIDERS",
    "OAuthProviderClient",
    "OAuthProviderConfig",
    "generate_oauth_state",
    "github_config",
    "google_config",
]
