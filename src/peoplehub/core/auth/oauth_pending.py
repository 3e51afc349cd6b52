"""Pending OAuth registration handshake.

After a provider callback for someone without a local account, the provider
profile and tokens are parked in an encrypted, short-lived cookie until the
user either creates an organization or joins one. Provider tokens are only
ever read back from this cookie, never from a request body.
"""

import structlog
from pydantic import ValidationError as PydanticValidationError

from peoplehub.core.auth.encryption import EncryptionCodec
from peoplehub.core.auth.session import CookieStore
from peoplehub.core.auth.types import PendingOAuthData
from peoplehub.core.exceptions import OAuthSessionError

logger = structlog.get_logger()

PENDING_OAUTH_COOKIE = "oauth_pending"
PENDING_OAUTH_MAX_AGE_SECONDS = 600


class PendingOAuthStore:
    """Read and write the encrypted ``oauth_pending`` cookie."""

    def __init__(self, cookies: CookieStore, codec: EncryptionCodec) -> None:
        """Initialize with the request cookie jar and the encryption codec."""
        self._cookies = cookies
        self._codec = codec

    def exists(self) -> bool:
        """Whether a pending cookie is present at all (valid or not)."""
        return bool(self._cookies.get(PENDING_OAUTH_COOKIE))

    def save(self, data: PendingOAuthData) -> None:
        """Encrypt ``data`` into the cookie (10 minute lifetime)."""
        token = self._codec.encrypt(data.model_dump(exclude_none=True))
        self._cookies.set(
            PENDING_OAUTH_COOKIE,
            token,
            max_age=PENDING_OAUTH_MAX_AGE_SECONDS,
            httponly=True,
            samesite="lax",
        )
        logger.info("oauth_pending_saved", provider=data.provider)

    def load(self) -> PendingOAuthData | None:
        """Return the pending data, or None if absent or unreadable.

        An undecryptable or incomplete cookie is deleted so the user is sent
        back through the provider instead of retrying with stale data.
        """
        token = self._cookies.get(PENDING_OAUTH_COOKIE)
        if not token:
            return None

        payload = self._codec.decrypt(token)
        if not isinstance(payload, dict):
            logger.warning("oauth_pending_invalid", reason="decrypt_failed")
            self.clear()
            return None

        try:
            data = PendingOAuthData.model_validate(payload)
        except PydanticValidationError:
            logger.warning("oauth_pending_invalid", reason="incomplete_payload")
            self.clear()
            return None

        if not (data.email and data.name and data.provider and data.provider_id):
            logger.warning("oauth_pending_invalid", reason="incomplete_payload")
            self.clear()
            return None
        return data

    def require(self) -> PendingOAuthData:
        """Return the pending data or raise.

        Raises:
            OAuthSessionError: If the cookie is missing or unreadable.
        """
        data = self.load()
        if data is None:
            raise OAuthSessionError()
        return data

    def clear(self) -> None:
        """Delete the cookie. Safe to call when it does not exist."""
        self._cookies.delete(PENDING_OAUTH_COOKIE)
