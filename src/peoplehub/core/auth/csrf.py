"""Double-submit CSRF tokens.

A random secret lives in an httpOnly cookie; the client receives tokens
derived from it (``salt-HMAC(secret, salt)``) through a readable cookie and
echoes one back in the ``x-csrf-token`` header on mutating requests.
"""

import base64
import hashlib
import hmac
import secrets

from peoplehub.core.auth.session import CookieStore

CSRF_SECRET_COOKIE = "csrf-secret"
CSRF_TOKEN_COOKIE = "csrf-token"
CSRF_HEADER = "x-csrf-token"
CSRF_MAX_AGE_SECONDS = 60 * 60 * 24 * 7

SECRET_BYTES = 18
SALT_LENGTH = 8


def generate_secret() -> str:
    """Generate a new CSRF secret."""
    return secrets.token_urlsafe(SECRET_BYTES)


def _digest(secret: str, salt: str) -> str:
    mac = hmac.new(secret.encode("utf-8"), salt.encode("utf-8"), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(mac).rstrip(b"=").decode("ascii")


def create_token(secret: str) -> str:
    """Derive a fresh token from ``secret``."""
    salt = secrets.token_hex(SALT_LENGTH // 2)
    return f"{salt}-{_digest(secret, salt)}"


def verify_token(secret: str | None, token: str | None) -> bool:
    """Check that ``token`` was derived from ``secret``."""
    if not secret or not token:
        return False
    salt, sep, digest = token.partition("-")
    if not sep or len(salt) != SALT_LENGTH:
        return False
    return hmac.compare_digest(digest, _digest(secret, salt))


def issue_token(cookies: CookieStore) -> str:
    """Create a token, minting the secret cookie on first use."""
    secret = cookies.get(CSRF_SECRET_COOKIE)
    if not secret:
        secret = generate_secret()
        cookies.set(
            CSRF_SECRET_COOKIE,
            secret,
            max_age=CSRF_MAX_AGE_SECONDS,
            httponly=True,
            samesite="strict",
        )

    token = create_token(secret)
    cookies.set(
        CSRF_TOKEN_COOKIE,
        token,
        max_age=CSRF_MAX_AGE_SECONDS,
        httponly=False,
        samesite="strict",
    )
    return token


def validate_request_token(cookies: CookieStore, header_token: str | None) -> bool:
    """Validate the header token, falling back to the token cookie."""
    secret = cookies.get(CSRF_SECRET_COOKIE)
    token = header_token or cookies.get(CSRF_TOKEN_COOKIE)
    return verify_token(secret, token)
