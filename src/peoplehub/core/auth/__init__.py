"""Auth domain types and utilities."""

from peoplehub.core.auth.encryption import EncryptionCodec
from peoplehub.core.auth.lockout import AccountLockoutService, LockoutConfig, LoginAttemptRepository
from peoplehub.core.auth.oauth_pending import PendingOAuthStore
from peoplehub.core.auth.password import hash_password, verify_password
from peoplehub.core.auth.repository import AuthRepository
from peoplehub.core.auth.session import CookieStore, SessionStore
from peoplehub.core.auth.types import (
    LockoutStatus,
    LoginAttempt,
    OAuthAccount,
    OAuthTokens,
    OAuthUserInfo,
    Organization,
    PendingOAuthData,
    Role,
    SessionData,
    User,
    UserStatus,
)

__all__ = [
    "AccountLockoutService",
    "AuthRepository",
    "CookieStore",
    "EncryptionCodec",
    "LockoutConfig",
    "LockoutStatus",
    "LoginAttempt",
    "LoginAttemptRepository",
    "OAuthAccount",
    "OAuthTokens",
    "OAuthUserInfo",
    "Organization",
    "PendingOAuthData",
    "PendingOAuthStore",
    "Role",
    "SessionData",
    "SessionStore",
    "User",
    "UserStatus",
    "hash_password",
    "verify_password",
]
