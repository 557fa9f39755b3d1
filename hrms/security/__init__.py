"""Credentials, password hashing, and request throttling."""

from .credentials import CredentialService, RefreshRecord, RefreshTokenStore
from .passwords import PasslibHasher, PasswordHasher
from .rate_limiter import RateDecision, RateLimiter, SlidingWindowRateLimiter
from .tokens import Claims, TokenError, TokenExpiredError, TokenInvalidError, TokenPair, TokenService

__all__ = [
    "Claims",
    "CredentialService",
    "PasslibHasher",
    "PasswordHasher",
    "RateDecision",
    "RateLimiter",
    "RefreshRecord",
    "RefreshTokenStore",
    "SlidingWindowRateLimiter",
    "TokenError",
    "TokenExpiredError",
    "TokenInvalidError",
    "TokenPair",
    "TokenService",
]
