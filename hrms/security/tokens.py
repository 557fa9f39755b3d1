"""Issuing and validating signed access and refresh credentials."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import jwt

_ALGORITHM = "HS256"


class TokenError(Exception):
    """Base class for credential validation failures."""


class TokenInvalidError(TokenError):
    """Signature, structure, or claim shape is wrong."""


class TokenExpiredError(TokenError):
    """The credential was well-formed but its ``exp`` has passed."""


@dataclass(frozen=True, slots=True)
class Claims:
    """Claims carried by both credential kinds."""

    user_id: UUID
    username: str
    role: str
    issued_at: datetime
    expires_at: datetime
    token_id: str


@dataclass(frozen=True, slots=True)
class TokenPair:
    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime


class TokenService:
    """HS256 credentials with independent secrets for access and refresh tokens."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
    ) -> None:
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._access_ttl = access_ttl
        self._refresh_ttl = refresh_ttl

    @property
    def access_ttl(self) -> timedelta:
        return self._access_ttl

    @property
    def refresh_ttl(self) -> timedelta:
        return self._refresh_ttl

    def issue_pair(self, user_id: UUID, username: str, role: str) -> TokenPair:
        """Create an access/refresh pair for the principal."""
        access, access_exp = self._issue(user_id, username, role, self._access_secret, self._access_ttl)
        refresh, refresh_exp = self._issue(user_id, username, role, self._refresh_secret, self._refresh_ttl)
        return TokenPair(
            access_token=access,
            refresh_token=refresh,
            access_expires_at=access_exp,
            refresh_expires_at=refresh_exp,
        )

    def parse_access(self, token: str) -> Claims:
        """Decode and verify an access credential.

        Raises
        ------
        TokenExpiredError
            When the signature is valid but the credential is past ``exp``.
        TokenInvalidError
            For any other signature, structure, or claim failure.
        """
        return _parse(token, self._access_secret)

    def parse_refresh(self, token: str) -> Claims:
        return _parse(token, self._refresh_secret)

    def digest(self, refresh_token: str) -> str:
        """Return the keyed digest under which a refresh credential is stored."""
        return hmac.new(
            self._refresh_secret.encode("utf-8"),
            refresh_token.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def _issue(
        self, user_id: UUID, username: str, role: str, secret: str, ttl: timedelta
    ) -> tuple[str, datetime]:
        now = datetime.now(timezone.utc).replace(microsecond=0)
        expires_at = now + ttl
        payload: dict[str, Any] = {
            "uid": str(user_id),
            "username": username,
            "role": role,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            # unique per issuance so two pairs minted in the same second still differ
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(payload, secret, algorithm=_ALGORITHM), expires_at


def _parse(token: str, secret: str) -> Claims:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[_ALGORITHM],
            options={"require": ["exp", "iat", "uid", "role"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpiredError("token expired") from exc
    except jwt.PyJWTError as exc:
        raise TokenInvalidError(str(exc)) from exc

    try:
        return Claims(
            user_id=UUID(str(payload["uid"])),
            username=str(payload.get("username", "")),
            role=str(payload["role"]),
            issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
            token_id=str(payload.get("jti", "")),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise TokenInvalidError("malformed claims") from exc
