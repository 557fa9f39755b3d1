"""Credential lifecycle: issuance, persistence as digest, rotation and revocation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import NoReturn, Protocol
from uuid import UUID

from .. import errors
from ..context import RequestContext, logger_from_context
from ..db import Transactor
from .tokens import Claims, TokenError, TokenExpiredError, TokenPair, TokenService


@dataclass(slots=True)
class RefreshRecord:
    """Row projection of ``auth_refresh_tokens``."""

    id: UUID
    user_id: UUID
    token_hash: str
    expires_at: datetime
    revoked_at: datetime | None
    created_at: datetime | None = None

    def is_valid(self, now: datetime | None = None) -> bool:
        """A record is usable iff it was never revoked and has not reached ``expires_at``."""
        moment = now or datetime.now(timezone.utc)
        return self.revoked_at is None and moment < self.expires_at


class RefreshTokenStore(Protocol):
    def insert_refresh_token(
        self, ctx: RequestContext, token_hash: str, user_id: UUID, expires_at: datetime
    ) -> None: ...

    def get_refresh_token(
        self, ctx: RequestContext, token_hash: str, *, for_update: bool = False
    ) -> RefreshRecord | None: ...

    def revoke_refresh_token(self, ctx: RequestContext, token_hash: str) -> None: ...

    def is_principal_active(self, ctx: RequestContext, user_id: UUID) -> bool: ...


class CredentialService:
    """Wraps :class:`TokenService` with the persisted refresh-token lifecycle.

    Every rejection reaches callers as the same ``unauthorized`` error; the
    concrete reason is only logged.
    """

    def __init__(self, tokens: TokenService, store: RefreshTokenStore, transactor: Transactor) -> None:
        self._tokens = tokens
        self._store = store
        self._transactor = transactor

    @property
    def tokens(self) -> TokenService:
        return self._tokens

    def authenticate(self, ctx: RequestContext, access_token: str) -> Claims:
        """Validate a bearer access credential."""
        try:
            return self._tokens.parse_access(access_token)
        except TokenError as exc:
            logger_from_context(ctx).warning("access token rejected: %s", exc)
            raise errors.unauthorized("invalid or expired token") from exc

    def issue(self, ctx: RequestContext, user_id: UUID, username: str, role: str) -> TokenPair:
        """Mint a pair and persist the refresh digest using ``ctx``'s connection."""
        pair = self._tokens.issue_pair(user_id, username, role)
        self.persist_refresh(ctx, self._tokens.digest(pair.refresh_token), user_id, pair.refresh_expires_at)
        return pair

    def persist_refresh(self, ctx: RequestContext, digest: str, user_id: UUID, expires_at: datetime) -> None:
        self._store.insert_refresh_token(ctx, digest, user_id, expires_at)

    def lookup_refresh(self, ctx: RequestContext, digest: str) -> RefreshRecord | None:
        return self._store.get_refresh_token(ctx, digest)

    def revoke_refresh(self, ctx: RequestContext, digest: str) -> None:
        """Set the revocation time unless one is already set."""
        self._store.revoke_refresh_token(ctx, digest)

    def rotate(self, ctx: RequestContext, refresh_token: str) -> tuple[TokenPair, Claims]:
        """Exchange a valid refresh credential for a new pair, revoking the old digest.

        Parameters
        ----------
        refresh_token:
            Raw refresh credential as presented by the client.

        Returns
        -------
        tuple[TokenPair, Claims]
            The new pair and the claims of the credential that was exchanged.
        """
        refresh_token = refresh_token.strip()
        claims = self._parse_refresh(ctx, refresh_token)
        digest = self._tokens.digest(refresh_token)

        def rotate_in_tx(tx_ctx: RequestContext, _register) -> TokenPair:
            record = self._store.get_refresh_token(tx_ctx, digest, for_update=True)
            self._check_record(tx_ctx, record, claims)
            if not self._store.is_principal_active(tx_ctx, claims.user_id):
                self._reject(tx_ctx, "principal no longer active")
            self._store.revoke_refresh_token(tx_ctx, digest)
            return self.issue(tx_ctx, claims.user_id, claims.username, claims.role)

        pair = self._transactor.within_transaction(ctx, rotate_in_tx)
        logger_from_context(ctx).info("refresh token rotated for user %s", claims.user_id)
        return pair, claims

    def revoke(self, ctx: RequestContext, refresh_token: str) -> Claims:
        """Revoke a refresh credential on logout; already-revoked credentials are accepted."""
        refresh_token = refresh_token.strip()
        claims = self._parse_refresh(ctx, refresh_token)
        digest = self._tokens.digest(refresh_token)
        record = self._store.get_refresh_token(ctx, digest)
        if record is None:
            self._reject(ctx, "refresh token not found")
        if record.user_id != claims.user_id:
            self._reject(ctx, "refresh token does not belong to principal")
        if record.revoked_at is not None:
            return claims
        if not record.is_valid():
            self._reject(ctx, "refresh token expired")
        self._store.revoke_refresh_token(ctx, digest)
        return claims

    def _parse_refresh(self, ctx: RequestContext, refresh_token: str) -> Claims:
        if not refresh_token:
            raise errors.bad_request("refresh token is required")
        try:
            return self._tokens.parse_refresh(refresh_token)
        except TokenExpiredError as exc:
            logger_from_context(ctx).warning("refresh token rejected: expired")
            raise errors.unauthorized("invalid or expired refresh token") from exc
        except TokenError as exc:
            logger_from_context(ctx).warning("refresh token rejected: %s", exc)
            raise errors.unauthorized("invalid or expired refresh token") from exc

    def _check_record(self, ctx: RequestContext, record: RefreshRecord | None, claims: Claims) -> None:
        if record is None:
            self._reject(ctx, "refresh token not found")
        if record.revoked_at is not None:
            self._reject(ctx, "refresh token revoked")
        if not record.is_valid():
            self._reject(ctx, "refresh token expired")
        if record.user_id != claims.user_id:
            self._reject(ctx, "refresh token does not belong to principal")

    @staticmethod
    def _reject(ctx: RequestContext, reason: str) -> NoReturn:
        logger_from_context(ctx).warning("refresh token rejected: %s", reason)
        raise errors.unauthorized("invalid or expired refresh token")
