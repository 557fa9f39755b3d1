"""Principal lookup, refresh-token storage and access logging."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from psycopg.rows import tuple_row

from ...context import RequestContext
from ...db import DBTXContext
from ...security import RefreshRecord


@dataclass(slots=True)
class PrincipalRecord:
    id: UUID
    username: str
    password_hash: str
    role: str


class AuthRepository:
    """Postgres-backed store for credentials; also the :class:`RefreshTokenStore` of the runtime."""

    def __init__(self, db: DBTXContext) -> None:
        self._db = db

    def find_user_by_username(self, ctx: RequestContext, username: str) -> PrincipalRecord | None:
        with self._db(ctx) as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    SELECT id, username, password_hash, user_role
                    FROM users
                    WHERE username = %s AND deleted_at IS NULL
                    LIMIT 1
                    """,
                    (username,),
                )
                row = cur.fetchone()
        return PrincipalRecord(*row) if row else None

    def is_principal_active(self, ctx: RequestContext, user_id: UUID) -> bool:
        with self._db(ctx) as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute("SELECT 1 FROM users WHERE id = %s AND deleted_at IS NULL", (user_id,))
                return cur.fetchone() is not None

    def insert_refresh_token(
        self, ctx: RequestContext, token_hash: str, user_id: UUID, expires_at: datetime
    ) -> None:
        with self._db(ctx) as conn:
            conn.execute(
                "INSERT INTO auth_refresh_tokens (user_id, token_hash, expires_at) VALUES (%s, %s, %s)",
                (user_id, token_hash, expires_at),
            )

    def get_refresh_token(
        self, ctx: RequestContext, token_hash: str, *, for_update: bool = False
    ) -> RefreshRecord | None:
        query = """
            SELECT id, user_id, token_hash, expires_at, revoked_at, created_at
            FROM auth_refresh_tokens
            WHERE token_hash = %s
            LIMIT 1
        """
        if for_update:
            query += " FOR UPDATE"
        with self._db(ctx) as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(query, (token_hash,))
                row = cur.fetchone()
        return RefreshRecord(*row) if row else None

    def revoke_refresh_token(self, ctx: RequestContext, token_hash: str) -> None:
        with self._db(ctx) as conn:
            conn.execute(
                "UPDATE auth_refresh_tokens SET revoked_at = now() WHERE token_hash = %s AND revoked_at IS NULL",
                (token_hash,),
            )

    def log_access(self, ctx: RequestContext, user_id: UUID, status: str, ip: str, user_agent: str) -> None:
        with self._db(ctx) as conn:
            conn.execute(
                """
                INSERT INTO user_access_logs (user_id, status, ip_address, user_agent)
                VALUES (%s, %s, %s, %s)
                """,
                (user_id, status, ip, user_agent),
            )
