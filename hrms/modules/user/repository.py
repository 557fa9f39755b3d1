"""Persistence for users and their company/branch grants."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from psycopg.rows import tuple_row

from ...context import RequestContext
from ...contracts import CreatedUser
from ...db import DBTXContext


@dataclass(slots=True)
class UserRecord:
    id: UUID
    username: str
    role: str
    password_hash: str


@dataclass(slots=True)
class CompanyMembership:
    company_id: UUID
    company_code: str
    company_name: str
    role: str


class UserRepository:
    def __init__(self, db: DBTXContext) -> None:
        self._db = db

    def create_user(
        self, ctx: RequestContext, username: str, password_hash: str, role: str, actor_id: UUID
    ) -> CreatedUser:
        with self._db(ctx) as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    INSERT INTO users (username, password_hash, user_role, created_by)
                    VALUES (%s, %s, %s, %s)
                    RETURNING id, username, user_role, created_at
                    """,
                    (username, password_hash, role, actor_id),
                )
                row = cur.fetchone()
        return CreatedUser(id=row[0], username=row[1], role=row[2], created_at=row[3])

    def assign_to_company(
        self, ctx: RequestContext, user_id: UUID, company_id: UUID, role: str, actor_id: UUID
    ) -> None:
        with self._db(ctx) as conn:
            conn.execute(
                """
                INSERT INTO user_company_roles (user_id, company_id, role, created_by)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (user_id, company_id) DO UPDATE SET role = EXCLUDED.role
                """,
                (user_id, company_id, role, actor_id),
            )

    def assign_to_branch(self, ctx: RequestContext, user_id: UUID, branch_id: UUID, actor_id: UUID) -> None:
        with self._db(ctx) as conn:
            conn.execute(
                """
                INSERT INTO user_branch_access (user_id, branch_id, created_by)
                VALUES (%s, %s, %s)
                ON CONFLICT DO NOTHING
                """,
                (user_id, branch_id, actor_id),
            )

    def get_user(self, ctx: RequestContext, user_id: UUID) -> UserRecord | None:
        with self._db(ctx) as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    SELECT id, username, user_role, password_hash
                    FROM users
                    WHERE id = %s AND deleted_at IS NULL
                    """,
                    (user_id,),
                )
                row = cur.fetchone()
        return UserRecord(*row) if row else None

    def update_password(self, ctx: RequestContext, user_id: UUID, password_hash: str) -> None:
        with self._db(ctx) as conn:
            conn.execute(
                "UPDATE users SET password_hash = %s, updated_at = now() WHERE id = %s AND deleted_at IS NULL",
                (password_hash, user_id),
            )

    def list_memberships(self, ctx: RequestContext, user_id: UUID) -> list[CompanyMembership]:
        with self._db(ctx) as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    SELECT c.id, c.code, c.name, ucr.role
                    FROM user_company_roles ucr
                    JOIN companies c ON c.id = ucr.company_id
                    WHERE ucr.user_id = %s
                    ORDER BY c.code ASC
                    """,
                    (user_id,),
                )
                rows = cur.fetchall()
        return [CompanyMembership(*row) for row in rows]
