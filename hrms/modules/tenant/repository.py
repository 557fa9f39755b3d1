"""Role and branch-access lookups backing tenant resolution."""

from __future__ import annotations

from uuid import UUID

from psycopg.rows import tuple_row

from ...context import RequestContext
from ...contracts import BranchDTO
from ...db import DBTXContext


class TenantRepository:
    def __init__(self, db: DBTXContext) -> None:
        self._db = db

    def get_company_role(self, ctx: RequestContext, user_id: UUID, company_id: UUID) -> str | None:
        with self._db(ctx) as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    "SELECT role FROM user_company_roles WHERE user_id = %s AND company_id = %s",
                    (user_id, company_id),
                )
                row = cur.fetchone()
        return row[0] if row else None

    def get_branch_access(self, ctx: RequestContext, user_id: UUID, branch_id: UUID) -> tuple[bool, UUID | None]:
        """Return ``(granted, branch_company_id)``; the company is ``None`` for unknown branches."""
        with self._db(ctx) as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    SELECT b.company_id,
                           EXISTS (
                               SELECT 1 FROM user_branch_access uba
                               WHERE uba.user_id = %s AND uba.branch_id = b.id
                           )
                    FROM branches b
                    WHERE b.id = %s
                    """,
                    (user_id, branch_id),
                )
                row = cur.fetchone()
        if not row:
            return False, None
        return bool(row[1]), row[0]

    def list_branches(
        self, ctx: RequestContext, user_id: UUID, company_id: UUID, *, all_branches: bool
    ) -> list[BranchDTO]:
        if all_branches:
            query = """
                SELECT b.id, b.company_id, b.code, b.name, b.status, b.is_default
                FROM branches b
                WHERE b.company_id = %s
                ORDER BY b.is_default DESC, b.code ASC
            """
            params: tuple = (company_id,)
        else:
            query = """
                SELECT b.id, b.company_id, b.code, b.name, b.status, b.is_default
                FROM user_branch_access uba
                JOIN branches b ON b.id = uba.branch_id
                WHERE uba.user_id = %s AND b.company_id = %s
                ORDER BY b.is_default DESC, b.code ASC
            """
            params = (user_id, company_id)
        with self._db(ctx) as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(query, params)
                rows = cur.fetchall()
        return [
            BranchDTO(id=row[0], company_id=row[1], code=row[2], name=row[3], status=row[4], is_default=row[5])
            for row in rows
        ]
