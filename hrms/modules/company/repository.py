"""Persistence for companies and their branches."""

from __future__ import annotations

from uuid import UUID

from psycopg.rows import tuple_row

from ...context import RequestContext
from ...contracts import BranchDTO, CompanyDTO
from ...db import DBTXContext

DEFAULT_BRANCH_CODE = "HQ"
DEFAULT_BRANCH_NAME = "Head Office"

_COMPANY_COLUMNS = "id, code, name, status, created_at, updated_at"


class CompanyRepository:
    def __init__(self, db: DBTXContext) -> None:
        self._db = db

    def create_company(self, ctx: RequestContext, code: str, name: str, actor_id: UUID) -> CompanyDTO:
        with self._db(ctx) as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO companies (code, name, status, created_by)
                    VALUES (%s, %s, 'active', %s)
                    RETURNING {_COMPANY_COLUMNS}
                    """,
                    (code, name, actor_id),
                )
                row = cur.fetchone()
        return self._map_company(row)

    def create_default_branch(self, ctx: RequestContext, company_id: UUID, actor_id: UUID) -> BranchDTO:
        with self._db(ctx) as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    INSERT INTO branches (company_id, code, name, status, is_default, created_by)
                    VALUES (%s, %s, %s, 'active', TRUE, %s)
                    RETURNING id, company_id, code, name, status, is_default
                    """,
                    (company_id, DEFAULT_BRANCH_CODE, DEFAULT_BRANCH_NAME, actor_id),
                )
                row = cur.fetchone()
        return BranchDTO(id=row[0], company_id=row[1], code=row[2], name=row[3], status=row[4], is_default=row[5])

    def get_company(self, ctx: RequestContext, company_id: UUID) -> CompanyDTO | None:
        with self._db(ctx) as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(f"SELECT {_COMPANY_COLUMNS} FROM companies WHERE id = %s", (company_id,))
                row = cur.fetchone()
        return self._map_company(row) if row else None

    def list_companies(self, ctx: RequestContext) -> list[CompanyDTO]:
        with self._db(ctx) as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(f"SELECT {_COMPANY_COLUMNS} FROM companies ORDER BY code ASC")
                rows = cur.fetchall()
        return [self._map_company(row) for row in rows]

    @staticmethod
    def _map_company(row: tuple) -> CompanyDTO:
        return CompanyDTO(
            id=row[0],
            code=row[1],
            name=row[2],
            status=row[3],
            created_at=row[4],
            updated_at=row[5],
        )
